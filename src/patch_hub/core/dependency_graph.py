"""Dependency graph over patch configurations.

Dependency links are stored as indices into the flat configuration list, so
cycle detection is a traversal over integers rather than object references.
"""

import logging

from patch_hub.core.assets import AssetStore
from patch_hub.core.workspace import Workspace
from patch_hub.models import PatchConfiguration

logger = logging.getLogger(__name__)

# DFS marks for topological ordering
_IN_PROGRESS = 1
_DONE = 2


class DependencyGraph:
    """Dependency edges between configurations, cycle checks and application order."""

    def __init__(self, configurations: list[PatchConfiguration], store: AssetStore):
        self._nodes = list(configurations)
        self._store = store
        self._index: dict[str, int] = {
            config.display_name: idx for idx, config in enumerate(self._nodes)
        }
        self._edges: list[int | None] = []
        self._unresolved: dict[int, str] = {}

        for idx, config in enumerate(self._nodes):
            if config.dependency is None:
                self._edges.append(None)
                continue
            target = self._index.get(config.dependency)
            if target is None:
                self._unresolved[idx] = config.dependency
            self._edges.append(target)

    @classmethod
    def from_workspace(cls, workspace: Workspace) -> "DependencyGraph":
        return cls(workspace.configurations, workspace.store)

    def _index_of(self, config: PatchConfiguration) -> int | None:
        return self._index.get(config.display_name)

    def dependency_of(self, config: PatchConfiguration) -> PatchConfiguration | None:
        """Return the resolved dependency, or None if there is none or it is undefined."""
        idx = self._index_of(config)
        if idx is None:
            return None
        target = self._edges[idx]
        return None if target is None else self._nodes[target]

    def has_unresolved_dependency(self, config: PatchConfiguration) -> bool:
        """True when the dependency names a configuration that is not in the graph."""
        idx = self._index_of(config)
        if idx is None:
            return config.dependency is not None
        return idx in self._unresolved

    def _walk(self, start: int) -> tuple[list[int], int | None]:
        """Follow dependency edges from start.

        Returns:
            (path visited in order, index of the first revisited node or None).
        """
        path: list[int] = []
        seen: set[int] = set()
        current: int | None = start
        while current is not None:
            if current in seen:
                return path, current
            seen.add(current)
            path.append(current)
            current = self._edges[current]
        return path, None

    def has_cycle(self, config: PatchConfiguration) -> bool:
        """Return True if walking the dependency chain from config revisits a node."""
        idx = self._index_of(config)
        if idx is None:
            return False
        _, repeated = self._walk(idx)
        return repeated is not None

    def cycle_members(self, config: PatchConfiguration) -> list[str]:
        """Names of the configurations forming the cycle reachable from config."""
        idx = self._index_of(config)
        if idx is None:
            return []
        path, repeated = self._walk(idx)
        if repeated is None:
            return []
        start = path.index(repeated)
        return [self._nodes[i].display_name for i in path[start:]]

    def is_dependency_satisfied(self, config: PatchConfiguration) -> bool:
        """True if there is no dependency or the dependency's patched output exists."""
        if config.dependency is None:
            return True
        dependency = self.dependency_of(config)
        if dependency is None:
            return False
        output_ref = dependency.expected_output_ref()
        if not output_ref:
            return False
        return self._store.exists(self._store.resolve(output_ref))

    def topological_order(
        self, selected: list[PatchConfiguration]
    ) -> list[PatchConfiguration]:
        """Order selected configurations so each comes after its dependency.

        Dependencies outside the selection are traversed but not emitted.
        Independent configurations keep their input order. A node reached
        again while still on the DFS stack is skipped with a warning.
        """
        selected_names = {config.display_name for config in selected}
        marks: dict[int, int] = {}
        ordered: list[PatchConfiguration] = []

        def visit(idx: int) -> None:
            mark = marks.get(idx)
            if mark == _DONE:
                return
            if mark == _IN_PROGRESS:
                logger.warning(
                    "Dependency cycle reached at '%s' while ordering; skipping",
                    self._nodes[idx].display_name,
                )
                return
            marks[idx] = _IN_PROGRESS
            target = self._edges[idx]
            if target is not None:
                visit(target)
            marks[idx] = _DONE
            if self._nodes[idx].display_name in selected_names:
                ordered.append(self._nodes[idx])

        for config in selected:
            idx = self._index_of(config)
            if idx is None:
                # Not part of the graph: no edges to honour
                if config not in ordered:
                    ordered.append(config)
                continue
            visit(idx)

        return ordered
