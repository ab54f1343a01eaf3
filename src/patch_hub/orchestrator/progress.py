"""Pure helper functions for batch progress and routing.

All functions are stateless and have no external dependencies.
"""

from patch_hub.core.dependency_graph import DependencyGraph
from patch_hub.models import BatchEntry, BatchResult, PatchConfiguration
from patch_hub.orchestrator.state import BatchState


def current_configuration_name(state: BatchState) -> str | None:
    """Return the name at the cursor, or None if the cursor is out of bounds."""
    order = state["order"]
    cursor = state["cursor"]
    if 0 <= cursor < len(order):
        return order[cursor]
    return None


def next_config_or_end(state: BatchState) -> str:
    """Router for the edges leaving order_node and process_node.

    Returns:
        "continue" while configurations remain, "done" otherwise.
    """
    if current_configuration_name(state) is not None:
        return "continue"
    return "done"


def dependency_ready(
    config: PatchConfiguration,
    graph: DependencyGraph,
    succeeded: list[str],
    failed: list[str] | None = None,
) -> bool:
    """True if the dependency succeeded in this batch or is already patched on disk.

    A dependency that failed earlier in this batch is never ready, even when
    its failed attempt left a primary output behind.
    """
    if config.dependency is None:
        return True
    if config.dependency in succeeded:
        return True
    if failed and config.dependency in failed:
        return False
    return graph.is_dependency_satisfied(config)


def dedupe_names(names: list[str]) -> list[str]:
    """Drop repeated names while preserving order."""
    seen: set[str] = set()
    unique: list[str] = []
    for name in names:
        if name not in seen:
            seen.add(name)
            unique.append(name)
    return unique


def to_batch_result(state: BatchState) -> BatchResult:
    """Build the caller-facing result from the final graph state.

    Entries are reported in processing order: rejected configurations first,
    then the ordered ones.
    """
    entries: list[BatchEntry] = list(state.get("entries", []))
    return BatchResult(
        entries=entries,
        output_artifacts=list(state.get("output_artifacts", [])),
        warnings=list(state.get("warnings", [])),
        errors=list(state.get("errors", [])),
    )
