"""Workspace: the flat collection of patch configurations and package rules."""

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from patch_hub.core.assets import AssetStore, FilesystemAssetStore
from patch_hub.core.exceptions import UnknownConfigurationError, WorkspaceLoadError
from patch_hub.models import PackageRequirement, PackageRules, PatchConfiguration

logger = logging.getLogger(__name__)


class WorkspaceDocument(BaseModel):
    """On-disk layout of a workspace file."""

    model_config = ConfigDict(extra="ignore")

    package_rules: list[PackageRequirement] = Field(default_factory=list)
    configurations: list[PatchConfiguration] = Field(default_factory=list)


class Workspace:
    """Configurations indexed by display name, plus the global package rules."""

    def __init__(
        self,
        configurations: list[PatchConfiguration],
        package_rules: PackageRules | None = None,
        store: AssetStore | None = None,
        path: Path | None = None,
    ) -> None:
        self.configurations = list(configurations)
        self.package_rules = package_rules or PackageRules()
        self.path = path
        root = path.parent if path is not None else Path.cwd()
        self.store: AssetStore = store or FilesystemAssetStore(root)

        self._index: dict[str, int] = {}
        for idx, config in enumerate(self.configurations):
            if config.display_name in self._index:
                raise WorkspaceLoadError(
                    f"Duplicate configuration name '{config.display_name}'"
                )
            self._index[config.display_name] = idx

    def __len__(self) -> int:
        return len(self.configurations)

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def names(self) -> list[str]:
        return [c.display_name for c in self.configurations]

    def find(self, name: str | None) -> PatchConfiguration | None:
        if name is None:
            return None
        idx = self._index.get(name)
        return None if idx is None else self.configurations[idx]

    def get(self, name: str) -> PatchConfiguration:
        config = self.find(name)
        if config is None:
            raise UnknownConfigurationError(f"Unknown configuration '{name}'")
        return config

    def select(self, names: list[str] | None) -> list[PatchConfiguration]:
        """Return configurations for names in the given order; None selects everything."""
        if names is None:
            return list(self.configurations)
        return [self.get(name) for name in names]

    def save(self, path: Path | None = None) -> Path:
        """Write the workspace back to disk (used after digest generation)."""
        target = path or self.path
        if target is None:
            raise WorkspaceLoadError("Workspace has no file path to save to")
        document = WorkspaceDocument(
            package_rules=self.package_rules.package_requirements,
            configurations=self.configurations,
        )
        target.write_text(
            json.dumps(document.model_dump(mode="json"), indent=2) + "\n",
            encoding="utf-8",
        )
        logger.info("Saved workspace with %d configurations to %s", len(self), target)
        return target


def load_workspace(path: str | Path, store: AssetStore | None = None) -> Workspace:
    """Load a workspace JSON file.

    Args:
        path: Path to the workspace file.
        store: Optional AssetStore; defaults to the file's directory.

    Returns:
        Workspace with configurations in file order.

    Raises:
        WorkspaceLoadError: If the file is missing, unreadable or malformed.
    """
    workspace_path = Path(path).expanduser().resolve()
    if not workspace_path.is_file():
        raise WorkspaceLoadError(f"Workspace file not found: {workspace_path}")

    try:
        raw = json.loads(workspace_path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise WorkspaceLoadError(f"Cannot read workspace {workspace_path}: {exc}") from exc

    try:
        document = WorkspaceDocument.model_validate(raw)
    except ValidationError as exc:
        raise WorkspaceLoadError(f"Invalid workspace {workspace_path}: {exc}") from exc

    logger.debug(
        "Loaded %d configurations from %s", len(document.configurations), workspace_path
    )
    return Workspace(
        configurations=document.configurations,
        package_rules=PackageRules(package_requirements=document.package_rules),
        store=store,
        path=workspace_path,
    )
