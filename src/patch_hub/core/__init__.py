"""Core patching components: workspace, dependency graph, integrity and execution."""

from patch_hub.core.assets import AssetStore, FilesystemAssetStore
from patch_hub.core.dependency_graph import DependencyGraph
from patch_hub.core.exceptions import (
    ConfigurationError,
    DigestComputationError,
    ExecutionError,
    IntegrityError,
    PatchHubError,
    SourceArtifactMissingError,
    UnknownConfigurationError,
    UnsupportedPlatformError,
    WorkspaceLoadError,
)
from patch_hub.core.hash_verifier import (
    compute_digest,
    generate_digests,
    verify,
    verify_configuration,
)
from patch_hub.core.patch_executor import PatchExecutor, apply_patch, resolve_patcher_path
from patch_hub.core.validation import is_valid_for_patching, validation_message
from patch_hub.core.workspace import Workspace, load_workspace

__all__ = [
    "AssetStore",
    "ConfigurationError",
    "DependencyGraph",
    "DigestComputationError",
    "ExecutionError",
    "FilesystemAssetStore",
    "IntegrityError",
    "PatchExecutor",
    "PatchHubError",
    "SourceArtifactMissingError",
    "UnknownConfigurationError",
    "UnsupportedPlatformError",
    "Workspace",
    "WorkspaceLoadError",
    "apply_patch",
    "compute_digest",
    "generate_digests",
    "is_valid_for_patching",
    "load_workspace",
    "resolve_patcher_path",
    "validation_message",
    "verify",
    "verify_configuration",
]
