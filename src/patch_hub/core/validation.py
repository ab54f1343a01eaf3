"""Structural validation of patch configurations."""

from patch_hub.core.assets import AssetStore
from patch_hub.core.dependency_graph import DependencyGraph
from patch_hub.models import PatchConfiguration


def validation_message(
    config: PatchConfiguration,
    graph: DependencyGraph,
    store: AssetStore,
) -> str | None:
    """Describe the first structural problem with a configuration.

    Args:
        config: Configuration to check.
        graph: Dependency graph containing the configuration.
        store: Asset store used to resolve diff payload references.

    Returns:
        Human-readable reason, or None if the configuration can be patched.
    """
    if not config.source_file:
        return "Source file is required"
    if not config.output_dir:
        return "Output directory is required"
    if not config.primary_diff:
        return "Primary diff payload is required"
    if not config.companion_diff:
        return "Companion diff payload is required"

    if not store.exists(store.resolve(config.primary_diff)):
        return f"Primary diff payload does not exist: {config.primary_diff}"
    if not store.exists(store.resolve(config.companion_diff)):
        return f"Companion diff payload does not exist: {config.companion_diff}"

    if graph.has_unresolved_dependency(config):
        return f"Dependency '{config.dependency}' is not a known configuration"

    if graph.has_cycle(config):
        members = graph.cycle_members(config)
        chain = " -> ".join(members + members[:1])
        return f"Circular dependency detected: {chain}"

    return None


def is_valid_for_patching(
    config: PatchConfiguration,
    graph: DependencyGraph,
    store: AssetStore,
) -> bool:
    return validation_message(config, graph, store) is None
