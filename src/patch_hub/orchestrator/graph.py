"""LangGraph batch graph for applying patches across configurations.

Wires structural validation, dependency ordering, integrity checks and the
PatchExecutor into a StateGraph that processes one configuration per step.
"""

import logging
from typing import Callable

from langgraph.graph import END, START, StateGraph

from patch_hub.core.dependency_graph import DependencyGraph
from patch_hub.core.hash_verifier import verify_configuration
from patch_hub.core.patch_executor import PatchExecutor
from patch_hub.core.validation import validation_message
from patch_hub.core.workspace import Workspace
from patch_hub.models import BatchEntry, BatchResult, PatchConfiguration, PatchOutcome
from patch_hub.orchestrator.exceptions import BatchSetupError, GraphBuildError
from patch_hub.orchestrator.progress import (
    current_configuration_name,
    dedupe_names,
    dependency_ready,
    next_config_or_end,
    to_batch_result,
)
from patch_hub.orchestrator.state import BatchState, make_initial_state

logger = logging.getLogger(__name__)

ConfirmOverwrite = Callable[[PatchConfiguration, str], bool]

_FAILURE_REASONS = {
    PatchOutcome.COMPANION_PATCH_FAILED: "companion patch failed",
    PatchOutcome.PRIMARY_PATCH_FAILED: "primary patch failed",
}


def decline_overwrite(config: PatchConfiguration, output_path: str) -> bool:
    """Default overwrite policy: keep existing output."""
    return False


def make_validate_node(
    workspace: Workspace, graph: DependencyGraph
) -> Callable[[BatchState], dict]:
    """Factory: returns a node closure that filters the selection.

    Unknown names and structurally invalid configurations are recorded as
    InvalidConfiguration entries; the rest are passed on in selection order.
    """

    def validate_node(state: BatchState) -> dict:
        valid: list[str] = []
        entries: list[BatchEntry] = []
        errors: list[str] = []

        for name in dedupe_names(state["selection"]):
            config = workspace.find(name)
            if config is None:
                errors.append(f"validate_node: unknown configuration '{name}'")
                entries.append(BatchEntry(
                    display_name=name,
                    outcome=PatchOutcome.INVALID_CONFIGURATION,
                    reason="configuration is not defined",
                ))
                continue

            message = validation_message(config, graph, workspace.store)
            if message is not None:
                logger.warning("Configuration '%s' is invalid: %s", name, message)
                entries.append(BatchEntry(
                    display_name=name,
                    outcome=PatchOutcome.INVALID_CONFIGURATION,
                    reason=message,
                ))
                continue

            valid.append(name)

        return {"valid": valid, "entries": entries, "errors": errors}

    return validate_node


def make_order_node(
    workspace: Workspace, graph: DependencyGraph
) -> Callable[[BatchState], dict]:
    """Factory: returns a node closure that orders valid configurations by dependency."""

    def order_node(state: BatchState) -> dict:
        selected = [workspace.get(name) for name in state["valid"]]
        order = [config.display_name for config in graph.topological_order(selected)]
        logger.info("Batch order: %s", ", ".join(order) if order else "(empty)")
        return {"order": order, "cursor": 0}

    return order_node


def _process_configuration(
    config: PatchConfiguration,
    workspace: Workspace,
    graph: DependencyGraph,
    executor: PatchExecutor,
    confirm_overwrite: ConfirmOverwrite,
    state: BatchState,
) -> tuple[BatchEntry, list[str], list[str]]:
    """Run one configuration through dependency, integrity, overwrite and execution steps.

    Returns:
        (entry, output artifact paths, warnings)
    """
    store = workspace.store
    name = config.display_name
    warnings: list[str] = []

    if not dependency_ready(config, graph, state["succeeded"], state["failed"]):
        return BatchEntry(
            display_name=name,
            outcome=PatchOutcome.MISSING_DIFF_PAYLOAD,
            reason=f"dependency '{config.dependency}' has not been patched",
        ), [], warnings

    integrity = verify_configuration(config, store)
    if integrity.has_problems:
        warnings.extend(integrity.messages())
        if state["block_on_integrity_failure"]:
            return BatchEntry(
                display_name=name,
                outcome=PatchOutcome.INVALID_CONFIGURATION,
                reason="source integrity check failed",
            ), [], warnings

    primary_diff = store.resolve(config.primary_diff)
    companion_diff = store.resolve(config.companion_diff)
    if not store.exists(primary_diff) or not store.exists(companion_diff):
        return BatchEntry(
            display_name=name,
            outcome=PatchOutcome.MISSING_DIFF_PAYLOAD,
            reason="diff payloads are missing",
        ), [], warnings

    output_primary = store.resolve(config.expected_output_ref())
    output_companion = store.resolve(config.expected_companion_output_ref())
    existing = [p for p in (output_primary, output_companion) if store.exists(p)]
    if existing:
        if not confirm_overwrite(config, str(output_primary)):
            logger.info("Skipping '%s': existing output kept", name)
            return BatchEntry(
                display_name=name,
                outcome=PatchOutcome.NONE,
                reason="skipped, existing output kept",
            ), [], warnings
        for path in existing:
            store.remove(path)

    try:
        store.make_dirs(store.resolve(config.output_dir))
    except OSError as exc:
        logger.error("Cannot prepare output directory for '%s': %s", name, exc)
        return BatchEntry(
            display_name=name,
            outcome=PatchOutcome.PRIMARY_PATCH_FAILED,
            reason=f"cannot prepare output directory: {exc}",
        ), [], warnings

    outcome = executor.patch_configuration(
        original_primary=store.resolve(config.source_file),
        original_companion=store.resolve(config.companion_file),
        primary_diff=primary_diff,
        companion_diff=companion_diff,
        output_primary=output_primary,
        output_companion=output_companion,
    )

    if outcome != PatchOutcome.SUCCESS:
        return BatchEntry(
            display_name=name,
            outcome=outcome,
            reason=_FAILURE_REASONS.get(outcome, ""),
        ), [], warnings

    outputs = [str(output_primary)]
    outputs.extend(str(store.resolve(ref)) for ref in config.output_artifacts)
    return BatchEntry(display_name=name, outcome=outcome), outputs, warnings


def make_process_node(
    workspace: Workspace,
    graph: DependencyGraph,
    executor: PatchExecutor,
    confirm_overwrite: ConfirmOverwrite,
) -> Callable[[BatchState], dict]:
    """Factory: returns a node closure that processes the configuration at the cursor.

    The closure never raises; unexpected errors are recorded as a failed entry
    and the cursor always advances.
    """

    def process_node(state: BatchState) -> dict:
        name = current_configuration_name(state)
        cursor = state["cursor"]
        if name is None:
            return {
                "errors": ["process_node: no configuration at cursor"],
                "cursor": len(state["order"]),
            }

        config = workspace.get(name)
        logger.info("Patching '%s' (%d/%d)", name, cursor + 1, len(state["order"]))

        try:
            entry, outputs, warnings = _process_configuration(
                config, workspace, graph, executor, confirm_overwrite, state
            )
        except Exception as exc:
            logger.error("Patch operation failed for '%s': %s", name, exc)
            entry = BatchEntry(
                display_name=name,
                outcome=PatchOutcome.PRIMARY_PATCH_FAILED,
                reason=f"unexpected error: {exc}",
            )
            outputs, warnings = [], []

        update: dict = {
            "cursor": cursor + 1,
            "entries": [entry],
            "output_artifacts": outputs,
            "warnings": warnings,
        }
        if entry.outcome == PatchOutcome.SUCCESS:
            update["succeeded"] = list(state["succeeded"]) + [name]
        elif entry.failed:
            update["failed"] = list(state["failed"]) + [name]
            logger.warning("'%s' failed: %s", name, entry.reason)
        return update

    return process_node


def build_batch_graph(
    workspace: Workspace,
    executor: PatchExecutor,
    confirm_overwrite: ConfirmOverwrite | None = None,
):
    """Build and compile the batch StateGraph.

    Edge topology:
      START -> validate_node -> order_node
      order_node -> conditional(next_config_or_end) -> {process_node, END}
      process_node -> conditional(next_config_or_end) -> {process_node, END}

    Args:
        workspace: Workspace holding the configurations.
        executor: PatchExecutor used for every configuration.
        confirm_overwrite: Called before replacing existing output; declines by default.

    Returns:
        CompiledStateGraph ready to invoke.

    Raises:
        GraphBuildError: If graph construction fails.
    """
    try:
        dependency_graph = DependencyGraph.from_workspace(workspace)
        graph = StateGraph(BatchState)

        graph.add_node("validate_node", make_validate_node(workspace, dependency_graph))
        graph.add_node("order_node", make_order_node(workspace, dependency_graph))
        graph.add_node(
            "process_node",
            make_process_node(
                workspace,
                dependency_graph,
                executor,
                confirm_overwrite or decline_overwrite,
            ),
        )

        graph.add_edge(START, "validate_node")
        graph.add_edge("validate_node", "order_node")
        graph.add_conditional_edges(
            "order_node",
            next_config_or_end,
            {"continue": "process_node", "done": END},
        )
        graph.add_conditional_edges(
            "process_node",
            next_config_or_end,
            {"continue": "process_node", "done": END},
        )

        return graph.compile()

    except Exception as exc:
        raise GraphBuildError(f"Failed to build batch graph: {exc}") from exc


def run_batch(
    workspace: Workspace,
    selection: list[str] | None,
    executor: PatchExecutor,
    confirm_overwrite: ConfirmOverwrite | None = None,
    block_on_integrity_failure: bool = False,
) -> BatchResult:
    """Patch the selected configurations and aggregate their outcomes.

    Individual configuration failures never raise; they are reported in the
    returned BatchResult.

    Args:
        workspace: Workspace holding the configurations.
        selection: Names to patch; None selects every configuration.
        executor: PatchExecutor used for every configuration.
        confirm_overwrite: Called before replacing existing output.
        block_on_integrity_failure: Refuse to patch configurations whose
            source digests do not match.

    Raises:
        BatchSetupError: If a non-empty selection names no known configuration.
        GraphBuildError: If graph construction fails.
    """
    names = workspace.names() if selection is None else list(selection)
    if names and not any(name in workspace for name in names):
        raise BatchSetupError(
            f"None of the selected configurations exist: {', '.join(names)}"
        )

    compiled = build_batch_graph(workspace, executor, confirm_overwrite)
    state = make_initial_state(names, block_on_integrity_failure)
    final_state = compiled.invoke(
        state, config={"recursion_limit": len(names) + 10}
    )

    result = to_batch_result(final_state)
    logger.info(
        "Batch finished: %d succeeded, %d failed, %d skipped",
        len(result.succeeded),
        len(result.failed),
        len(result.skipped),
    )
    return result
