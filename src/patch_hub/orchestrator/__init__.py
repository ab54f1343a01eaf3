"""LangGraph orchestrator package for batch patching."""

from patch_hub.orchestrator.exceptions import (
    BatchSetupError,
    GraphBuildError,
    OrchestratorError,
)
from patch_hub.orchestrator.graph import build_batch_graph, decline_overwrite, run_batch
from patch_hub.orchestrator.state import BatchState, make_initial_state

__all__ = [
    "BatchSetupError",
    "BatchState",
    "GraphBuildError",
    "OrchestratorError",
    "build_batch_graph",
    "decline_overwrite",
    "make_initial_state",
    "run_batch",
]
