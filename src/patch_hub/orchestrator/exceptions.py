"""Exceptions for batch orchestration.

Per-configuration failures are recorded in the BatchResult; only failures
that prevent the batch from starting are raised.
"""


class OrchestratorError(Exception):
    """Base exception for all orchestrator operations."""


class GraphBuildError(OrchestratorError):
    """Raised when graph construction fails."""


class BatchSetupError(OrchestratorError):
    """Raised when a batch cannot be started at all."""
