"""State definition for the batch patch graph."""

import operator
from typing import Annotated, TypedDict

from patch_hub.models import BatchEntry


class BatchState(TypedDict):
    """State for one batch run.

    Fields with Annotated[list, operator.add] reducers accumulate across nodes.
    All other fields use default overwrite semantics.
    """

    # Input
    selection: list[str]
    block_on_integrity_failure: bool

    # Filtering and ordering
    valid: list[str]
    order: list[str]
    cursor: int

    # Names that reached Success earlier in this batch
    succeeded: list[str]
    # Names whose patch attempt failed earlier in this batch
    failed: list[str]

    # Accumulated results
    entries: Annotated[list[BatchEntry], operator.add]
    output_artifacts: Annotated[list[str], operator.add]
    warnings: Annotated[list[str], operator.add]
    errors: Annotated[list[str], operator.add]


def make_initial_state(
    selection: list[str],
    block_on_integrity_failure: bool = False,
) -> BatchState:
    """Create the initial state for a batch run.

    Args:
        selection: Configuration names to patch, in caller order.
        block_on_integrity_failure: Treat digest mismatches and missing
            sources as blocking instead of advisory.

    Returns:
        BatchState dict with all fields initialised to defaults.
    """
    return {
        "selection": list(selection),
        "block_on_integrity_failure": block_on_integrity_failure,
        "valid": [],
        "order": [],
        "cursor": 0,
        "succeeded": [],
        "failed": [],
        "entries": [],
        "output_artifacts": [],
        "warnings": [],
        "errors": [],
    }
