"""Models for integrity checks and batch patch results."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ValidationStatus(str, Enum):
    """Integrity status of a single source artifact."""

    NOT_CHECKED = "not_checked"
    VALID = "valid"
    HASH_MISMATCH = "hash_mismatch"
    SOURCE_NOT_FOUND = "source_not_found"
    NO_DIGEST_STORED = "no_digest_stored"


class PatchOutcome(str, Enum):
    """Terminal outcome of one configuration within a batch run."""

    NONE = "none"
    INVALID_CONFIGURATION = "invalid_configuration"
    MISSING_DIFF_PAYLOAD = "missing_diff_payload"
    COMPANION_PATCH_FAILED = "companion_patch_failed"
    PRIMARY_PATCH_FAILED = "primary_patch_failed"
    SUCCESS = "success"


FAILED_OUTCOMES = frozenset({
    PatchOutcome.INVALID_CONFIGURATION,
    PatchOutcome.MISSING_DIFF_PAYLOAD,
    PatchOutcome.COMPANION_PATCH_FAILED,
    PatchOutcome.PRIMARY_PATCH_FAILED,
})


class ArtifactValidation(BaseModel):
    model_config = ConfigDict(frozen=False)

    status: ValidationStatus = ValidationStatus.NOT_CHECKED
    message: str | None = None
    digest: str | None = None  # Computed digest, when the file was hashed


class ConfigurationValidation(BaseModel):
    """Integrity report for the primary and companion artifacts of one configuration."""

    model_config = ConfigDict(frozen=False)

    display_name: str
    primary: ArtifactValidation = Field(default_factory=ArtifactValidation)
    companion: ArtifactValidation = Field(default_factory=ArtifactValidation)

    @property
    def is_valid(self) -> bool:
        return (
            self.primary.status == ValidationStatus.VALID
            and self.companion.status == ValidationStatus.VALID
        )

    @property
    def has_problems(self) -> bool:
        """True when either artifact drifted or is missing."""
        problem_statuses = {ValidationStatus.HASH_MISMATCH, ValidationStatus.SOURCE_NOT_FOUND}
        return self.primary.status in problem_statuses or self.companion.status in problem_statuses

    def messages(self) -> list[str]:
        return [m for m in (self.primary.message, self.companion.message) if m]


class BatchEntry(BaseModel):
    model_config = ConfigDict(frozen=False)

    display_name: str
    outcome: PatchOutcome = PatchOutcome.NONE
    reason: str = ""

    @property
    def failed(self) -> bool:
        return self.outcome in FAILED_OUTCOMES


class BatchResult(BaseModel):
    """Aggregated result of one batch invocation."""

    model_config = ConfigDict(frozen=False)

    entries: list[BatchEntry] = Field(default_factory=list)
    output_artifacts: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    finished_at: datetime = Field(default_factory=datetime.now)

    @property
    def succeeded(self) -> list[BatchEntry]:
        return [e for e in self.entries if e.outcome == PatchOutcome.SUCCESS]

    @property
    def failed(self) -> list[BatchEntry]:
        return [e for e in self.entries if e.failed]

    @property
    def skipped(self) -> list[BatchEntry]:
        return [e for e in self.entries if e.outcome == PatchOutcome.NONE]

    def outcome_for(self, display_name: str) -> PatchOutcome | None:
        for entry in self.entries:
            if entry.display_name == display_name:
                return entry.outcome
        return None

    def summary_lines(self) -> list[str]:
        lines = [
            f"{len(self.succeeded)} succeeded, {len(self.failed)} failed, "
            f"{len(self.skipped)} skipped"
        ]
        for entry in self.entries:
            line = f"  {entry.display_name}: {entry.outcome.value}"
            if entry.reason:
                line += f" ({entry.reason})"
            lines.append(line)
        return lines
