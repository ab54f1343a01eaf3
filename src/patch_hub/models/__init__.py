"""Data models for patch hub."""

from patch_hub.models.config_models import (
    ANY_VERSION,
    PackageRequirement,
    PackageRules,
    PatchConfiguration,
)
from patch_hub.models.package_models import (
    AvailabilityRecord,
    InstallResult,
    ManifestDependency,
    PackageStatus,
    RequirementIssue,
    ServiceEnvelope,
)
from patch_hub.models.result_models import (
    FAILED_OUTCOMES,
    ArtifactValidation,
    BatchEntry,
    BatchResult,
    ConfigurationValidation,
    PatchOutcome,
    ValidationStatus,
)

__all__ = [
    "ANY_VERSION",
    "FAILED_OUTCOMES",
    "ArtifactValidation",
    "AvailabilityRecord",
    "BatchEntry",
    "BatchResult",
    "ConfigurationValidation",
    "InstallResult",
    "ManifestDependency",
    "PackageRequirement",
    "PackageRules",
    "PackageStatus",
    "PatchConfiguration",
    "PatchOutcome",
    "RequirementIssue",
    "ServiceEnvelope",
    "ValidationStatus",
]
