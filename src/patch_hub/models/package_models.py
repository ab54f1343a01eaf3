"""Models for package availability and package service payloads."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PackageStatus(str, Enum):
    """Status of a package with respect to the package service."""

    UNKNOWN = "unknown"                        # Not determined yet
    AVAILABLE = "available"                    # Installable from a repository
    INSTALLED = "installed"                    # Already in the project manifest
    NOT_IN_REPOSITORY = "not_in_repository"    # Not found in any repository


AVAILABLE_STATUSES = frozenset({PackageStatus.AVAILABLE, PackageStatus.INSTALLED})


class AvailabilityRecord(BaseModel):
    model_config = ConfigDict(frozen=False)

    status: PackageStatus = PackageStatus.UNKNOWN
    loading: bool = False

    @property
    def is_available(self) -> bool:
        return self.status in AVAILABLE_STATUSES


class ServiceEnvelope(BaseModel):
    """Response envelope returned by every package service endpoint."""

    model_config = ConfigDict(extra="ignore")

    success: bool = False
    data: Any = None


class ManifestDependency(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    package_id: str = Field(alias="Id")
    version: str | None = Field(default=None, alias="Version")


class InstallResult(BaseModel):
    model_config = ConfigDict(frozen=False)

    success: bool
    output: str = ""
    error: str = ""
    exit_code: int = 0


class RequirementIssue(BaseModel):
    """A package requirement that is not met by the installed packages."""

    model_config = ConfigDict(frozen=False)

    package_name: str
    kind: str  # "missing" | "outdated"
    message: str
    installed_version: str | None = None
    required_version: str | None = None
    info_url: str | None = None

    @property
    def is_missing(self) -> bool:
        return self.kind == "missing"
