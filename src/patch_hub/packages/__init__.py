"""Package service integration: client, requirement checks and availability polling."""

from patch_hub.packages.client import PackageServiceClient
from patch_hub.packages.exceptions import PackageServiceError
from patch_hub.packages.installer import install_packages
from patch_hub.packages.poller import AvailabilityPoller
from patch_hub.packages.requirements import (
    check_requirements,
    collect_requirements,
    compare_versions,
    merge_requirements,
)

__all__ = [
    "AvailabilityPoller",
    "PackageServiceClient",
    "PackageServiceError",
    "check_requirements",
    "collect_requirements",
    "compare_versions",
    "install_packages",
    "merge_requirements",
]
