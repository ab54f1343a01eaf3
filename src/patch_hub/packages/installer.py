"""Sequential bulk installation of packages through the package service."""

import logging
import time
from typing import Callable

from patch_hub.models import InstallResult
from patch_hub.packages.client import PackageServiceClient

logger = logging.getLogger(__name__)

DEFAULT_INSTALL_DELAY_MS = 500


def install_packages(
    client: PackageServiceClient,
    package_ids: list[str],
    delay_ms: int = DEFAULT_INSTALL_DELAY_MS,
    sleep: Callable[[float], None] = time.sleep,
) -> dict[str, InstallResult]:
    """Install packages one at a time with a pause between requests.

    Args:
        client: Package service client.
        package_ids: Packages to install, in order.
        delay_ms: Pause after each installation request.
        sleep: Sleep function (injectable for tests).

    Returns:
        Install result per package id.
    """
    results: dict[str, InstallResult] = {}
    for package_id in package_ids:
        try:
            results[package_id] = client.add_package(package_id)
        except Exception as exc:
            results[package_id] = InstallResult(success=False, error=str(exc), exit_code=-1)

        if not results[package_id].success:
            logger.warning("Install of %s failed: %s", package_id, results[package_id].error)
        sleep(delay_ms / 1000)
    return results
