"""HTTP client for the local package service."""

import logging
from pathlib import Path
from typing import Any

import requests
from pydantic import ValidationError

from patch_hub.models import InstallResult, ManifestDependency, ServiceEnvelope
from patch_hub.packages.exceptions import PackageServiceError

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_URL = "http://localhost:5477/api/"
DEFAULT_SERVICE_ORIGIN = "http://localhost:5477/"
DEFAULT_SERVICE_TIMEOUT = 5.0
LATEST_VERSION = "latest"


class PackageServiceClient:
    """Talks to the package service's JSON API.

    Every public method degrades to None, False, an empty list or a failed
    InstallResult when the service is down or answers unexpectedly.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_SERVICE_URL,
        project_path: str | Path | None = None,
        timeout: float = DEFAULT_SERVICE_TIMEOUT,
        origin: str = DEFAULT_SERVICE_ORIGIN,
    ) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.project_path = str(project_path or Path.cwd())
        self.timeout = timeout
        self.headers = {"Origin": origin}

    def _request(
        self,
        endpoint: str,
        method: str = "GET",
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> ServiceEnvelope:
        """Send one request and parse the response envelope.

        Raises:
            PackageServiceError: On transport errors or a malformed response.
        """
        url = self.base_url + endpoint
        try:
            response = requests.request(
                method,
                url,
                json=body,
                params=params,
                headers=self.headers,
                timeout=self.timeout,
            )
            return ServiceEnvelope.model_validate(response.json())
        except requests.exceptions.RequestException as exc:
            raise PackageServiceError(f"{method} {url} failed: {exc}") from exc
        except (ValueError, ValidationError) as exc:
            raise PackageServiceError(f"{method} {url} returned invalid JSON: {exc}") from exc

    def _succeeded(self, endpoint: str, method: str = "GET", **kwargs: Any) -> ServiceEnvelope | None:
        try:
            envelope = self._request(endpoint, method, **kwargs)
        except PackageServiceError as exc:
            logger.debug("Package service unavailable: %s", exc)
            return None
        return envelope if envelope.success else None

    def is_available(self) -> bool:
        """Probe the health endpoint, falling back to the project list."""
        if self._succeeded("health") is not None:
            return True
        return self._succeeded("projects") is not None

    def get_project_id(self) -> str | None:
        envelope = self._succeeded("projects/project", params={"path": self.project_path})
        if envelope is None or not isinstance(envelope.data, dict):
            return None
        project_id = envelope.data.get("ProjectId")
        return project_id or None

    def list_dependencies(self) -> list[ManifestDependency] | None:
        """Return the project's manifest dependencies, or None if unavailable."""
        project_id = self.get_project_id()
        if project_id is None:
            return None
        envelope = self._succeeded("projects/manifest", "POST", body={"id": project_id})
        if envelope is None or not isinstance(envelope.data, dict):
            return None
        try:
            return [
                ManifestDependency.model_validate(item)
                for item in envelope.data.get("dependencies") or []
            ]
        except ValidationError as exc:
            logger.warning("Malformed manifest from package service: %s", exc)
            return None

    def installed_versions(self) -> dict[str, str | None]:
        """Map of installed package id to version; empty when unavailable."""
        dependencies = self.list_dependencies() or []
        return {dep.package_id: dep.version for dep in dependencies}

    def is_package_installed(self, package_id: str) -> bool:
        dependencies = self.list_dependencies() or []
        return any(dep.package_id == package_id for dep in dependencies)

    def check_package_available(self, package_id: str) -> bool:
        """True when the service manages this project and can install packages into it.

        The service offers no per-package lookup; a resolvable project id is
        the availability signal.
        """
        return self.get_project_id() is not None

    def add_package(self, package_id: str, version: str | None = None) -> InstallResult:
        """Add a package to the project. Empty version or "latest" installs the newest."""
        project_id = self.get_project_id()
        if project_id is None:
            return InstallResult(
                success=False,
                error="Could not get project id. Make sure this project is managed by the package service.",
                exit_code=-1,
            )

        body = {
            "projectId": project_id,
            "packageId": package_id,
            "version": None if not version or version == LATEST_VERSION else version,
        }
        try:
            envelope = self._request("projects/packages", "POST", body=body)
        except PackageServiceError as exc:
            return InstallResult(
                success=False,
                error=f"Package installation for {package_id} failed: {exc}",
                exit_code=-1,
            )

        if envelope.success:
            logger.info("Added package %s", package_id)
            return InstallResult(success=True, output=f"Successfully added package {package_id}")
        return InstallResult(
            success=False,
            error=(
                f"Package service request failed for {package_id}. The package might "
                "not exist or may already be installed."
            ),
            exit_code=-1,
        )
