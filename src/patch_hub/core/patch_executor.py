"""Runs the external binary patch utility."""

import logging
import os
import platform
import stat
import subprocess
from pathlib import Path

from patch_hub.core.exceptions import UnsupportedPlatformError
from patch_hub.models import PatchOutcome

logger = logging.getLogger(__name__)

# Patch utility builds, relative to the tool root
WINDOWS_PATCHER = Path("Windows") / "hpatchz.exe"
MAC_PATCHER = Path("Mac") / "hpatchz"
LINUX_PATCHER = Path("Linux") / "hpatchz"

_PATCHERS_BY_SYSTEM = {
    "Windows": WINDOWS_PATCHER,
    "Darwin": MAC_PATCHER,
    "Linux": LINUX_PATCHER,
}

DEFAULT_PROCESS_TIMEOUT = 300
EXECUTE_BITS = stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH


def resolve_patcher_path(tool_root: str | Path, system: str | None = None) -> Path:
    """Return the platform-specific patch utility path under tool_root.

    Raises:
        UnsupportedPlatformError: If there is no build for the host system.
    """
    system = system or platform.system()
    relative = _PATCHERS_BY_SYSTEM.get(system)
    if relative is None:
        raise UnsupportedPlatformError(f"Unsupported platform for patching: {system}")
    return Path(tool_root) / relative


def ensure_executable(path: str | Path) -> bool:
    """Grant execute permission to the patch utility. Returns False on failure."""
    try:
        target = Path(path)
        mode = target.stat().st_mode
        if mode & EXECUTE_BITS != EXECUTE_BITS:
            os.chmod(target, mode | EXECUTE_BITS)
        return True
    except OSError as exc:
        logger.error("Failed to set execute permission on %s: %s", path, exc)
        return False


def apply_patch(
    executable_path: str | Path,
    original_path: str | Path,
    diff_path: str | Path,
    output_path: str | Path,
    timeout_seconds: float | None = DEFAULT_PROCESS_TIMEOUT,
) -> bool:
    """Apply one diff payload with the external patch utility.

    Success is decided by the output file existing after the process exits;
    the exit code is not consulted. Anything written to stderr is logged as
    a warning.

    Args:
        executable_path: Patch utility binary.
        original_path: Unmodified source artifact.
        diff_path: Diff payload.
        output_path: Where the patched artifact is written.
        timeout_seconds: Upper bound on the process run time.

    Returns:
        True if the output file exists after the run. Never raises.
    """
    exe = Path(executable_path)
    try:
        if not exe.is_file():
            logger.error("Patch executable not found: %s", exe)
            return False

        if os.name != "nt" and not ensure_executable(exe):
            return False

        result = subprocess.run(
            [str(exe), str(original_path), str(diff_path), str(output_path)],
            capture_output=True,
            text=True,
            cwd=str(exe.parent),
            timeout=timeout_seconds,
        )
        if result.stderr:
            logger.warning("Patch process warning: %s", result.stderr.strip())
        if result.stdout:
            logger.debug("Patch process output: %s", result.stdout.strip())

        return Path(output_path).is_file()
    except subprocess.TimeoutExpired:
        logger.error("Patch process timed out after %ss: %s", timeout_seconds, diff_path)
        return False
    except Exception as exc:
        logger.error("Patch execution failed: %s", exc)
        return False


class PatchExecutor:
    """Applies the companion and primary diff payloads of a configuration."""

    def __init__(
        self,
        executable_path: str | Path | None = None,
        tool_root: str | Path | None = None,
        timeout_seconds: float | None = DEFAULT_PROCESS_TIMEOUT,
    ) -> None:
        """Initialize with an explicit executable or a tool root to resolve it from.

        Raises:
            UnsupportedPlatformError: If resolving from tool_root on an unknown platform.
        """
        if executable_path is not None:
            self.executable_path: Path | None = Path(executable_path)
        elif tool_root is not None:
            self.executable_path = resolve_patcher_path(tool_root)
        else:
            self.executable_path = None
        self.timeout_seconds = timeout_seconds

    def apply(self, original_path: Path, diff_path: Path, output_path: Path) -> bool:
        if self.executable_path is None:
            logger.error("No patch executable configured")
            return False
        return apply_patch(
            self.executable_path,
            original_path,
            diff_path,
            output_path,
            timeout_seconds=self.timeout_seconds,
        )

    def patch_configuration(
        self,
        original_primary: Path,
        original_companion: Path,
        primary_diff: Path,
        companion_diff: Path,
        output_primary: Path,
        output_companion: Path,
    ) -> PatchOutcome:
        """Patch the companion file, then the primary file.

        Both invocations always run so both failure modes are logged. When
        both fail the companion failure is reported.
        """
        companion_ok = self.apply(original_companion, companion_diff, output_companion)
        primary_ok = self.apply(original_primary, primary_diff, output_primary)

        if not companion_ok:
            return PatchOutcome.COMPANION_PATCH_FAILED
        if not primary_ok:
            return PatchOutcome.PRIMARY_PATCH_FAILED
        return PatchOutcome.SUCCESS
