"""Content digests for detecting source artifact drift."""

import hashlib
import logging
from pathlib import Path

from patch_hub.core.assets import AssetStore
from patch_hub.core.exceptions import DigestComputationError, SourceArtifactMissingError
from patch_hub.models import (
    ArtifactValidation,
    ConfigurationValidation,
    PatchConfiguration,
    ValidationStatus,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024


def compute_digest(file_path: str | Path, chunk_size: int = CHUNK_SIZE) -> str:
    """Compute the MD5 digest of a file in a single streaming pass.

    Args:
        file_path: File to hash.
        chunk_size: Bytes read per iteration.

    Returns:
        Lowercase hex digest.

    Raises:
        DigestComputationError: If the file cannot be read.
    """
    digest = hashlib.md5()
    try:
        with open(file_path, "rb") as f:
            while chunk := f.read(chunk_size):
                digest.update(chunk)
    except OSError as exc:
        raise DigestComputationError(f"Failed to hash '{file_path}': {exc}") from exc
    return digest.hexdigest()


def verify(
    artifact_path: str | Path,
    expected_digest: str | None,
    label: str = "",
) -> ArtifactValidation:
    """Compare an artifact's digest with the stored expected digest.

    Args:
        artifact_path: Artifact to check.
        expected_digest: Stored hex digest; empty means nothing to compare against.
        label: Prefix used in the message (usually the configuration name).

    Returns:
        ArtifactValidation with status, message and the computed digest.
    """
    prefix = f"{label}: " if label else ""
    path = Path(artifact_path)

    if not expected_digest:
        return ArtifactValidation(
            status=ValidationStatus.NO_DIGEST_STORED,
            message=f"{prefix}no digest stored for {path.name}",
        )

    if not path.is_file():
        return ArtifactValidation(
            status=ValidationStatus.SOURCE_NOT_FOUND,
            message=f"{prefix}source file not found: {path}",
        )

    try:
        actual = compute_digest(path)
    except DigestComputationError as exc:
        return ArtifactValidation(
            status=ValidationStatus.SOURCE_NOT_FOUND,
            message=f"{prefix}{exc}",
        )

    if actual.lower() == expected_digest.strip().lower():
        return ArtifactValidation(status=ValidationStatus.VALID, digest=actual)

    return ArtifactValidation(
        status=ValidationStatus.HASH_MISMATCH,
        message=(
            f"{prefix}{path.name} has been modified "
            f"(expected {expected_digest.lower()}, found {actual})"
        ),
        digest=actual,
    )


def verify_configuration(
    config: PatchConfiguration, store: AssetStore
) -> ConfigurationValidation:
    """Check both source artifacts of a configuration against its stored digests.

    A missing primary artifact makes the companion unverifiable as well;
    only the primary cause is reported.
    """
    report = ConfigurationValidation(display_name=config.display_name)
    if not config.source_file:
        report.primary = ArtifactValidation(
            status=ValidationStatus.SOURCE_NOT_FOUND,
            message=f"{config.display_name}: no source file configured",
        )
        report.companion = ArtifactValidation(status=ValidationStatus.SOURCE_NOT_FOUND)
        return report

    primary_path = store.resolve(config.source_file)
    if not config.expected_primary_digest and not config.expected_companion_digest:
        report.primary = verify(primary_path, "", config.display_name)
        report.companion = ArtifactValidation(status=ValidationStatus.NO_DIGEST_STORED)
        return report

    if not store.exists(primary_path):
        report.primary = ArtifactValidation(
            status=ValidationStatus.SOURCE_NOT_FOUND,
            message=f"{config.display_name}: source file not found: {primary_path}",
        )
        report.companion = ArtifactValidation(status=ValidationStatus.SOURCE_NOT_FOUND)
        return report

    report.primary = verify(primary_path, config.expected_primary_digest, config.display_name)
    report.companion = verify(
        store.resolve(config.companion_file),
        config.expected_companion_digest,
        config.display_name,
    )
    return report


def generate_digests(config: PatchConfiguration, store: AssetStore) -> tuple[str, str]:
    """Compute and store expected digests from the current source artifacts.

    Both digests are computed before either field is written, so the
    configuration is never left half-updated.

    Returns:
        (primary digest, companion digest)

    Raises:
        SourceArtifactMissingError: If the source or companion file is missing.
        DigestComputationError: If a file cannot be read.
    """
    if not config.source_file:
        raise SourceArtifactMissingError(
            f"Cannot generate digests for '{config.display_name}': no source file configured"
        )

    primary_path = store.resolve(config.source_file)
    companion_path = store.resolve(config.companion_file)
    if not store.exists(primary_path):
        raise SourceArtifactMissingError(f"Source file not found: {primary_path}")
    if not store.exists(companion_path):
        raise SourceArtifactMissingError(f"Companion file not found: {companion_path}")

    primary_digest = compute_digest(primary_path)
    companion_digest = compute_digest(companion_path)

    config.expected_primary_digest = primary_digest
    config.expected_companion_digest = companion_digest
    logger.info(
        "Generated digests for '%s' - primary: %s, companion: %s",
        config.display_name,
        primary_digest,
        companion_digest,
    )
    return primary_digest, companion_digest
