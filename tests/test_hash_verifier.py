"""Tests for patch_hub.core.hash_verifier."""

import hashlib

import pytest

from patch_hub.core.assets import FilesystemAssetStore
from patch_hub.core.exceptions import SourceArtifactMissingError
from patch_hub.core.hash_verifier import (
    compute_digest,
    generate_digests,
    verify,
    verify_configuration,
)
from patch_hub.models import ValidationStatus

# MD5 of the empty byte string
EMPTY_DIGEST = "d41d8cd98f00b204e9800998ecf8427e"


# ---------------------------------------------------------------------------
# compute_digest
# ---------------------------------------------------------------------------

class TestComputeDigest:
    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.bin"
        path.write_bytes(b"")
        assert compute_digest(path) == EMPTY_DIGEST

    def test_matches_hashlib_across_chunks(self, tmp_path):
        data = bytes(range(256)) * 50
        path = tmp_path / "data.bin"
        path.write_bytes(data)
        assert compute_digest(path, chunk_size=1000) == hashlib.md5(data).hexdigest()

    def test_digest_is_lowercase_hex(self, tmp_path):
        path = tmp_path / "a.bin"
        path.write_bytes(b"abc")
        digest = compute_digest(path)
        assert digest == digest.lower()
        assert len(digest) == 32


# ---------------------------------------------------------------------------
# verify
# ---------------------------------------------------------------------------

class TestVerify:
    def test_empty_expected_is_no_digest_stored(self, tmp_path):
        path = tmp_path / "a.fbx"
        path.write_bytes(b"x")
        result = verify(path, "")
        assert result.status == ValidationStatus.NO_DIGEST_STORED

    def test_missing_file_is_source_not_found(self, tmp_path):
        result = verify(tmp_path / "missing.fbx", EMPTY_DIGEST)
        assert result.status == ValidationStatus.SOURCE_NOT_FOUND

    def test_matching_digest_is_valid_case_insensitive(self, tmp_path):
        path = tmp_path / "a.fbx"
        path.write_bytes(b"abc")
        expected = hashlib.md5(b"abc").hexdigest().upper()
        result = verify(path, expected)
        assert result.status == ValidationStatus.VALID
        assert result.digest == expected.lower()

    def test_mismatch_names_label(self, tmp_path):
        path = tmp_path / "Avatar1.fbx"
        path.write_bytes(b"not empty")
        result = verify(path, EMPTY_DIGEST, label="Avatar1")
        assert result.status == ValidationStatus.HASH_MISMATCH
        assert "Avatar1" in result.message

    def test_verify_is_idempotent(self, tmp_path):
        path = tmp_path / "a.fbx"
        path.write_bytes(b"stable")
        expected = hashlib.md5(b"stable").hexdigest()
        first = verify(path, expected)
        second = verify(path, expected)
        assert first.status == second.status == ValidationStatus.VALID
        assert first.digest == second.digest


# ---------------------------------------------------------------------------
# verify_configuration / generate_digests
# ---------------------------------------------------------------------------

class TestVerifyConfiguration:
    def test_no_digests_stored(self, tmp_path, make_configuration):
        config = make_configuration("Avatar1")
        result = verify_configuration(config, FilesystemAssetStore(tmp_path))
        assert result.primary.status == ValidationStatus.NO_DIGEST_STORED
        assert result.companion.status == ValidationStatus.NO_DIGEST_STORED
        assert result.has_problems is False

    def test_empty_file_digest_against_non_empty_source(self, tmp_path, make_configuration):
        config = make_configuration(
            "Avatar1",
            expected_primary_digest=EMPTY_DIGEST,
            expected_companion_digest=EMPTY_DIGEST,
        )
        result = verify_configuration(config, FilesystemAssetStore(tmp_path))
        assert result.primary.status == ValidationStatus.HASH_MISMATCH
        assert result.has_problems is True
        assert any("Avatar1" in message for message in result.messages())

    def test_missing_primary_short_circuits(self, tmp_path, make_configuration):
        config = make_configuration(
            "Avatar1",
            with_files=False,
            expected_primary_digest=EMPTY_DIGEST,
            expected_companion_digest=EMPTY_DIGEST,
        )
        result = verify_configuration(config, FilesystemAssetStore(tmp_path))
        assert result.primary.status == ValidationStatus.SOURCE_NOT_FOUND
        assert result.companion.status == ValidationStatus.SOURCE_NOT_FOUND
        assert len(result.messages()) == 1


class TestGenerateDigests:
    def test_generate_then_verify_is_valid(self, tmp_path, make_configuration):
        store = FilesystemAssetStore(tmp_path)
        config = make_configuration("Avatar1")

        primary, companion = generate_digests(config, store)

        assert config.expected_primary_digest == primary
        assert config.expected_companion_digest == companion
        assert verify_configuration(config, store).is_valid

    def test_missing_companion_leaves_config_untouched(self, tmp_path, make_configuration):
        store = FilesystemAssetStore(tmp_path)
        config = make_configuration("Avatar1")
        (tmp_path / "Sources" / "Avatar1.fbx.meta").unlink()

        with pytest.raises(SourceArtifactMissingError):
            generate_digests(config, store)

        assert config.expected_primary_digest == ""
        assert config.expected_companion_digest == ""

    def test_no_source_file_configured(self, tmp_path, make_configuration):
        config = make_configuration("Avatar1", with_files=False, source_file=None)
        with pytest.raises(SourceArtifactMissingError):
            generate_digests(config, FilesystemAssetStore(tmp_path))
