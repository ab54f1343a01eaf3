import shutil
from pathlib import Path

import pytest

from patch_hub.core.patch_executor import PatchExecutor
from patch_hub.core.workspace import Workspace
from patch_hub.models import PackageRequirement, PackageRules, PatchConfiguration
from patch_hub.packages.poller import AvailabilityPoller


class CopyingPatchExecutor(PatchExecutor):
    """Stands in for the patch utility: copies the original to the output.

    Diff payload file names listed in fail_for produce no output.
    """

    def __init__(self, fail_for: set[str] | None = None):
        super().__init__(executable_path=None)
        self.fail_for = fail_for or set()
        self.calls: list[tuple[Path, Path, Path]] = []

    def apply(self, original_path: Path, diff_path: Path, output_path: Path) -> bool:
        self.calls.append((Path(original_path), Path(diff_path), Path(output_path)))
        if Path(diff_path).name in self.fail_for:
            return False
        shutil.copyfile(original_path, output_path)
        return True


@pytest.fixture
def make_configuration(tmp_path):
    """Factory: builds a configuration and writes its source and diff files under tmp_path."""

    def _make(
        name: str,
        dependency: str | None = None,
        with_files: bool = True,
        source_bytes: bytes | None = None,
        **overrides,
    ) -> PatchConfiguration:
        source_ref = f"Sources/{name}.fbx"
        primary_diff = f"Diffs/{name}.fbx.hdiff"
        companion_diff = f"Diffs/{name}.fbx.meta.hdiff"
        if with_files:
            (tmp_path / "Sources").mkdir(exist_ok=True)
            (tmp_path / "Diffs").mkdir(exist_ok=True)
            content = source_bytes if source_bytes is not None else name.encode()
            (tmp_path / source_ref).write_bytes(content)
            (tmp_path / (source_ref + ".meta")).write_text(f"guid: {name}\n")
            (tmp_path / primary_diff).write_bytes(b"diff")
            (tmp_path / companion_diff).write_bytes(b"meta diff")

        fields = dict(
            display_name=name,
            source_file=source_ref,
            output_dir="Patched",
            primary_diff=primary_diff,
            companion_diff=companion_diff,
            dependency=dependency,
        )
        fields.update(overrides)
        return PatchConfiguration(**fields)

    return _make


@pytest.fixture
def make_workspace(tmp_path):
    """Factory: wraps configurations in a Workspace rooted at tmp_path."""

    def _make(
        configurations: list[PatchConfiguration],
        requirements: list[PackageRequirement] | None = None,
    ) -> Workspace:
        return Workspace(
            configurations,
            package_rules=PackageRules(package_requirements=requirements or []),
            path=tmp_path / "patchhub.json",
        )

    return _make


@pytest.fixture
def make_executor():
    """Factory: CopyingPatchExecutor failing for the given diff file names."""

    def _make(*fail_for: str) -> CopyingPatchExecutor:
        return CopyingPatchExecutor(set(fail_for))

    return _make


@pytest.fixture(autouse=True)
def _reset_poller_flag():
    yield
    AvailabilityPoller.reset_batch_flag()
