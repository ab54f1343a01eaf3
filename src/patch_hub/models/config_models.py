"""Models for patch configurations and package requirements."""

from pathlib import PurePath

from pydantic import BaseModel, ConfigDict, Field

ANY_VERSION = "Any"
DEFAULT_COMPANION_SUFFIX = ".meta"
DEFAULT_OUTPUT_TAG = "FT"


class PackageRequirement(BaseModel):
    """A package that must be installed (optionally at a minimum version)."""

    model_config = ConfigDict(frozen=False)

    package_name: str
    min_version: str = ANY_VERSION
    info_url: str | None = None  # Page to open when the package is missing
    missing_message: str | None = None
    outdated_message: str | None = None


class PackageRules(BaseModel):
    """Global package requirements shared by every configuration."""

    model_config = ConfigDict(frozen=False)

    package_requirements: list[PackageRequirement] = Field(default_factory=list)


class PatchConfiguration(BaseModel):
    """A named patch target: source artifact, diff payloads and an optional dependency.

    All file fields are logical references resolved by an AssetStore.
    ``dependency`` is the display name of another configuration in the same
    workspace, never an owning reference.
    """

    model_config = ConfigDict(frozen=False)

    display_name: str
    version: str = "V1.0"
    patcher_version: str | None = None

    source_file: str | None = None  # Primary artifact; companion is source_file + companion_suffix
    companion_suffix: str = DEFAULT_COMPANION_SUFFIX
    output_dir: str | None = None
    output_tag: str = DEFAULT_OUTPUT_TAG

    primary_diff: str | None = None
    companion_diff: str | None = None

    expected_primary_digest: str = ""
    expected_companion_digest: str = ""

    dependency: str | None = None
    output_artifacts: list[str] = Field(default_factory=list)
    required_packages: list[PackageRequirement] = Field(default_factory=list)

    @property
    def companion_file(self) -> str | None:
        if not self.source_file:
            return None
        return self.source_file + self.companion_suffix

    def base_name(self) -> str:
        """Source file stem with spaces replaced by underscores."""
        if not self.source_file:
            return ""
        return PurePath(self.source_file).stem.replace(" ", "_")

    def expected_output_ref(self) -> str | None:
        """Logical reference of the patched primary artifact, or None if incomplete."""
        if not self.output_dir or not self.source_file:
            return None
        suffix = PurePath(self.source_file).suffix
        file_name = f"{self.base_name()} {self.output_tag}{suffix}"
        return str(PurePath(self.output_dir) / file_name)

    def expected_companion_output_ref(self) -> str | None:
        output_ref = self.expected_output_ref()
        if output_ref is None:
            return None
        return output_ref + self.companion_suffix
