"""Tests for patch_hub.packages.requirements and patch_hub.packages.installer."""

from unittest.mock import MagicMock

import pytest

from patch_hub.models import InstallResult, PackageRequirement, PackageRules, PatchConfiguration
from patch_hub.packages.installer import install_packages
from patch_hub.packages.requirements import (
    check_requirements,
    collect_requirements,
    compare_versions,
    merge_requirements,
)


def _rules(*requirements: PackageRequirement) -> PackageRules:
    return PackageRules(package_requirements=list(requirements))


# ---------------------------------------------------------------------------
# merge / collect
# ---------------------------------------------------------------------------

class TestMergeRequirements:
    def test_config_overrides_global_by_name(self):
        global_rules = _rules(
            PackageRequirement(package_name="base", min_version="1.0"),
            PackageRequirement(package_name="tools"),
        )
        config = PatchConfiguration(
            display_name="A",
            required_packages=[
                PackageRequirement(package_name="base", min_version="2.0"),
                PackageRequirement(package_name="extra"),
            ],
        )

        merged = merge_requirements(global_rules, config)

        assert [r.package_name for r in merged] == ["base", "tools", "extra"]
        assert merged[0].min_version == "2.0"

    def test_no_rules(self):
        assert merge_requirements(None, None) == []

    def test_collect_across_configurations(self):
        global_rules = _rules(PackageRequirement(package_name="base"))
        a = PatchConfiguration(display_name="A", required_packages=[PackageRequirement(package_name="x")])
        b = PatchConfiguration(display_name="B", required_packages=[PackageRequirement(package_name="y")])

        names = [r.package_name for r in collect_requirements(global_rules, [a, b])]

        assert names == ["base", "x", "y"]

    def test_collect_without_configurations_uses_globals(self):
        global_rules = _rules(PackageRequirement(package_name="base"))
        assert [r.package_name for r in collect_requirements(global_rules, [])] == ["base"]


# ---------------------------------------------------------------------------
# compare_versions
# ---------------------------------------------------------------------------

class TestCompareVersions:
    @pytest.mark.parametrize(
        "installed, required, expected",
        [
            ("1.0.0", "Any", True),
            ("1.0.0", "", True),
            (None, "Any", True),
            ("3.5.0", "3.4.9", True),
            ("3.5.0", "3.5.0", True),
            ("3.4.10", "3.4.9", True),
            ("3.4.0", "3.5", False),
            ("1.2.0-beta", "1.0.0", False),
            (None, "1.0", False),
        ],
    )
    def test_compare(self, installed, required, expected):
        assert compare_versions(installed, required) is expected


# ---------------------------------------------------------------------------
# check_requirements
# ---------------------------------------------------------------------------

class TestCheckRequirements:
    def test_missing_and_outdated(self):
        requirements = [
            PackageRequirement(package_name="base", min_version="2.0", info_url="https://example.com/base"),
            PackageRequirement(package_name="tools", min_version="1.0", outdated_message="Update tools"),
            PackageRequirement(package_name="ok"),
        ]
        installed = {"tools": "0.9", "ok": "5.0"}

        issues = check_requirements(requirements, installed)

        assert [(i.package_name, i.kind) for i in issues] == [("base", "missing"), ("tools", "outdated")]
        assert issues[0].is_missing
        assert issues[0].info_url == "https://example.com/base"
        assert issues[1].message == "Update tools"
        assert issues[1].installed_version == "0.9"

    def test_all_met(self):
        requirements = [PackageRequirement(package_name="base", min_version="1.0")]
        assert check_requirements(requirements, {"base": "1.0"}) == []


# ---------------------------------------------------------------------------
# install_packages
# ---------------------------------------------------------------------------

class TestInstallPackages:
    def test_sequential_with_delay(self):
        client = MagicMock()
        client.add_package.side_effect = [
            InstallResult(success=True),
            RuntimeError("service crashed"),
        ]
        sleep = MagicMock()

        results = install_packages(client, ["a", "b"], delay_ms=500, sleep=sleep)

        assert results["a"].success is True
        assert results["b"].success is False
        assert "service crashed" in results["b"].error
        assert [c.args[0] for c in client.add_package.call_args_list] == ["a", "b"]
        assert sleep.call_count == 2
        sleep.assert_called_with(0.5)
