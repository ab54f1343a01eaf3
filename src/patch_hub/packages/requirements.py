"""Package requirement merging and version checks."""

import logging
from typing import Iterable

from patch_hub.models import (
    ANY_VERSION,
    PackageRequirement,
    PackageRules,
    PatchConfiguration,
    RequirementIssue,
)

logger = logging.getLogger(__name__)


def merge_requirements(
    global_rules: PackageRules | None,
    config: PatchConfiguration | None = None,
) -> list[PackageRequirement]:
    """Global requirements first; configuration entries replace globals of the same name."""
    merged: list[PackageRequirement] = list(global_rules.package_requirements) if global_rules else []
    if config is None:
        return merged

    for requirement in config.required_packages:
        existing = next(
            (i for i, r in enumerate(merged) if r.package_name == requirement.package_name),
            None,
        )
        if existing is None:
            merged.append(requirement)
        else:
            merged[existing] = requirement
    return merged


def collect_requirements(
    global_rules: PackageRules | None,
    configs: Iterable[PatchConfiguration],
) -> list[PackageRequirement]:
    """Merge requirements across several configurations; later configurations win."""
    collected: dict[str, PackageRequirement] = {}
    configs = list(configs)
    if not configs:
        return merge_requirements(global_rules)
    for config in configs:
        for requirement in merge_requirements(global_rules, config):
            collected[requirement.package_name] = requirement
    return list(collected.values())


def _parse_version(text: str) -> tuple[int, ...]:
    parts = text.strip().split(".")
    return tuple(int(part) for part in parts)


def compare_versions(installed: str | None, required: str | None) -> bool:
    """True if installed meets or exceeds required.

    An empty or "Any" requirement is always met. Versions are compared
    component-wise as integers; anything unparsable fails the check.
    """
    if not required or required == ANY_VERSION:
        return True
    if not installed:
        return False
    try:
        return _parse_version(installed) >= _parse_version(required)
    except ValueError:
        logger.debug("Cannot compare versions %r and %r", installed, required)
        return False


def check_requirements(
    requirements: list[PackageRequirement],
    installed: dict[str, str | None],
) -> list[RequirementIssue]:
    """Report missing and outdated packages.

    Args:
        requirements: Merged requirement list.
        installed: Installed package id mapped to its version.

    Returns:
        One issue per unmet requirement, in requirement order.
    """
    issues: list[RequirementIssue] = []
    for requirement in requirements:
        name = requirement.package_name
        if name not in installed:
            issues.append(RequirementIssue(
                package_name=name,
                kind="missing",
                message=requirement.missing_message or f"Package '{name}' is not installed",
                required_version=requirement.min_version,
                info_url=requirement.info_url,
            ))
            continue

        version = installed[name]
        if not compare_versions(version, requirement.min_version):
            issues.append(RequirementIssue(
                package_name=name,
                kind="outdated",
                message=requirement.outdated_message
                or f"Package '{name}' {version} is older than {requirement.min_version}",
                installed_version=version,
                required_version=requirement.min_version,
                info_url=requirement.info_url,
            ))
    return issues
