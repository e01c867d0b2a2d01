"""Tagging: mark released package versions in git.

A package is ready to be tagged when it has a version, may be published,
has no pending change of its own, and its current version is not on the
package index yet. Tags follow the pattern {package-name}/v{version}.
"""

from __future__ import annotations

import subprocess
from collections.abc import Callable
from enum import Enum

from pydantic import BaseModel

from .detectors import ChangeDetector, tag_name
from .graph import PackageGraph
from .models import Package
from .registry import has_version
from .shell import git, step


class PublishStatus(str, Enum):
    FIRST_TIME = "first-time"
    NEW_VERSION = "new-version"
    ALREADY_PUBLISHED = "already-published"


class PackageToTag(BaseModel):
    package: Package
    first_publish: bool


def publish_status(published: set[str] | None, version: str) -> PublishStatus:
    """Classify a version against what the index already has."""
    if published is None:
        return PublishStatus.FIRST_TIME
    if has_version(published, version):
        return PublishStatus.ALREADY_PUBLISHED
    return PublishStatus.NEW_VERSION


def should_tag(package: Package, detector: ChangeDetector) -> bool:
    """Skip private and unversioned packages, and work in progress."""
    if not package.publishable or package.version is None:
        return False
    return detector.try_detect(package) is None


def compute_packages_to_tag(
    graph: PackageGraph,
    detector: ChangeDetector,
    fetch_versions: Callable[[str], set[str] | None],
) -> list[PackageToTag]:
    """Find the packages whose current version should be tagged.

    Args:
        graph: The workspace graph.
        detector: Used to skip packages with a pending change.
        fetch_versions: Returns the published versions of a package, or
                        None if it was never published.
    """
    step("Finding packages to tag")
    to_tag: list[PackageToTag] = []

    def visit(package: Package) -> None:
        if package.version is None or not should_tag(package, detector):
            return
        status = publish_status(fetch_versions(package.name), package.version)
        if status is PublishStatus.ALREADY_PUBLISHED:
            return
        to_tag.append(
            PackageToTag(
                package=package, first_publish=status is PublishStatus.FIRST_TIME
            )
        )

    graph.visit_in_dependency_order(visit)
    return to_tag


def format_packages_to_tag(to_tag: list[PackageToTag]) -> str:
    """Summary listing the packages about to be tagged."""
    width = max(len(t.package.name) for t in to_tag)
    lines = ["The following packages will be tagged:"]
    for t in to_tag:
        first = " (first publish)" if t.first_publish else ""
        lines.append(f"{t.package.name.ljust(width)} : ({t.package.version}){first}")
    return "\n".join(lines)


def tag_packages(to_tag: list[PackageToTag]) -> bool:
    """Create the git tags, stopping at the first failure.

    Returns:
        True if every package was tagged.
    """
    step("Creating package tags")
    for t in to_tag:
        tag = tag_name(t.package)
        try:
            if not git("tag", "--list", tag, check=False):
                git("tag", tag)
        except subprocess.CalledProcessError as exc:
            print(f"  ✗ {t.package.name}\n\n{exc.stderr or exc}")
            return False
        print(f"  ✓ {t.package.name}: {tag}")
    return True
