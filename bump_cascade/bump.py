"""Bump propagation: decide the new version of every package in a workspace.

The computation runs in two passes over the dependency graph:

1. Direct changes. Every versioned package is asked for its own pending
   change (via a ChangeDetector). Unversioned packages are never candidates.
2. Propagation, in dependency order. A package whose declared constraint
   does not accept the new version of an updated dependency must itself be
   bumped. Because dependencies are visited first, each package sees the
   final bump of everything it depends on.

Rules applied in pass 2, for a package P:

- Only dependencies whose new version P's references reject count as
  dependency changes. If there are none, P is left as it is.
- If P already changes on its own, its bump type wins; the dependency
  changes are attached to it.
- If P is pinned (==) to several changed dependencies with different bump
  types, the forced bump is ambiguous and skipped.
- Otherwise P takes the bump type of the dependencies it is pinned to, or a
  DependencyChange that inherits the first pre-release flag found among the
  dependency changes.
"""

from __future__ import annotations

from pathlib import Path

from .changelog import build_dependency_patch
from .detectors import ChangeDetector
from .graph import PackageGraph
from .models import (
    BumpType,
    DependencyChange,
    Package,
    PackageUpdate,
    is_prerelease_bump,
    prerelease_flag,
)
from .shell import step


def detect_direct_changes(
    graph: PackageGraph, detector: ChangeDetector
) -> dict[str, PackageUpdate]:
    """Pass 1: ask the detector about every versioned package."""
    direct: dict[str, PackageUpdate] = {}
    for package in graph:
        if package.version is None:
            continue
        bump_type = detector.try_detect(package)
        if bump_type is None:
            continue
        update = PackageUpdate(package=package, bump_type=bump_type)
        update.changelog_patch = detector.changelog_patch(update)
        direct[package.name] = update
        print(f"  {package.name}: {bump_type.kind} change")
    return direct


def needs_dependency_bump(package: Package, dependency: PackageUpdate) -> bool:
    """True if ``package`` rejects the new version of ``dependency``."""
    return not package.allows_dependency_version(
        dependency.package.name, dependency.new_version
    )


def inherited_prerelease(dependency_changes: list[PackageUpdate]) -> str | None:
    """First non-empty pre-release flag carried by the dependency changes."""
    for change in dependency_changes:
        if is_prerelease_bump(change.bump_type):
            flag = prerelease_flag(change.bump_type)
            if flag:
                return flag
    return None


def find_locked_type(
    package: Package, dependency_changes: list[PackageUpdate]
) -> tuple[BumpType | None, bool]:
    """Bump type shared by the changed dependencies ``package`` is pinned to.

    Returns:
        Tuple of (locked type or None, ambiguous). ``ambiguous`` is True when
        the pinned dependencies bump in different ways.
    """
    locked = [
        change.bump_type
        for change in dependency_changes
        if package.is_locked_to(change.package.name)
    ]
    if not locked:
        return None, False
    if any(bump != locked[0] for bump in locked[1:]):
        return None, True
    return locked[0], False


def forced_bump_type(
    version: str,
    locked_type: BumpType | None,
    dependency_changes: list[PackageUpdate],
) -> BumpType:
    """Bump type forced on a package at ``version`` by its dependencies."""
    if isinstance(locked_type, DependencyChange):
        # Keep the flag but bump from this package's own version
        return DependencyChange(
            base_version=version, prerelease=locked_type.prerelease
        )
    if locked_type is not None:
        return locked_type
    return DependencyChange(
        base_version=version,
        prerelease=inherited_prerelease(dependency_changes),
    )


def compute_bumps(
    graph: PackageGraph, detector: ChangeDetector
) -> dict[str, PackageUpdate]:
    """Compute the update of every package that needs one.

    Args:
        graph: The filtered workspace graph.
        detector: Source of each package's own pending change.

    Returns:
        Map of package name → PackageUpdate, in dependency order.
    """
    step("Detecting changes")
    direct = detect_direct_changes(graph, detector)

    step("Propagating version bumps")
    updates: dict[str, PackageUpdate] = {}

    def visit(package: Package) -> None:
        update = direct.get(package.name)
        if update is not None:
            updates[package.name] = update

        dependency_changes = [
            updates[dep.name]
            for dep in graph.dependencies_in_workspace(package)
            if dep.name in updates and needs_dependency_bump(package, updates[dep.name])
        ]
        if not dependency_changes:
            return

        locked_type, ambiguous = find_locked_type(package, dependency_changes)

        if update is not None:
            # A package's own change takes priority over a propagated one
            update.dependency_changes.extend(dependency_changes)
            return

        if ambiguous:
            names = ", ".join(c.package.name for c in dependency_changes)
            print(f"  {package.name}: skipped (pinned dependencies disagree: {names})")
            return

        if package.version is None:
            return

        update = PackageUpdate(
            package=package,
            bump_type=forced_bump_type(package.version, locked_type, dependency_changes),
        )
        update.dependency_changes.extend(dependency_changes)
        if package.changelog and Path(package.changelog).is_file():
            update.changelog_patch = build_dependency_patch(update)
        updates[package.name] = update

        causes = ", ".join(c.package.name for c in dependency_changes)
        print(f"  {package.name}: dirty (depends on {causes})")

    graph.visit_in_dependency_order(visit)
    return updates
