"""Command pipelines: discover → compute → apply → report, and tagging.

This module orchestrates the bump-cascade commands:
1. Load the workspace configuration from the root pyproject.toml
2. Discover all packages and build the filtered dependency graph
3. Compute every package's bump, propagating through dependents
4. Apply the bumps (pyproject.toml and changelogs), unless dry-running
5. Print a summary

Tagging reuses the same discovery and asks the package index which
versions are already published.
"""

from __future__ import annotations

from functools import partial

from .apply import apply_bumps, format_report
from .bump import compute_bumps
from .config import load_config
from .detectors import make_detector
from .models import PackageUpdate
from .registry import fetch_published_versions
from .shell import confirm, step
from .tag import compute_packages_to_tag, format_packages_to_tag, tag_packages
from .workspace import load_graph


def run_bump(
    *,
    dry_run: bool = False,
    scope: list[str] | None = None,
    ignore: list[str] | None = None,
    detector: str | None = None,
) -> dict[str, PackageUpdate]:
    """Execute the bump pipeline.

    Args:
        dry_run: Compute and report, but do not write any file.
        scope: Extra include globs for package names.
        ignore: Extra exclude globs for package names.
        detector: Change detector name; defaults to the configured one.

    Returns:
        The computed updates.

    Raises:
        BumpCascadeError: On configuration problems or failed writes.
    """
    config = load_config()

    step("Discovering workspace packages")
    graph = load_graph(config, config.filter_policy(scope, ignore))

    updates = compute_bumps(graph, make_detector(detector or config.detector))

    if dry_run:
        step("Dry run: no files written")
    elif updates:
        apply_bumps(updates)

    print()
    print(format_report(updates))
    return updates


def run_tag(*, force: bool = False) -> bool:
    """Tag every package whose current version is ready to publish.

    Args:
        force: Tag without asking for confirmation.

    Returns:
        True if tags were created (or nothing needed tagging).
    """
    config = load_config()

    step("Discovering workspace packages")
    graph = load_graph(config)

    to_tag = compute_packages_to_tag(
        graph,
        make_detector(config.detector),
        partial(fetch_published_versions, index_url=config.registry_url),
    )
    if not to_tag:
        print("  Nothing to tag.")
        return True

    print(format_packages_to_tag(to_tag))
    if not force and not confirm():
        print("Aborted.")
        return False

    return tag_packages(to_tag)
