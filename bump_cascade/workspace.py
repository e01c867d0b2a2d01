"""Workspace discovery.

Reads [tool.uv.workspace].members from the root pyproject.toml to find
package directories, and turns each member's pyproject.toml into a Package.
"""

from __future__ import annotations

import glob
from pathlib import Path

from .config import WorkspaceConfig
from .deps import collect_references
from .errors import ConfigurationError, ManifestError
from .graph import PackageGraph
from .models import FilterPolicy, Package
from .toml import (
    get_dependency_strings,
    get_dev_dependency_strings,
    get_project_name,
    get_project_version,
    is_publishable,
    load_pyproject,
)


def find_member_dirs(root: Path, member_globs: list[str]) -> list[Path]:
    """Expand member globs into package directories, in sorted order."""
    member_dirs: list[Path] = []
    for pattern in member_globs:
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match)
            if (p / "pyproject.toml").exists() and p not in member_dirs:
                member_dirs.append(p)
    return member_dirs


def read_package(
    package_dir: Path, root: Path | None = None, changelog: str = "CHANGELOG.md"
) -> Package:
    """Parse one member's pyproject.toml into a Package.

    Args:
        package_dir: Directory holding the pyproject.toml.
        root: Workspace root; the package path is stored relative to it.
        changelog: Changelog file name inside the package directory.

    Raises:
        ManifestError: On unreadable TOML or invalid requirement strings.
    """
    manifest = package_dir / "pyproject.toml"
    try:
        doc = load_pyproject(manifest)
    except OSError as exc:
        raise ManifestError(f"Cannot read {manifest}: {exc}") from exc

    path = package_dir.relative_to(root) if root else package_dir
    return Package(
        name=get_project_name(doc, package_dir.name),
        version=get_project_version(doc),
        path=str(path),
        dependencies=collect_references(get_dependency_strings(doc)),
        dev_dependencies=collect_references(get_dev_dependency_strings(doc)),
        changelog=str(path / changelog),
        publishable=is_publishable(doc),
    )


def discover_packages(config: WorkspaceConfig, root: Path | None = None) -> list[Package]:
    """Read every workspace member, in discovery order.

    Raises:
        ConfigurationError: If the member globs match no package.
    """
    root = root or Path.cwd()
    member_dirs = find_member_dirs(root, config.members)
    if not member_dirs:
        raise ConfigurationError("No packages found matching workspace members")
    return [read_package(d, root, config.changelog) for d in member_dirs]


def load_graph(
    config: WorkspaceConfig,
    policy: FilterPolicy | None = None,
    root: Path | None = None,
) -> PackageGraph:
    """Discover the workspace and build its filtered dependency graph."""
    packages = discover_packages(config, root)
    graph = PackageGraph.from_packages(packages, policy or config.filter_policy())

    # Print discovered packages for user feedback
    for name in graph.order:
        info = graph[name]
        deps = graph.dependencies_in_workspace(info)
        dep_list = f" → [{', '.join(d.name for d in deps)}]" if deps else ""
        print(f"  {name} {info.version or '<unversioned>'} ({info.path}){dep_list}")

    return graph
