"""Dependency handling utilities.

Provides functions for turning PEP 508 dependency strings into dependency
references, and for rewriting pyproject.toml files so that internal
workspace dependencies accept the versions they were bumped to.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, cast

from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from .errors import ManifestError
from .models import DependencyReference, Locked, Ranged, Unconstrained
from .toml import load_pyproject, save_pyproject
from .versions import next_breaking


def parse_requirement(dep_str: str) -> Requirement:
    """Parse a PEP 508 string, raising ManifestError when it is invalid."""
    try:
        return Requirement(dep_str)
    except InvalidRequirement as exc:
        raise ManifestError(f"Invalid requirement {dep_str!r}: {exc}") from exc


def dep_canonical_name(dep_str: str) -> str:
    """Extract the canonical package name from a PEP 508 dependency string.

    Handles version specifiers, extras, and normalizes the name per PEP 503
    (lowercase, hyphens instead of underscores).

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"
    """
    return canonicalize_name(parse_requirement(dep_str).name)


def dependency_reference(dep_str: str) -> DependencyReference:
    """Classify a PEP 508 dependency string.

    Examples:
        "pkg" → Unconstrained()
        "pkg @ file:///src/pkg" → Unconstrained()
        "pkg==1.2.3" → Locked(version="1.2.3")
        "pkg>=1.0,<2" → Ranged(specifier="<2,>=1.0")
    """
    req = parse_requirement(dep_str)
    if req.url or not req.specifier:
        return Unconstrained()
    specs = list(req.specifier)
    if len(specs) == 1:
        spec = specs[0]
        if spec.operator == "===" or (
            spec.operator == "==" and not spec.version.endswith(".*")
        ):
            return Locked(version=spec.version)
    return Ranged(specifier=str(req.specifier))


def collect_references(dep_strs: list[str]) -> dict[str, DependencyReference]:
    """Map canonical names to references, keeping the first declaration."""
    refs: dict[str, DependencyReference] = {}
    for dep_str in dep_strs:
        name = dep_canonical_name(dep_str)
        if name not in refs:
            refs[name] = dependency_reference(dep_str)
    return refs


def bound_dep(dep_str: str, version: str) -> str:
    """Rewrite a dependency so it accepts ``version``.

    Exact pins stay exact pins; any other reference becomes a caret-style
    range starting at ``version``. Extras and environment markers are kept.

    Examples:
        bound_dep("pkg==1.0.0", "1.1.0") → "pkg==1.1.0"
        bound_dep("pkg[b,a]>=1.0,<2", "2.0.0") → "pkg[a,b]>=2.0.0,<3.0.0"
        bound_dep("pkg; python_version<'3.12'", "0.3.0")
            → 'pkg>=0.3.0,<0.4.0; python_version < "3.12"'
    """
    req = parse_requirement(dep_str)
    # Sort extras alphabetically for consistent output
    extras = f"[{','.join(sorted(req.extras))}]" if req.extras else ""
    if isinstance(dependency_reference(dep_str), Locked):
        spec = f"=={version}"
    else:
        spec = f">={version},<{next_breaking(version)}"
    marker = f"; {req.marker}" if req.marker else ""
    return f"{req.name}{extras}{spec}{marker}"


def rewrite_pyproject(
    pyproject_path: Path,
    new_version: str,
    dependency_versions: dict[str, str],
) -> None:
    """Update a package's version and the bounds of bumped dependencies.

    This function:
    1. Updates [project].version to new_version
    2. Rewrites every reference to a package in dependency_versions

    References are rewritten in all locations:
    - [project].dependencies
    - [project].optional-dependencies.*
    - [dependency-groups].*

    Uses tomlkit to preserve formatting and comments.

    Args:
        pyproject_path: Path to the pyproject.toml file.
        new_version: New version string to set.
        dependency_versions: Map of package name → new version for bumped deps.
    """
    doc = load_pyproject(pyproject_path)
    # Cast needed because tomlkit types are complex unions
    project = cast(dict[str, Any], doc["project"])
    project["version"] = new_version

    if dependency_versions:
        deps = project.get("dependencies")
        if isinstance(deps, list):
            _bound_dep_list(deps, dependency_versions)

        opt_deps = project.get("optional-dependencies")
        if isinstance(opt_deps, dict):
            for group in opt_deps.values():
                if isinstance(group, list):
                    _bound_dep_list(group, dependency_versions)

        dep_groups = doc.get("dependency-groups")
        if isinstance(dep_groups, dict):
            for group in dep_groups.values():
                if isinstance(group, list):
                    _bound_dep_list(group, dependency_versions)

    save_pyproject(pyproject_path, doc)


def _bound_dep_list(deps: list, versions: dict[str, str]) -> None:
    """Rewrite bumped dependencies in a list, modifying in place."""
    for i, dep_str in enumerate(deps):
        if not isinstance(dep_str, str):
            continue
        name = dep_canonical_name(str(dep_str))
        if name in versions:
            deps[i] = bound_dep(str(dep_str), versions[name])
