"""TOML reading and writing utilities.

Uses tomlkit to preserve formatting and comments when modifying pyproject.toml
files. This is important for maintaining readable, diff-friendly files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from packaging.utils import canonicalize_name
from tomlkit.exceptions import TOMLKitError

from .errors import ConfigurationError, ManifestError

PRIVATE_CLASSIFIER = "Private :: Do Not Upload"


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file.

    Returns a TOMLDocument that preserves formatting when modified and saved.

    Raises:
        ManifestError: If the file is not valid UTF-8 TOML.
    """
    try:
        return tomlkit.parse(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as exc:
        raise ManifestError(f"Invalid UTF-8 in {path}: {exc}") from exc
    except TOMLKitError as exc:
        raise ManifestError(f"Invalid TOML in {path}: {exc}") from exc


def save_pyproject(path: Path, doc: tomlkit.TOMLDocument) -> None:
    """Save a TOMLDocument back to disk, preserving original formatting."""
    path.write_text(tomlkit.dumps(doc), encoding="utf-8")


def get_project_name(doc: tomlkit.TOMLDocument, fallback: str) -> str:
    """Extract the canonical package name from [project].name.

    Names are normalized per PEP 503 (lowercase, hyphens instead of
    underscores) for consistent comparison.

    Args:
        doc: Parsed pyproject.toml document.
        fallback: Value to return if name is not specified.
    """
    return canonicalize_name(doc.get("project", {}).get("name", fallback))


def get_project_version(doc: tomlkit.TOMLDocument) -> str | None:
    """Extract version from [project].version.

    Returns None for packages without a static version (missing or listed in
    [project].dynamic); those packages are never bumped.
    """
    version = doc.get("project", {}).get("version")
    return str(version) if version is not None else None


def is_publishable(doc: tomlkit.TOMLDocument) -> bool:
    """A package is publishable unless it carries the private classifier."""
    classifiers = doc.get("project", {}).get("classifiers", [])
    return PRIVATE_CLASSIFIER not in [str(c) for c in classifiers]


def get_dependency_strings(doc: tomlkit.TOMLDocument) -> list[str]:
    """Return the raw PEP 508 strings from [project].dependencies."""
    return [str(d) for d in doc.get("project", {}).get("dependencies", [])]


def get_dev_dependency_strings(doc: tomlkit.TOMLDocument) -> list[str]:
    """Collect development dependency strings from a pyproject.toml.

    Gathers dependencies from two locations:
    - [project].optional-dependencies.* (extras like [dev], [test])
    - [dependency-groups].* (PEP 735 dependency groups)

    Group includes ({include-group = "..."}) are not requirement strings and
    are skipped.
    """
    deps: list[str] = []
    project = doc.get("project", {})
    for group_deps in project.get("optional-dependencies", {}).values():
        deps.extend(str(d) for d in group_deps if isinstance(d, str))
    for group_deps in doc.get("dependency-groups", {}).values():
        deps.extend(str(d) for d in group_deps if isinstance(d, str))
    return deps


def get_workspace_member_globs(doc: tomlkit.TOMLDocument) -> list[str]:
    """Extract workspace member glob patterns from [tool.uv.workspace].

    These patterns (e.g., "packages/*", "libs/*") define which directories
    contain workspace packages.

    Raises:
        ConfigurationError: If no workspace members are defined.
    """
    members = doc.get("tool", {}).get("uv", {}).get("workspace", {}).get("members")
    if not members:
        raise ConfigurationError(
            "No [tool.uv.workspace] members defined in root pyproject.toml"
        )
    return [str(m) for m in members]


def get_tool_table(doc: tomlkit.TOMLDocument) -> dict[str, Any]:
    """Return the [tool.bump-cascade] table as plain Python values."""
    table = doc.get("tool", {}).get("bump-cascade", {})
    return table.unwrap() if hasattr(table, "unwrap") else dict(table)
