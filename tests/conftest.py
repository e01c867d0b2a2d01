"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest
import tomlkit


@pytest.fixture
def tmp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file."""
    content = """\
[project]
name = "test-package"
version = "1.0.0"
dependencies = [
    "requests>=2.0",
    "internal-dep>=1.0,<2.0",
]

[project.optional-dependencies]
dev = ["pytest>=8.0", "another-internal==0.5.0"]

[dependency-groups]
test = ["pytest>=8.0", "group-internal>=0.1"]
"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content)
    return pyproject


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document."""
    content = """\
[project]
name = "my-package"
version = "2.0.0"
dependencies = ["click>=8.0", "pydantic>=2.0"]

[project.optional-dependencies]
dev = ["pytest>=8.0"]
docs = ["sphinx>=7.0"]

[dependency-groups]
test = ["hypothesis>=6.0", {include-group = "dev"}]

[tool.uv.workspace]
members = ["packages/*", "libs/*"]

[tool.bump-cascade]
ignore = ["*-internal"]
detector = "git"
"""
    return tomlkit.parse(content)


def write_member(
    root: Path,
    name: str,
    version: str | None = "1.0.0",
    deps: list[str] | None = None,
    changelog: str | None = None,
) -> Path:
    """Write packages/<name>/pyproject.toml (and CHANGELOG.md) under root."""
    package_dir = root / "packages" / name
    package_dir.mkdir(parents=True)
    lines = ["[project]", f'name = "{name}"']
    if version is not None:
        lines.append(f'version = "{version}"')
    else:
        lines.append('dynamic = ["version"]')
    lines.append("dependencies = [" + ", ".join(f'"{d}"' for d in deps or []) + "]")
    (package_dir / "pyproject.toml").write_text("\n".join(lines) + "\n")
    if changelog is not None:
        (package_dir / "CHANGELOG.md").write_text(changelog)
    return package_dir


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A uv workspace: pkg-a ← pkg-b ← pkg-c, run from its root.

    pkg-a has a pending major change; pkg-b requires pkg-a>=1.0,<2.0 and has
    a changelog; pkg-c requires pkg-b>=2.0,<3.0.
    """
    (tmp_path / "pyproject.toml").write_text(
        '[tool.uv.workspace]\nmembers = ["packages/*"]\n'
    )
    write_member(
        tmp_path,
        "pkg-a",
        "1.0.0",
        changelog="## Unreleased major\n\n- Removed `old()`.\n\n## 1.0.0\n\n- Initial.\n",
    )
    write_member(
        tmp_path,
        "pkg-b",
        "2.0.0",
        deps=["pkg-a>=1.0,<2.0", "requests>=2.0"],
        changelog="## 2.0.0\n\n- Initial.\n",
    )
    write_member(tmp_path, "pkg-c", "0.3.0", deps=["pkg-b>=2.0,<3.0"])
    monkeypatch.chdir(tmp_path)
    return tmp_path
