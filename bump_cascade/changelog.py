"""Changelog patches.

A patch is a description of an edit to one package's changelog, kept
separate from its execution: building one performs no I/O, so a dry run can
compute every patch without touching the filesystem, and the apply layer
can run them all at once.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

from .errors import PackageIOError

if TYPE_CHECKING:
    from .models import PackageUpdate

UNRELEASED_HEADING = re.compile(r"^##[ \t]+Unreleased\b.*$", re.MULTILINE | re.IGNORECASE)


def version_header(version: str) -> str:
    """Markdown heading for a released version."""
    return f"## {version}"


def dependency_line(update: PackageUpdate) -> str:
    """Bullet describing one upgraded dependency."""
    return f"- `{update.package.name}` upgraded to `{update.new_version}`"


class ChangelogPatch(BaseModel, ABC):
    """An edit to the changelog of ``package`` stored at ``path``."""

    model_config = ConfigDict(frozen=True)

    package: str
    path: str

    @abstractmethod
    def render(self, content: str) -> str:
        """Return the patched changelog text for ``content``."""

    def run(self) -> None:
        """Read the changelog, apply the patch and write it back.

        Each call applies the patch again; callers run a patch at most once.

        Raises:
            PackageIOError: If the file cannot be read or written.
        """
        path = Path(self.path)
        try:
            path.write_text(self.render(path.read_text(encoding="utf-8")), encoding="utf-8")
        except (OSError, UnicodeError) as exc:
            raise PackageIOError(self.package, self.path, exc) from exc


class DependencyChangelogPatch(ChangelogPatch):
    """Prepends a version section listing the upgraded dependencies."""

    header: str
    lines: list[str]

    def render(self, content: str) -> str:
        return f"{self.header}\n\n" + "\n".join(self.lines) + f"\n\n{content}"


class ReleaseChangelogPatch(ChangelogPatch):
    """Renames the pending "## Unreleased" section to the released version."""

    header: str

    def render(self, content: str) -> str:
        return UNRELEASED_HEADING.sub(self.header, content, count=1)


def build_dependency_patch(update: PackageUpdate) -> DependencyChangelogPatch:
    """Patch announcing the dependency upgrades that forced ``update``."""
    return DependencyChangelogPatch(
        package=update.package.name,
        path=str(update.package.changelog),
        header=version_header(update.new_version),
        lines=[dependency_line(dep) for dep in update.dependency_changes],
    )


def build_release_patch(update: PackageUpdate) -> ReleaseChangelogPatch:
    """Patch releasing the pending section of a directly changed package."""
    return ReleaseChangelogPatch(
        package=update.package.name,
        path=str(update.package.changelog),
        header=version_header(update.new_version),
    )
