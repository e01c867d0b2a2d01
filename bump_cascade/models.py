"""Data models for bump-cascade.

These Pydantic models represent the core data structures shared by the
graph, the propagation engine and the apply layer.
"""

from __future__ import annotations

import fnmatch
from pathlib import Path
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .changelog import ChangelogPatch


class Unconstrained(BaseModel):
    """A dependency that accepts any version (no specifier, or a URL/path)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unconstrained"] = "unconstrained"


class Ranged(BaseModel):
    """A dependency constrained by a PEP 440 specifier set, e.g. ">=1.0,<2"."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["ranged"] = "ranged"
    specifier: str


class Locked(BaseModel):
    """A dependency pinned to exactly one version ("==1.2.3")."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["locked"] = "locked"
    version: str


DependencyReference = Annotated[
    Union[Unconstrained, Ranged, Locked], Field(discriminator="kind")
]


class Major(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["major"] = "major"


class Minor(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["minor"] = "minor"


class Patch(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["patch"] = "patch"


class PreRelease(BaseModel):
    """Move to (or advance) a pre-release tagged with ``flag``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["prerelease"] = "prerelease"
    flag: str | None = None


class DependencyChange(BaseModel):
    """A bump forced by a dependency rather than by the package's own change.

    Attributes:
        base_version: The dependent's version when the bump was decided.
        prerelease: Pre-release flag inherited from the dependencies, if any.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["dependency"] = "dependency"
    base_version: str
    prerelease: str | None = None


BumpType = Annotated[
    Union[Major, Minor, Patch, PreRelease, DependencyChange],
    Field(discriminator="kind"),
]


def prerelease_flag(bump: BumpType) -> str | None:
    """Return the pre-release flag carried by a bump, if any."""
    if isinstance(bump, PreRelease):
        return bump.flag
    if isinstance(bump, DependencyChange):
        return bump.prerelease
    return None


def is_prerelease_bump(bump: BumpType) -> bool:
    """True for bumps that produce a pre-release version."""
    return isinstance(bump, PreRelease) or (
        isinstance(bump, DependencyChange) and bump.prerelease is not None
    )


class Package(BaseModel):
    """A single package in the workspace.

    Attributes:
        name: Canonical (PEP 503) package name, unique within the workspace.
        version: Current version, or None for unversioned packages.
        path: Package directory, relative to the workspace root.
        dependencies: [project].dependencies by canonical name.
        dev_dependencies: Extras and dependency groups by canonical name.
        changelog: Path of the package's changelog file, if it has one.
        publishable: False for packages marked private.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str | None = None
    path: str = "."
    dependencies: dict[str, DependencyReference] = Field(default_factory=dict)
    dev_dependencies: dict[str, DependencyReference] = Field(default_factory=dict)
    changelog: str | None = None
    publishable: bool = True

    @property
    def manifest_path(self) -> Path:
        return Path(self.path) / "pyproject.toml"

    def references_to(self, name: str) -> list[DependencyReference]:
        """All references this package declares on ``name``."""
        return [
            ref
            for ref in (self.dependencies.get(name), self.dev_dependencies.get(name))
            if ref is not None
        ]

    def allows_dependency_version(self, name: str, version: str) -> bool:
        """True if every reference on ``name`` accepts ``version``."""
        from .versions import allows

        return all(allows(ref, version) for ref in self.references_to(name))

    def is_locked_to(self, name: str) -> bool:
        """True if any reference on ``name`` pins an exact version."""
        from .versions import is_locked

        return any(is_locked(ref) for ref in self.references_to(name))


class PackageUpdate(BaseModel):
    """The bump decided for one package during a run.

    ``dependency_changes`` lists the updates of dependencies that forced or
    contributed to this one. It is only appended to by the visitor that
    processes this package.
    """

    package: Package
    bump_type: BumpType
    dependency_changes: list[PackageUpdate] = Field(default_factory=list)
    changelog_patch: ChangelogPatch | None = None

    @property
    def old_version(self) -> str | None:
        return self.package.version

    @property
    def new_version(self) -> str:
        from .versions import next_version

        if self.package.version is None:
            raise ValueError(f"{self.package.name} has no version to bump")
        return next_version(self.package.version, self.bump_type)


class FilterPolicy(BaseModel):
    """Include/exclude globs applied to package names.

    Attributes:
        scope: Only packages matching one of these globs are kept. Empty
               means every package is in scope.
        ignore: Packages matching any of these globs are dropped.
    """

    scope: list[str] = Field(default_factory=list)
    ignore: list[str] = Field(default_factory=list)

    def matches(self, name: str) -> bool:
        if self.scope and not any(fnmatch.fnmatchcase(name, g) for g in self.scope):
            return False
        return not any(fnmatch.fnmatchcase(name, g) for g in self.ignore)
