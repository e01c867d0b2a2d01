"""Change detectors: decide whether a package has a pending change of its own.

A detector answers one question per package, without side effects: which
bump does this package need for its own changes, if any? Two detectors ship
with bump-cascade:

- ChangelogDetector reads a pending "## Unreleased <kind>" section at the top
  of the package changelog.
- GitChangeDetector reports a patch bump for packages whose files changed
  since the tag of their current version.
"""

from __future__ import annotations

import re
from pathlib import Path

from .changelog import ChangelogPatch, build_release_patch
from .errors import ConfigurationError, ManifestError
from .models import BumpType, Major, Minor, Package, PackageUpdate, Patch, PreRelease
from .shell import git
from .versions import PRERELEASE_FLAGS, is_prerelease_flag

_HEADING = re.compile(r"^##[ \t]+(?P<title>.+?)[ \t]*$", re.MULTILINE)

_KINDS: dict[str, type[Major] | type[Minor] | type[Patch] | type[PreRelease]] = {
    "major": Major,
    "breaking": Major,
    "minor": Minor,
    "feat": Minor,
    "feature": Minor,
    "patch": Patch,
    "fix": Patch,
    "prerelease": PreRelease,
    "pre-release": PreRelease,
    "pre": PreRelease,
}


def tag_name(package: Package) -> str:
    """Git tag marking the release of a package's current version."""
    return f"{package.name}/v{package.version}"


class ChangeDetector:
    """Base class for change detectors."""

    name = "none"

    def try_detect(self, package: Package) -> BumpType | None:
        """Return the bump the package needs for its own changes, or None."""
        return None

    def changelog_patch(self, update: PackageUpdate) -> ChangelogPatch | None:
        """Changelog edit releasing a detected change, if the detector has one."""
        return None


def parse_unreleased_heading(package: str, content: str) -> BumpType | None:
    """Read the bump declared by the first heading of a changelog.

    Examples:
        "## Unreleased major" → Major()
        "## Unreleased fix" → Patch()
        "## Unreleased" → Patch()
        "## Unreleased prerelease beta" → PreRelease(flag="beta")
        "## 1.2.0" → None

    Raises:
        ConfigurationError: If the heading names an unknown kind.
    """
    match = _HEADING.search(content)
    if not match:
        return None
    words = match["title"].split()
    if words[0].lower() != "unreleased":
        return None
    if len(words) == 1:
        return Patch()

    kind = _KINDS.get(words[1].lower())
    if kind is None:
        raise ConfigurationError(
            f"{package}: unknown change kind {words[1]!r} in changelog heading "
            f"(expected one of: {', '.join(_KINDS)})"
        )
    if kind is PreRelease:
        flag = words[2] if len(words) > 2 else None
        if flag is not None and not is_prerelease_flag(flag):
            raise ConfigurationError(
                f"{package}: pre-release flag {flag!r} is not supported "
                f"(expected one of: {', '.join(PRERELEASE_FLAGS)})"
            )
        return PreRelease(flag=flag)
    return kind()


class ChangelogDetector(ChangeDetector):
    """Detects changes declared in the package changelog."""

    name = "changelog"

    def try_detect(self, package: Package) -> BumpType | None:
        if not package.changelog:
            return None
        path = Path(package.changelog)
        if not path.is_file():
            return None
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ManifestError(f"{package.name}: cannot read {path}: {exc}") from exc
        return parse_unreleased_heading(package.name, content)

    def changelog_patch(self, update: PackageUpdate) -> ChangelogPatch | None:
        return build_release_patch(update)


class GitChangeDetector(ChangeDetector):
    """Detects packages with commits since their current version was tagged.

    A version without a tag has not been released yet, so it needs no bump.
    """

    name = "git"

    def try_detect(self, package: Package) -> BumpType | None:
        tag = tag_name(package)
        if not git("tag", "--list", tag, check=False):
            return None
        changed_files = git("diff", "--name-only", tag, "HEAD", "--", package.path)
        if changed_files:
            print(f"  {package.name}: changed since {tag}")
            return Patch()
        return None


DETECTORS: dict[str, type[ChangeDetector]] = {
    ChangelogDetector.name: ChangelogDetector,
    GitChangeDetector.name: GitChangeDetector,
}


def make_detector(name: str) -> ChangeDetector:
    """Instantiate a detector by name.

    Raises:
        ConfigurationError: If no detector has that name.
    """
    try:
        return DETECTORS[name]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown change detector {name!r} (expected one of: {', '.join(DETECTORS)})"
        ) from None
