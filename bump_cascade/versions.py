"""Version parsing, bumping and constraint checks.

Versions are Semantic Versioning strings handled with the ``semver``
library, with special handling for incomplete version strings
(e.g., "1.0" → "1.0.0"). Dependency constraints are PEP 440 specifiers, so
they are evaluated with ``packaging``.
"""

from __future__ import annotations

import re

import semver
from packaging.specifiers import InvalidSpecifier, SpecifierSet
from packaging.version import InvalidVersion, Version

from .errors import ConfigurationError
from .models import (
    BumpType,
    DependencyChange,
    DependencyReference,
    Locked,
    Major,
    Minor,
    Patch,
    PreRelease,
    Ranged,
    Unconstrained,
)

DEFAULT_PRERELEASE_FLAG = "rc"

# Pre-release labels that PEP 440 normalizes (1.0.1-beta.1 == 1.0.1b1)
PRERELEASE_FLAGS = ("a", "alpha", "b", "beta", "c", "rc", "pre", "preview", "dev")

_CORE_RE = re.compile(r"^(?P<core>\d+(?:\.\d+)*)(?P<rest>[-+].*)?$")


def parse_version(version_str: str) -> semver.Version:
    """Parse a version string into a semver.Version object.

    Handles incomplete versions by padding with zeros:
    - "1" → "1.0.0"
    - "1.2" → "1.2.0"
    - "1.2.3-beta.1" → "1.2.3-beta.1"

    Only the first 3 numeric components are used (major.minor.patch).

    Raises:
        ValueError: If the string is not a semantic version.
    """
    match = _CORE_RE.match(version_str.strip())
    if not match:
        raise ValueError(f"{version_str!r} is not a valid semantic version")
    parts = match["core"].split(".")
    # Pad with zeros to ensure we have at least 3 parts
    while len(parts) < 3:
        parts.append("0")
    return semver.Version.parse(".".join(parts[:3]) + (match["rest"] or ""))


def is_prerelease_flag(flag: str) -> bool:
    """True if ``flag`` yields versions that pip and uv can compare."""
    return flag.lower() in PRERELEASE_FLAGS


def bump_patch(version_str: str) -> str:
    """Increment the patch version, finalizing a pre-release instead.

    Examples:
        "1.2.3" → "1.2.4"
        "1.0" → "1.0.1"
        "1.2.3-beta.2" → "1.2.3"
    """
    v = parse_version(version_str)
    if v.prerelease:
        return str(v.finalize_version())
    return str(v.bump_patch())


def bump_minor(version_str: str) -> str:
    """Increment the minor version; "1.3.0-rc.1" releases as "1.3.0"."""
    v = parse_version(version_str)
    if v.prerelease and v.patch == 0:
        return str(v.finalize_version())
    return str(v.bump_minor())


def bump_major(version_str: str) -> str:
    """Increment the major version; "2.0.0-rc.1" releases as "2.0.0"."""
    v = parse_version(version_str)
    if v.prerelease and v.minor == 0 and v.patch == 0:
        return str(v.finalize_version())
    return str(v.bump_major())


def bump_prerelease(version_str: str, flag: str | None = None) -> str:
    """Advance or start a pre-release.

    Examples:
        bump_prerelease("1.2.3", "beta") → "1.2.4-beta.1"
        bump_prerelease("1.2.4-beta.1", "beta") → "1.2.4-beta.2"
        bump_prerelease("1.2.4-alpha.3", "beta") → "1.2.4-beta.1"
        bump_prerelease("1.2.4-beta", None) → "1.2.4-beta.1"

    Raises:
        ConfigurationError: If the resulting pre-release label is not one of
            PRERELEASE_FLAGS.
    """
    v = parse_version(version_str)
    label = flag or (v.prerelease.split(".")[0] if v.prerelease else DEFAULT_PRERELEASE_FLAG)
    if not is_prerelease_flag(label):
        raise ConfigurationError(
            f"Cannot bump {version_str!r}: pre-release flag {label!r} is not supported "
            f"(expected one of: {', '.join(PRERELEASE_FLAGS)})"
        )
    if not v.prerelease:
        return str(v.bump_patch().replace(prerelease=f"{flag or DEFAULT_PRERELEASE_FLAG}.1"))

    identifiers = v.prerelease.split(".")
    if flag is not None and identifiers[0] != flag:
        return str(v.replace(prerelease=f"{flag}.1", build=None))

    if identifiers[-1].isdigit():
        identifiers[-1] = str(int(identifiers[-1]) + 1)
    else:
        identifiers.append("1")
    return str(v.replace(prerelease=".".join(identifiers), build=None))


def next_version(version_str: str, bump: BumpType) -> str:
    """Apply a bump type to a version."""
    if isinstance(bump, Major):
        return bump_major(version_str)
    if isinstance(bump, Minor):
        return bump_minor(version_str)
    if isinstance(bump, Patch):
        return bump_patch(version_str)
    if isinstance(bump, PreRelease):
        return bump_prerelease(version_str, bump.flag)
    if isinstance(bump, DependencyChange):
        if bump.prerelease is not None:
            return bump_prerelease(bump.base_version, bump.prerelease)
        return bump_patch(bump.base_version)
    raise TypeError(f"Unknown bump type: {bump!r}")


def _pep440(version_str: str) -> Version | None:
    try:
        return Version(version_str)
    except InvalidVersion:
        return None


def same_version(a: str, b: str) -> bool:
    """Compare two versions after PEP 440 normalization.

    "1.0" equals "1.0.0" and "1.0.0-beta.1" equals "1.0.0b1". Strings that
    are not PEP 440 versions only equal themselves.
    """
    va, vb = _pep440(a), _pep440(b)
    if va is None or vb is None:
        return a.strip() == b.strip()
    return va == vb


def allows(reference: DependencyReference, version: str) -> bool:
    """Does a dependency reference accept ``version``?"""
    if isinstance(reference, Unconstrained):
        return True
    if isinstance(reference, Ranged):
        parsed = _pep440(version)
        if parsed is None:
            return False
        try:
            return SpecifierSet(reference.specifier).contains(parsed, prereleases=True)
        except InvalidSpecifier:
            return False
    if isinstance(reference, Locked):
        return same_version(reference.version, version)
    raise TypeError(f"Unknown dependency reference: {reference!r}")


def is_locked(reference: DependencyReference) -> bool:
    """True only for references pinned to a single version."""
    if isinstance(reference, (Unconstrained, Ranged)):
        return False
    if isinstance(reference, Locked):
        return True
    raise TypeError(f"Unknown dependency reference: {reference!r}")


def next_breaking(version_str: str) -> str:
    """First version that would break a caret-style range on ``version``.

    Examples:
        "1.4.2" → "2.0.0"
        "0.3.1" → "0.4.0"
        "0.0.3" → "0.0.4"
    """
    v = parse_version(version_str)
    if v.major > 0:
        return f"{v.major + 1}.0.0"
    if v.minor > 0:
        return f"0.{v.minor + 1}.0"
    return f"0.0.{v.patch + 1}"
