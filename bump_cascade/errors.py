"""Exception types raised by bump-cascade.

Everything the tool raises on purpose derives from BumpCascadeError, so the
CLI can turn it into a clean error message. Per-package I/O failures are
OSErrors tagged with the package name.
"""

from __future__ import annotations


class BumpCascadeError(Exception):
    """Base class for expected, user-facing failures."""


class ConfigurationError(BumpCascadeError):
    """The workspace itself is invalid (cycles, duplicate names, bad config)."""


class ManifestError(BumpCascadeError):
    """A pyproject.toml could not be read or contains invalid requirements."""


class RegistryError(BumpCascadeError):
    """The package index could not be queried."""


class PackageIOError(OSError):
    """Reading or writing one package's files failed.

    Attributes:
        package: Name of the package whose file could not be processed.
        path: The file involved, if known.
    """

    def __init__(self, package: str, path: str | None, cause: BaseException) -> None:
        super().__init__(f"{package}: {cause}")
        self.package = package
        self.path = path
        self.cause = cause


class ApplyFailedError(BumpCascadeError):
    """One or more packages could not be updated on disk."""

    def __init__(self, failures: list[PackageIOError]) -> None:
        self.failures = failures
        self.packages = sorted({f.package for f in failures})
        super().__init__(
            f"Failed to update {len(self.packages)} package(s): "
            + ", ".join(self.packages)
        )
