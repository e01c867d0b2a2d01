"""Apply computed bumps to disk and summarize them.

Every update touches its own files (pyproject.toml and changelog), so all
changelog patches and manifest rewrites run concurrently. Failures are
collected per package and raised together once every task has finished.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor

from .deps import rewrite_pyproject
from .errors import ApplyFailedError, ManifestError, PackageIOError
from .models import PackageUpdate
from .shell import step


def write_update(update: PackageUpdate) -> None:
    """Rewrite a package's pyproject.toml for its new version.

    Raises:
        PackageIOError: If the manifest cannot be read, parsed or written.
    """
    package = update.package
    dependency_versions = {
        dep.package.name: dep.new_version for dep in update.dependency_changes
    }
    try:
        rewrite_pyproject(package.manifest_path, update.new_version, dependency_versions)
    except (OSError, UnicodeError, ManifestError) as exc:
        raise PackageIOError(package.name, str(package.manifest_path), exc) from exc


def apply_bumps(
    updates: Mapping[str, PackageUpdate],
    writer: Callable[[PackageUpdate], None] = write_update,
    max_workers: int | None = None,
) -> None:
    """Run every changelog patch and manifest rewrite, then report failures.

    Args:
        updates: Result of compute_bumps.
        writer: Manifest writer called once per update.
        max_workers: Thread pool size (default: the executor's default).

    Raises:
        ApplyFailedError: If any package could not be updated. Raised only
            after all tasks have completed.
    """
    step(f"Applying {len(updates)} version bumps")

    failures: list[PackageIOError] = []
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures: list[tuple[str, Future[None]]] = []
        for name, update in updates.items():
            if update.changelog_patch is not None:
                futures.append((name, pool.submit(update.changelog_patch.run)))
            futures.append((name, pool.submit(writer, update)))

        for name, future in futures:
            try:
                future.result()
            except PackageIOError as exc:
                failures.append(exc)
            except Exception as exc:
                # Any other task failure still belongs to its package
                failures.append(PackageIOError(name, None, exc))

    for name, update in updates.items():
        if not any(f.package == name for f in failures):
            print(f"  {name}: {update.old_version} → {update.new_version}")
    for failure in failures:
        print(f"  {failure.package}: FAILED ({failure.cause})")

    if failures:
        raise ApplyFailedError(failures)


def format_report(updates: Mapping[str, PackageUpdate]) -> str:
    """Human-readable summary of the computed updates."""
    if not updates:
        return "No packages have been updated."

    width = max(len(name) for name in updates)
    lines = ["The following packages have been updated:"]
    for update in updates.values():
        suffix = "" if update.changelog_patch is not None else " (No Changelog)"
        lines.append(
            f"{update.package.name.ljust(width)} : "
            f"{update.old_version} -> {update.new_version}{suffix}"
        )
    return "\n".join(lines)
