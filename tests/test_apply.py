"""Tests for bump_cascade.apply."""

from __future__ import annotations

import threading
from pathlib import Path

import pytest
import tomlkit

from bump_cascade.apply import apply_bumps, format_report, write_update
from bump_cascade.bump import compute_bumps
from bump_cascade.changelog import DependencyChangelogPatch, ReleaseChangelogPatch
from bump_cascade.config import load_config
from bump_cascade.detectors import ChangelogDetector
from bump_cascade.errors import ApplyFailedError, PackageIOError
from bump_cascade.models import Major, Minor, Package, PackageUpdate, Patch
from bump_cascade.workspace import load_graph


def make_update(name: str, version: str = "1.0.0", bump=None) -> PackageUpdate:
    return PackageUpdate(package=Package(name=name, version=version), bump_type=bump or Patch())


class TestApplyBumps:
    def test_writes_workspace(self, workspace: Path) -> None:
        updates = compute_bumps(load_graph(load_config()), ChangelogDetector())

        apply_bumps(updates)

        a = tomlkit.parse((workspace / "packages/pkg-a/pyproject.toml").read_text())
        b = tomlkit.parse((workspace / "packages/pkg-b/pyproject.toml").read_text())
        assert a["project"]["version"] == "2.0.0"
        assert b["project"]["version"] == "2.0.1"
        assert list(b["project"]["dependencies"]) == ["pkg-a>=2.0.0,<3.0.0", "requests>=2.0"]

        assert (workspace / "packages/pkg-a/CHANGELOG.md").read_text().startswith(
            "## 2.0.0\n\n- Removed `old()`."
        )
        assert (workspace / "packages/pkg-b/CHANGELOG.md").read_text() == (
            "## 2.0.1\n\n- `pkg-a` upgraded to `2.0.0`\n\n## 2.0.0\n\n- Initial.\n"
        )

    def test_prints_each_update(self, capsys: pytest.CaptureFixture[str]) -> None:
        apply_bumps({"x": make_update("x")}, writer=lambda update: None)
        assert "  x: 1.0.0 → 1.0.1" in capsys.readouterr().out

    def test_failures_are_aggregated(self) -> None:
        written: list[str] = []
        lock = threading.Lock()

        def writer(update: PackageUpdate) -> None:
            if update.package.name in {"b", "c"}:
                raise PackageIOError(update.package.name, None, OSError("disk full"))
            with lock:
                written.append(update.package.name)

        updates = {n: make_update(n) for n in ["a", "b", "c", "d"]}

        with pytest.raises(ApplyFailedError) as excinfo:
            apply_bumps(updates, writer=writer)

        assert excinfo.value.packages == ["b", "c"]
        assert str(excinfo.value) == "Failed to update 2 package(s): b, c"
        # Every other package was still written
        assert sorted(written) == ["a", "d"]

    def test_unexpected_os_error_is_tagged(self) -> None:
        def writer(update: PackageUpdate) -> None:
            raise PermissionError("read-only")

        with pytest.raises(ApplyFailedError) as excinfo:
            apply_bumps({"a": make_update("a")}, writer=writer)
        assert excinfo.value.failures[0].package == "a"

    def test_failed_changelog_patch(self, tmp_path: Path) -> None:
        update = make_update("a", bump=Minor())
        update.changelog_patch = ReleaseChangelogPatch(
            package="a", path=str(tmp_path / "missing.md"), header="## 1.1.0"
        )

        with pytest.raises(ApplyFailedError) as excinfo:
            apply_bumps({"a": update}, writer=lambda u: None)
        assert excinfo.value.packages == ["a"]


    def test_non_os_errors_are_collected_per_package(self, tmp_path: Path) -> None:
        changelog = tmp_path / "CHANGELOG.md"
        changelog.write_bytes(b"\xff\xfe")
        a = make_update("a")
        a.changelog_patch = DependencyChangelogPatch(
            package="a", path=str(changelog), header="## 1.0.1", lines=[]
        )
        updates = {"a": a, "b": make_update("b"), "c": make_update("c")}

        def writer(update: PackageUpdate) -> None:
            if update.package.name == "b":
                raise ValueError("unexpected")

        with pytest.raises(ApplyFailedError) as excinfo:
            apply_bumps(updates, writer=writer)

        assert excinfo.value.packages == ["a", "b"]
        causes = {f.package: f.cause for f in excinfo.value.failures}
        assert isinstance(causes["a"], UnicodeDecodeError)
        assert isinstance(causes["b"], ValueError)


class TestWriteUpdate:
    def test_missing_manifest(self, tmp_path: Path) -> None:
        update = PackageUpdate(
            package=Package(name="gone", version="1.0.0", path=str(tmp_path / "gone")),
            bump_type=Patch(),
        )
        with pytest.raises(PackageIOError) as excinfo:
            write_update(update)
        assert excinfo.value.package == "gone"

    def test_undecodable_manifest(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_bytes(b'[project]\nname = "x\xff"\n')
        update = PackageUpdate(
            package=Package(name="enc", version="1.0.0", path=str(tmp_path)),
            bump_type=Patch(),
        )
        with pytest.raises(PackageIOError) as excinfo:
            write_update(update)
        assert excinfo.value.package == "enc"


class TestFormatReport:
    def test_empty(self) -> None:
        assert format_report({}) == "No packages have been updated."

    def test_aligned_names_and_missing_changelogs(self) -> None:
        with_changelog = make_update("core", "1.4.0", Major())
        with_changelog.changelog_patch = ReleaseChangelogPatch(
            package="core", path="CHANGELOG.md", header="## 2.0.0"
        )
        updates = {
            "core": with_changelog,
            "long-name": make_update("long-name", "0.1.0"),
        }

        assert format_report(updates).splitlines() == [
            "The following packages have been updated:",
            "core      : 1.4.0 -> 2.0.0",
            "long-name : 0.1.0 -> 0.1.1 (No Changelog)",
        ]
