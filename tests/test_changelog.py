"""Tests for bump_cascade.changelog."""

from __future__ import annotations

from pathlib import Path

import pytest

from bump_cascade.changelog import (
    ChangelogPatch,
    DependencyChangelogPatch,
    ReleaseChangelogPatch,
    build_dependency_patch,
    version_header,
)
from bump_cascade.errors import PackageIOError
from bump_cascade.models import DependencyChange, Major, Package, PackageUpdate, PreRelease


@pytest.fixture
def update(tmp_path: Path) -> PackageUpdate:
    """app 1.0.0 bumped because core and utils were upgraded."""
    app = Package(name="app", version="1.0.0", changelog=str(tmp_path / "CHANGELOG.md"))
    update = PackageUpdate(package=app, bump_type=DependencyChange(base_version="1.0.0"))
    update.dependency_changes.extend(
        [
            PackageUpdate(package=Package(name="core", version="1.4.0"), bump_type=Major()),
            PackageUpdate(
                package=Package(name="utils", version="0.2.0"),
                bump_type=PreRelease(flag="beta"),
            ),
        ]
    )
    return update


def test_version_header() -> None:
    assert version_header("1.2.3") == "## 1.2.3"


class TestDependencyChangelogPatch:
    def test_build(self, update: PackageUpdate) -> None:
        patch = build_dependency_patch(update)
        assert patch.package == "app"
        assert patch.header == "## 1.0.1"
        assert patch.lines == [
            "- `core` upgraded to `2.0.0`",
            "- `utils` upgraded to `0.2.1-beta.1`",
        ]

    def test_build_performs_no_io(self, update: PackageUpdate) -> None:
        build_dependency_patch(update)
        assert not Path(str(update.package.changelog)).exists()

    def test_render(self) -> None:
        patch = DependencyChangelogPatch(
            package="app", path="CHANGELOG.md", header="## 1.0.1", lines=["- a", "- b"]
        )
        assert patch.render("## 1.0.0\n\n- Initial.\n") == (
            "## 1.0.1\n\n- a\n- b\n\n## 1.0.0\n\n- Initial.\n"
        )

    def test_run_prepends(self, update: PackageUpdate) -> None:
        changelog = Path(str(update.package.changelog))
        changelog.write_text("## 1.0.0\n\n- Initial.\n")

        build_dependency_patch(update).run()

        assert changelog.read_text() == (
            "## 1.0.1\n\n"
            "- `core` upgraded to `2.0.0`\n"
            "- `utils` upgraded to `0.2.1-beta.1`\n\n"
            "## 1.0.0\n\n- Initial.\n"
        )

    def test_run_twice_prepends_twice(self, update: PackageUpdate) -> None:
        changelog = Path(str(update.package.changelog))
        changelog.write_text("")
        patch = build_dependency_patch(update)

        patch.run()
        patch.run()

        assert changelog.read_text().count("## 1.0.1") == 2

    def test_run_missing_file_is_tagged_with_package(self, update: PackageUpdate) -> None:
        with pytest.raises(PackageIOError) as excinfo:
            build_dependency_patch(update).run()
        assert excinfo.value.package == "app"
        assert isinstance(excinfo.value, OSError)

    def test_run_undecodable_file_is_tagged_with_package(self, update: PackageUpdate) -> None:
        Path(str(update.package.changelog)).write_bytes(b"\xff\xfe")
        with pytest.raises(PackageIOError) as excinfo:
            build_dependency_patch(update).run()
        assert excinfo.value.package == "app"
        assert isinstance(excinfo.value.cause, UnicodeDecodeError)


class TestReleaseChangelogPatch:
    def test_renames_first_unreleased_heading(self) -> None:
        patch = ReleaseChangelogPatch(package="app", path="CHANGELOG.md", header="## 2.0.0")
        content = "# Changelog\n\n## Unreleased major\n\n- Big.\n\n## 1.0.0\n"
        assert patch.render(content) == "# Changelog\n\n## 2.0.0\n\n- Big.\n\n## 1.0.0\n"

    def test_leaves_content_without_unreleased_heading(self) -> None:
        patch = ReleaseChangelogPatch(package="app", path="CHANGELOG.md", header="## 2.0.0")
        assert patch.render("## 1.0.0\n") == "## 1.0.0\n"


def test_base_patch_is_abstract() -> None:
    with pytest.raises(TypeError):
        ChangelogPatch(package="app", path="CHANGELOG.md")  # type: ignore[abstract]
