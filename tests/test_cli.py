"""Tests for bump_cascade.cli."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from bump_cascade.cli import cli
from bump_cascade.errors import ConfigurationError


class TestBumpCommand:
    @patch("bump_cascade.cli.run_bump")
    def test_passes_options(self, mock_run: MagicMock) -> None:
        cli(["bump", "--dry-run", "--scope", "pkg-*", "--ignore", "pkg-x", "--detector", "git"])

        mock_run.assert_called_once_with(
            dry_run=True, scope=["pkg-*"], ignore=["pkg-x"], detector="git"
        )

    @patch("bump_cascade.cli.run_bump")
    def test_defaults(self, mock_run: MagicMock) -> None:
        cli(["bump"])

        mock_run.assert_called_once_with(dry_run=False, scope=[], ignore=[], detector=None)

    @patch("bump_cascade.cli.run_bump")
    def test_errors_exit_with_message(
        self, mock_run: MagicMock, capsys: pytest.CaptureFixture[str]
    ) -> None:
        mock_run.side_effect = ConfigurationError("Dependency cycle detected involving: a, b")

        with pytest.raises(SystemExit) as excinfo:
            cli(["bump"])

        assert excinfo.value.code == 1
        assert "ERROR: Dependency cycle detected involving: a, b" in capsys.readouterr().err

    def test_unknown_detector_is_rejected(self) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli(["bump", "--detector", "svn"])
        assert excinfo.value.code == 2


class TestTagCommand:
    @patch("bump_cascade.cli.run_tag", return_value=True)
    def test_force(self, mock_run: MagicMock) -> None:
        cli(["tag", "--force"])
        mock_run.assert_called_once_with(force=True)

    @patch("bump_cascade.cli.run_tag", return_value=False)
    def test_failure_exit_code(self, mock_run: MagicMock) -> None:
        with pytest.raises(SystemExit) as excinfo:
            cli(["tag"])
        assert excinfo.value.code == 1


def test_command_is_required() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli([])
    assert excinfo.value.code == 2
