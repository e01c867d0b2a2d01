"""Workspace configuration.

Settings live next to the uv workspace definition in the root
pyproject.toml:

    [tool.uv.workspace]
    members = ["packages/*"]

    [tool.bump-cascade]
    scope = ["pkg-*"]
    ignore = ["*-internal"]
    changelog = "CHANGELOG.md"
    detector = "changelog"
    registry-url = "https://pypi.org/pypi"
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigurationError
from .models import FilterPolicy
from .toml import get_tool_table, get_workspace_member_globs, load_pyproject

PYPI_URL = "https://pypi.org/pypi"


class WorkspaceConfig(BaseModel):
    """Settings for one workspace.

    Attributes:
        members: Workspace member globs from [tool.uv.workspace].
        scope: Default include globs for package names.
        ignore: Default exclude globs for package names.
        changelog: Changelog file name inside each package directory.
        detector: Change detector used by default ("changelog" or "git").
        registry_url: Base URL of the package index JSON API.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    members: list[str]
    scope: list[str] = Field(default_factory=list)
    ignore: list[str] = Field(default_factory=list)
    changelog: str = "CHANGELOG.md"
    detector: str = "changelog"
    registry_url: str = Field(default=PYPI_URL, alias="registry-url")

    def filter_policy(
        self, scope: list[str] | None = None, ignore: list[str] | None = None
    ) -> FilterPolicy:
        """Combine the configured globs with extra ones from the command line."""
        return FilterPolicy(
            scope=[*self.scope, *(scope or [])],
            ignore=[*self.ignore, *(ignore or [])],
        )


def load_config(root: Path | None = None) -> WorkspaceConfig:
    """Read the workspace configuration from ``root``/pyproject.toml.

    Raises:
        ConfigurationError: If the file is missing or the settings are invalid.
    """
    root = root or Path.cwd()
    pyproject = root / "pyproject.toml"
    if not pyproject.exists():
        raise ConfigurationError(f"No pyproject.toml found in {root}")

    doc = load_pyproject(pyproject)
    members = get_workspace_member_globs(doc)
    try:
        return WorkspaceConfig.model_validate({**get_tool_table(doc), "members": members})
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid [tool.bump-cascade] settings:\n{exc}") from exc
