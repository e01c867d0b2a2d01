"""Package index queries.

Only one question is ever asked of the index: which versions of a package
have already been published? The PyPI JSON API answers it at
``<index>/<name>/json``.
"""

from __future__ import annotations

import json
import urllib.error
import urllib.request

from packaging.version import InvalidVersion, Version

from .config import PYPI_URL
from .errors import RegistryError

USER_AGENT = "bump-cascade"


def fetch_published_versions(
    name: str, index_url: str = PYPI_URL, timeout: float = 30.0
) -> set[str] | None:
    """Return every version of ``name`` published on the index.

    Returns:
        Set of version strings, or None if the package was never published.

    Raises:
        RegistryError: On network failures or an unexpected response.
    """
    url = f"{index_url.rstrip('/')}/{name}/json"
    req = urllib.request.Request(
        url, headers={"User-Agent": USER_AGENT, "Accept": "application/json"}
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as response:
            payload = response.read()
    except urllib.error.HTTPError as e:
        if e.code == 404:
            return None
        raise RegistryError(f"HTTP {e.code}: {e.reason} ({url})") from e
    except urllib.error.URLError as e:
        raise RegistryError(f"{e.reason} ({url})") from e
    except OSError as e:
        raise RegistryError(f"{e} ({url})") from e

    try:
        data = json.loads(payload.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise RegistryError(f"JSON parse error: {e} ({url})") from e

    releases = data.get("releases") if isinstance(data, dict) else None
    if not isinstance(releases, dict):
        raise RegistryError(f"Unexpected response from {url}: no releases")
    return set(releases)


def has_version(published: set[str], version: str) -> bool:
    """True if ``version`` is among ``published`` (PEP 440 normalized)."""
    try:
        wanted = Version(version)
    except InvalidVersion:
        return version in published

    for candidate in published:
        try:
            if Version(candidate) == wanted:
                return True
        except InvalidVersion:
            continue
    return False
