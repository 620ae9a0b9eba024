"""Rewrites the generated project's ``package.json`` identity fields."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from create_lib.config import PACKAGE_JSON_FILENAME
from create_lib.errors import ManifestNotFoundError, ManifestParseError
from create_lib.utils import load_json, save_json

INITIAL_VERSION = "0.0.1"
GITHUB_URL = "https://github.com"


def repository_url(repo_name: str) -> str:
    return f"{GITHUB_URL}/{repo_name}"


def rewrite_identity(package: dict[str, Any], repo_name: str) -> dict[str, Any]:
    """Return a copy of *package* with identity fields set for *repo_name*.

    ``name``, ``repository``, ``homepage``, ``bugs.url`` and ``version`` are
    replaced outright, and every top-level key starting with ``_`` is
    dropped.  All other fields are kept as they are.
    """
    url = repository_url(repo_name)
    result = {key: value for key, value in package.items() if not key.startswith("_")}

    bugs = result.get("bugs")
    result["bugs"] = dict(bugs) if isinstance(bugs, dict) else {}

    result["name"] = f"@{repo_name}"
    result["repository"] = url
    result["homepage"] = url
    result["bugs"]["url"] = f"{url}/issues"
    result["version"] = INITIAL_VERSION
    return result


async def update_package_json(folder: str | Path, repo_name: str) -> dict[str, Any]:
    """Rewrite ``<folder>/package.json`` in place.

    Returns:
        The object that was written.

    Raises:
        ManifestNotFoundError: If ``package.json`` is missing.
        ManifestParseError: If it is not a JSON object.
    """
    folder_path = Path(folder)
    package_file = folder_path / PACKAGE_JSON_FILENAME

    if not package_file.is_file():
        raise ManifestNotFoundError(
            f"{PACKAGE_JSON_FILENAME} does not exist in {folder_path}", package_file
        )

    try:
        package = load_json(package_file)
    except json.JSONDecodeError as exc:
        raise ManifestParseError(package_file, str(exc)) from exc
    if not isinstance(package, dict):
        raise ManifestParseError(package_file, "expected a JSON object")

    updated = rewrite_identity(package, repo_name)
    await save_json(updated, package_file)
    return updated
