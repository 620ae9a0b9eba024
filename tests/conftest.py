"""Shared pytest fixtures for the create-lib test suite.

Provides reusable fixtures for:
- A small fixture template tree (package.json, parameters, token files)
- Config construction pointing at temporary folders
- A diagnostics collector
- Mock subprocess helpers
- A real git repository holding the fixture template
"""

from __future__ import annotations

import json
import shutil
import subprocess
from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from create_lib.config import Config


# ---------------------------------------------------------------------------
# Fixture template
# ---------------------------------------------------------------------------

FIXTURE_PACKAGE_JSON: dict[str, Any] = {
    "name": "@template/original",
    "version": "9.9.9",
    "description": "{{LIB_NAME}} fixture library",
    "repository": "https://github.com/template/original",
    "homepage": "https://example.com/original",
    "bugs": {"url": "https://github.com/template/original/issues", "email": "bugs@example.com"},
    "license": "Apache-2.0",
    "scripts": {"test": "jest"},
    "_resolved": "https://registry.npmjs.org/template/-/template-9.9.9.tgz",
    "_integrity": "sha512-abc",
}

FIXTURE_PARAMETERS: dict[str, list[str]] = {
    "{{LIB_NAME}}": ["a.txt", "package.json", "src/index.js"],
    "{{REPO}}": ["a.txt", "README.md"],
    "LibNameCoreAPI": ["src/index.js"],
    "UNKNOWN_TOKEN": ["b.txt"],
}

FIXTURE_FILES: dict[str, str] = {
    "a.txt": "lib={{LIB_NAME}} repo={{REPO}} again={{LIB_NAME}}\n",
    "b.txt": "UNKNOWN_TOKEN stays\n",
    "README.md": "# Docs\n\nSee https://github.com/{{REPO}}\n",
    "src/index.js": "class LibNameCoreAPI {}\n// {{LIB_NAME}} client\n",
    "untouched.txt": "{{LIB_NAME}} is not listed for this file\n",
    "types.d.ts": "declare class LibNameCoreAPI {}\n",
    "gitignore.template": "node_modules\n",
    "npmrc.template": "package-lock=false\n",
}


def write_template(root: Path) -> Path:
    """Write the fixture template tree under *root* and return it."""
    root.mkdir(parents=True, exist_ok=True)
    for rel_path, content in FIXTURE_FILES.items():
        file_path = root / rel_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")
    (root / "package.json").write_text(
        json.dumps(FIXTURE_PACKAGE_JSON, indent=2), encoding="utf-8"
    )
    (root / "template.parameters.json").write_text(
        json.dumps(FIXTURE_PARAMETERS, indent=2), encoding="utf-8"
    )
    return root


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """A fixture template tree in a temporary directory."""
    return write_template(tmp_path / "template")


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A destination folder already holding a copy of the fixture template."""
    return write_template(tmp_path / "project")


@pytest.fixture
def destination(tmp_path: Path) -> Path:
    """A destination folder path that does not exist yet."""
    return tmp_path / "out" / "myLib"


@pytest.fixture
def make_config(template_dir: Path, destination: Path) -> Callable[..., Config]:
    """Factory for ``Config`` objects pointing at the fixture template."""

    def factory(**overrides: Any) -> Config:
        values: dict[str, Any] = {
            "library_name": "Foo",
            "repo_name": "org/bar",
            "destination": destination,
            "template_dir": template_dir,
        }
        values.update(overrides)
        return Config(**values)

    return factory


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

@pytest.fixture
def diagnostics() -> list[str]:
    """A list usable as a diagnostics sink via ``diagnostics.append``."""
    return []


# ---------------------------------------------------------------------------
# Mock Subprocess (generic)
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_subprocess():
    """Mock asyncio subprocess for testing command execution.

    Returns a factory that creates mock subprocess instances with configurable
    stdout, stderr, and return codes.

    Usage:
        def test_command(mock_subprocess):
            proc = mock_subprocess(stdout="output", returncode=0)
            with patch("asyncio.create_subprocess_exec", return_value=proc):
                ...
    """
    def factory(
        stdout: str = "",
        stderr: str = "",
        returncode: int = 0,
    ) -> AsyncMock:
        mock_proc = AsyncMock()
        mock_proc.communicate = AsyncMock(
            return_value=(stdout.encode("utf-8"), stderr.encode("utf-8"))
        )
        mock_proc.returncode = returncode
        mock_proc.pid = 99999
        mock_proc.kill = MagicMock()
        mock_proc.wait = AsyncMock(return_value=returncode)
        return mock_proc

    return factory


# ---------------------------------------------------------------------------
# Git repository holding the fixture template
# ---------------------------------------------------------------------------

@pytest.fixture
def template_git_repo(tmp_path: Path) -> Path:
    """Real git repository containing the fixture template, one commit deep.

    Skips the test when the ``git`` executable is not available.
    """
    if shutil.which("git") is None:
        pytest.skip("git executable not available")

    repo_dir = write_template(tmp_path / "template-repo")

    def git(*args: str) -> None:
        subprocess.run(["git", *args], cwd=repo_dir, check=True, capture_output=True)

    git("init")
    git("config", "user.email", "test@create-lib.local")
    git("config", "user.name", "create-lib Test")
    git("config", "commit.gpgsign", "false")
    git("add", ".")
    git("commit", "-m", "Initial template")
    return repo_dir
