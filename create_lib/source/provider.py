"""Template sources.

Both sources leave the same post-condition behind: the template's files
materialised under the destination folder.  ``select_source`` picks the
remote clone when a URL is configured and the bundled copy otherwise.
"""

from __future__ import annotations

import asyncio
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from rich.markup import escape

from create_lib.config import Config
from create_lib.utils import console

from .git import SourceError, shallow_clone

_IGNORED = shutil.ignore_patterns("__pycache__", "*.pyc")


@dataclass
class AcquisitionResult:
    """What a template source produced."""

    kind: str
    origin: str
    destination: Path
    files_copied: list[str] = field(default_factory=list)


class TemplateSource(Protocol):
    """Capability shared by the bundled and remote template sources."""

    def title(self) -> str:
        ...

    async def materialize(self, destination: Path, overwrite: bool) -> AcquisitionResult:
        ...


def copy_tree(source: Path, destination: Path, overwrite: bool) -> list[str]:
    """Copy *source* into *destination*, merging with existing directories.

    When *overwrite* is false any file already present at a copied path is a
    conflict and raises ``SourceError``; nothing is merged silently.  When it
    is true existing files are replaced.

    Returns:
        Copied file paths relative to *destination*, POSIX-style.
    """
    if not source.is_dir():
        raise SourceError(f"Template directory does not exist: {source}")

    copied: list[str] = []

    def _copy(src: str, dst: str) -> str:
        target = Path(dst)
        if target.exists():
            if not overwrite:
                raise FileExistsError(f"{target} already exists")
            # Read-only files (git packs) cannot be opened for writing.
            target.unlink()
        result = shutil.copy2(src, dst)
        copied.append(target.relative_to(destination).as_posix())
        return result

    try:
        shutil.copytree(
            source,
            destination,
            ignore=_IGNORED,
            copy_function=_copy,
            dirs_exist_ok=True,
        )
    except shutil.Error as exc:
        failures = exc.args[0] if exc.args and isinstance(exc.args[0], list) else []
        reasons = "; ".join(str(item[-1]) for item in failures) or str(exc)
        raise SourceError(f"Could not copy template into {destination}: {reasons}") from exc
    except OSError as exc:
        raise SourceError(f"Could not copy template into {destination}: {exc}") from exc

    return sorted(copied)


class LocalTemplateSource:
    """Copies the template bundled with the package."""

    def __init__(self, template_dir: str | Path) -> None:
        self.template_dir = Path(template_dir)

    def title(self) -> str:
        return "Copy template"

    async def materialize(self, destination: Path, overwrite: bool) -> AcquisitionResult:
        copied = await asyncio.to_thread(copy_tree, self.template_dir, destination, overwrite)
        return AcquisitionResult(
            kind="local",
            origin=str(self.template_dir),
            destination=destination,
            files_copied=copied,
        )


class GitTemplateSource:
    """Shallow, single-branch clone of a remote template repository.

    The clone goes into a scratch directory first and is then copied into
    the destination with the same overwrite policy as the bundled template,
    so an existing folder is never half-cloned.
    """

    def __init__(self, url: str, depth: int = 1, timeout: float = 120.0) -> None:
        self.url = url
        self.depth = depth
        self.timeout = timeout

    def title(self) -> str:
        return f"Cloning template from {self.url}"

    async def materialize(self, destination: Path, overwrite: bool) -> AcquisitionResult:
        console.print(f"  Cloning [bold]{escape(self.url)}[/bold]...")
        with tempfile.TemporaryDirectory(prefix="create-lib-") as scratch:
            clone_dir = await shallow_clone(
                self.url,
                Path(scratch) / "template",
                depth=self.depth,
                timeout=self.timeout,
            )
            copied = await asyncio.to_thread(copy_tree, clone_dir, destination, overwrite)

        return AcquisitionResult(
            kind="git",
            origin=self.url,
            destination=destination,
            files_copied=copied,
        )


def select_source(config: Config) -> TemplateSource:
    """Return the remote source when a template URL is set, else the bundled one."""
    if config.template_url:
        return GitTemplateSource(
            config.template_url,
            depth=config.tuning.clone_depth,
            timeout=config.tuning.clone_timeout,
        )
    return LocalTemplateSource(config.template_dir)
