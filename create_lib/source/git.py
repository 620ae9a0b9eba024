"""Git helpers for template acquisition.

Runs ``git`` as an async subprocess for shallow clones and removes the
version-control metadata of a materialised template.
"""

import asyncio
import os
import shutil
from pathlib import Path

from create_lib.config import GIT_DIRNAME
from create_lib.errors import CreateLibError


class SourceError(CreateLibError):
    """Raised when the template cannot be cloned or copied."""

    def __init__(self, message: str, command: str = "", stderr: str = ""):
        self.command = command
        self.stderr = stderr
        super().__init__(message)


async def _run_git(
    *args: str,
    cwd: str | Path | None = None,
    timeout: float = 120.0,
) -> tuple[str, str]:
    """Run a git command asynchronously and return (stdout, stderr).

    Raises SourceError if git is missing, times out, or exits non-zero.
    """
    cmd = ["git"] + list(args)
    cmd_str = " ".join(cmd)

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
            # Fail on missing credentials instead of waiting for input.
            env={**os.environ, "GIT_TERMINAL_PROMPT": "0"},
        )
    except FileNotFoundError as exc:
        raise SourceError(
            f"git executable not found, cannot run: {cmd_str}", command=cmd_str
        ) from exc

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise SourceError(
            f"Git command timed out after {timeout}s: {cmd_str}",
            command=cmd_str,
        )

    stdout = stdout_bytes.decode("utf-8", errors="replace").strip()
    stderr = stderr_bytes.decode("utf-8", errors="replace").strip()

    if process.returncode != 0:
        raise SourceError(
            f"Git command failed (exit {process.returncode}): {cmd_str}\n{stderr}",
            command=cmd_str,
            stderr=stderr,
        )

    return stdout, stderr


async def shallow_clone(
    url: str,
    target: str | Path,
    depth: int = 1,
    timeout: float = 120.0,
) -> Path:
    """Clone a single branch of *url* at *depth* into *target*.

    Returns:
        The clone directory.
    """
    target_path = Path(target)
    await _run_git(
        "clone",
        "--depth",
        str(depth),
        "--single-branch",
        "--",
        url,
        str(target_path),
        timeout=timeout,
    )
    return target_path


def remove_history(folder: str | Path) -> bool:
    """Delete ``<folder>/.git`` recursively.

    Returns:
        ``True`` if a ``.git`` entry was removed, ``False`` if none existed.
        ``OSError`` from the removal itself propagates.
    """
    git_dir = Path(folder) / GIT_DIRNAME
    if git_dir.is_dir() and not git_dir.is_symlink():
        shutil.rmtree(git_dir)
        return True
    if git_dir.exists() or git_dir.is_symlink():
        # Worktrees and submodules use a ``.git`` file pointing elsewhere.
        git_dir.unlink()
        return True
    return False
