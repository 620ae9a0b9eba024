"""Removes scaffold-only artifacts from the generated project."""

from __future__ import annotations

import shutil
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class CleanupReport:
    removed: list[str] = field(default_factory=list)
    renamed: dict[str, str] = field(default_factory=dict)
    skipped: list[str] = field(default_factory=list)


def remove_files(folder: Path, names: Iterable[str]) -> tuple[list[str], list[str]]:
    """Delete each named entry under *folder*; missing entries are skipped.

    Returns:
        ``(removed, missing)`` name lists.
    """
    removed: list[str] = []
    missing: list[str] = []
    for name in names:
        target = folder / name
        if target.is_dir() and not target.is_symlink():
            shutil.rmtree(target)
        elif target.exists() or target.is_symlink():
            target.unlink()
        else:
            missing.append(name)
            continue
        removed.append(name)
    return removed, missing


def rename_templates(
    folder: Path, renames: Mapping[str, str]
) -> tuple[dict[str, str], list[str]]:
    """Rename ``source -> target`` under *folder* when the source exists.

    An existing target is replaced by the template file.

    Returns:
        ``(renamed, missing_sources)``.
    """
    renamed: dict[str, str] = {}
    missing: list[str] = []
    for source_name, target_name in renames.items():
        source = folder / source_name
        if not source.exists():
            missing.append(source_name)
            continue
        source.replace(folder / target_name)
        renamed[source_name] = target_name
    return renamed, missing


def cleanup(
    folder: str | Path,
    files_to_remove: Iterable[str],
    files_to_rename: Mapping[str, str],
) -> CleanupReport:
    """Remove scaffold-only files, then rename ``*.template`` dotfiles."""
    folder_path = Path(folder)
    removed, missing_removals = remove_files(folder_path, files_to_remove)
    renamed, missing_renames = rename_templates(folder_path, files_to_rename)
    return CleanupReport(
        removed=removed,
        renamed=renamed,
        skipped=missing_removals + missing_renames,
    )
