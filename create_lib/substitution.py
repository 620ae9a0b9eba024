"""Token substitution across the files named by the parameter manifest.

Every file is read once, all of its tokens are replaced in memory, and the
result is written back once.  Files are independent of each other and are
processed concurrently in worker threads, but nothing is written until every
file has been read and transformed.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from create_lib.errors import CreateLibError
from create_lib.parameters import ParameterManifest
from create_lib.utils import print_debug, print_warning

Resolver = str | Callable[[], str | None]
DiagnosticSink = Callable[[str], None]

REPO_TOKEN = "{{REPO}}"
LIB_NAME_TOKEN = "{{LIB_NAME}}"
LEGACY_LIB_NAME_TOKEN = "LibNameCoreAPI"


class SubstitutionError(CreateLibError):
    """Raised when a file named by the parameter manifest cannot be rewritten."""

    def __init__(self, relative_path: str, message: str) -> None:
        self.relative_path = relative_path
        super().__init__(message)


class TokenTable:
    """Token -> resolver lookup.

    A resolver is either the replacement text or a zero-argument callable
    returning it.  Unknown tokens, and resolvers that produce an empty value,
    resolve to ``None``.
    """

    def __init__(self, resolvers: Mapping[str, Resolver] | None = None) -> None:
        self._resolvers: dict[str, Resolver] = dict(resolvers or {})

    def register(self, token: str, resolver: Resolver) -> None:
        self._resolvers[token] = resolver

    def resolve(self, token: str) -> str | None:
        resolver = self._resolvers.get(token)
        value = resolver() if callable(resolver) else resolver
        return value or None

    def tokens(self) -> list[str]:
        return list(self._resolvers)

    def __contains__(self, token: object) -> bool:
        return token in self._resolvers

    def __repr__(self) -> str:
        pairs = ", ".join(f"{token!r}: {self.resolve(token)!r}" for token in self._resolvers)
        return f"TokenTable({{{pairs}}})"


def default_token_table(library_name: str, repo_name: str) -> TokenTable:
    """The well-known tokens every template may use."""
    return TokenTable(
        {
            REPO_TOKEN: repo_name,
            LIB_NAME_TOKEN: library_name,
            LEGACY_LIB_NAME_TOKEN: library_name,
        }
    )


def escape_token(token: str) -> str:
    """Escape *token* so it matches as literal text.

    Curly braces, as in ``{{LIB_NAME}}``, would otherwise read as a repetition
    quantifier; every other pattern metacharacter is escaped too.
    """
    return re.escape(token)


def replace_token(content: str, token: str, value: str) -> tuple[str, int]:
    """Replace every occurrence of *token* in *content* with *value*.

    Returns:
        The new content and the number of replacements made.
    """
    return re.subn(escape_token(token), lambda _match: value, content)


def warn_diagnostic(message: str) -> None:
    """Default diagnostics sink: a yellow warning on the shared console."""
    print_warning(message)


@dataclass
class SubstitutionReport:
    """Outcome of one substitution pass."""

    files_written: list[str] = field(default_factory=list)
    files_untouched: list[str] = field(default_factory=list)
    replacements: dict[str, int] = field(default_factory=dict)
    skipped_tokens: list[str] = field(default_factory=list)

    @property
    def total_replacements(self) -> int:
        return sum(self.replacements.values())


def _resolve_target(folder: Path, relative_path: str) -> Path:
    pure = PurePosixPath(relative_path)
    if pure.is_absolute() or ".." in pure.parts or not pure.parts:
        raise SubstitutionError(
            relative_path,
            f"Refusing to substitute outside the template root: {relative_path!r}",
        )
    return folder.joinpath(*pure.parts)


def _transform_file(
    folder: Path,
    relative_path: str,
    values: dict[str, str],
) -> tuple[Path, str, int] | None:
    """Read one file and apply *values* (token -> replacement, in order).

    Returns:
        ``(file_path, new_content, replacements)``, or ``None`` when no token
        resolved and the file is to be left alone.
    """
    file_path = _resolve_target(folder, relative_path)
    try:
        # newline="" keeps CRLF line endings from the template intact.
        with file_path.open(encoding="utf-8", newline="") as handle:
            content = handle.read()
    except (OSError, UnicodeDecodeError) as exc:
        raise SubstitutionError(
            relative_path, f"Could not read {relative_path} in {folder}: {exc}"
        ) from exc

    if not values:
        return None

    count = 0
    for token, value in values.items():
        content, found = replace_token(content, token, value)
        count += found
    return file_path, content, count


def _write_file(folder: Path, relative_path: str, file_path: Path, content: str) -> None:
    try:
        with file_path.open("w", encoding="utf-8", newline="") as handle:
            handle.write(content)
    except OSError as exc:
        raise SubstitutionError(
            relative_path, f"Could not write {relative_path} in {folder}: {exc}"
        ) from exc


def _raise_first_error(results: list[Any]) -> None:
    for result in results:
        if isinstance(result, BaseException):
            raise result


async def replace_text(
    folder: str | Path,
    manifest: ParameterManifest,
    table: TokenTable,
    diagnostics: DiagnosticSink | None = None,
    max_parallel: int = 8,
    verbose: bool = False,
) -> SubstitutionReport:
    """Substitute every manifest token in every manifest file under *folder*.

    Runs in two passes: every file is read and transformed in memory first,
    and only when all of them succeeded is anything written back.  Each
    pass waits for all of its workers before raising, so no file changes
    after this coroutine returns or raises.

    Unknown tokens are reported through *diagnostics* and skipped; a file
    that cannot be read or written raises ``SubstitutionError``.
    """
    folder_path = Path(folder)
    emit = diagnostics or warn_diagnostic
    report = SubstitutionReport()
    print_debug(f"Replacement mapping: {table!r}", verbose)

    index = manifest.path_index()
    semaphore = asyncio.Semaphore(max_parallel)

    def _resolve(relative_path: str, tokens: list[str]) -> dict[str, str]:
        values: dict[str, str] = {}
        for token in tokens:
            value = table.resolve(token)
            if value is None:
                emit(f"No mapping found, skipping replace of {token} in {relative_path}")
                if token not in report.skipped_tokens:
                    report.skipped_tokens.append(token)
                continue
            print_debug(f"Escaped token to {escape_token(token)}", verbose)
            values[token] = value
        return values

    async def _transform(
        relative_path: str, values: dict[str, str]
    ) -> tuple[Path, str, int] | None:
        async with semaphore:
            return await asyncio.to_thread(_transform_file, folder_path, relative_path, values)

    async def _write(relative_path: str, file_path: Path, content: str) -> None:
        async with semaphore:
            await asyncio.to_thread(_write_file, folder_path, relative_path, file_path, content)

    planned = {path: _resolve(path, tokens) for path, tokens in index.items()}
    transformed = await asyncio.gather(
        *(_transform(path, values) for path, values in planned.items()),
        return_exceptions=True,
    )
    _raise_first_error(transformed)

    pending: list[tuple[str, Path, str]] = []
    for relative_path, result in zip(planned, transformed):
        if result is None:
            report.files_untouched.append(relative_path)
            continue
        file_path, content, count = result
        pending.append((relative_path, file_path, content))
        report.files_written.append(relative_path)
        report.replacements[relative_path] = count

    written = await asyncio.gather(
        *(_write(path, file_path, content) for path, file_path, content in pending),
        return_exceptions=True,
    )
    _raise_first_error(written)

    return report
