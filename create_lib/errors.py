"""Exception hierarchy shared by the create-lib stages."""

from __future__ import annotations

from pathlib import Path


class CreateLibError(Exception):
    """Base class for every fatal create-lib error."""


class PreconditionError(CreateLibError):
    """Raised before any stage runs when the run cannot start safely."""


class ManifestNotFoundError(CreateLibError):
    """Raised when a required manifest file is missing."""

    def __init__(self, message: str, path: Path) -> None:
        self.path = path
        super().__init__(message)


class ManifestParseError(CreateLibError):
    """Raised when a manifest is not valid JSON or has the wrong shape."""

    def __init__(self, path: Path, detail: str) -> None:
        self.path = path
        self.detail = detail
        super().__init__(f"Could not parse {path}: {detail}")
