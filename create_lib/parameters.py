"""Parameter manifest loading.

``template.parameters.json`` sits at the template root and maps each
substitution token to the files it appears in::

    {
      "{{LIB_NAME}}": ["README.md", "src/index.js"],
      "{{REPO}}": ["README.md"]
    }
"""

from __future__ import annotations

import json
from pathlib import Path, PurePosixPath

from pydantic import RootModel, ValidationError

from create_lib.config import PARAMETERS_FILENAME
from create_lib.errors import ManifestNotFoundError, ManifestParseError
from create_lib.utils import load_json


class ParameterManifest(RootModel[dict[str, list[str]]]):
    """Token -> ordered list of POSIX paths relative to the template root."""

    def tokens(self) -> list[str]:
        return list(self.root)

    def paths(self) -> list[str]:
        """Every distinct path, in first-seen order."""
        return list(self.path_index())

    def path_index(self) -> dict[str, list[str]]:
        """Invert the manifest into path -> tokens.

        Paths are normalised (``./a.txt`` and ``a.txt`` are one entry) so every
        file gets a single read -> transform -> write unit.  Tokens keep
        manifest order, and a path listed twice under the same token only gets
        that token once.
        """
        index: dict[str, list[str]] = {}
        for token, paths in self.root.items():
            for path in paths:
                tokens = index.setdefault(PurePosixPath(path).as_posix(), [])
                if token not in tokens:
                    tokens.append(token)
        return index


def load_parameters(folder: str | Path) -> ParameterManifest:
    """Read and validate the parameter manifest at *folder*'s root.

    Raises:
        ManifestNotFoundError: If the manifest file is absent.
        ManifestParseError: If it is not JSON, or not a token -> list-of-paths
            object.
    """
    folder_path = Path(folder)
    params_file = folder_path / PARAMETERS_FILENAME

    if not params_file.is_file():
        raise ManifestNotFoundError(
            f"{PARAMETERS_FILENAME} does not exist in {folder_path}", params_file
        )

    try:
        data = load_json(params_file)
    except json.JSONDecodeError as exc:
        raise ManifestParseError(params_file, str(exc)) from exc

    try:
        return ParameterManifest.model_validate(data)
    except ValidationError as exc:
        raise ManifestParseError(
            params_file, "expected an object mapping tokens to lists of file paths"
        ) from exc
