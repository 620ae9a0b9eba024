"""create-lib configuration.

Typed run parameters for the generator pipeline. All settings use Pydantic v2
models so they are validated at construction time; the CLI builds one
``Config`` per invocation and hands it to ``Pipeline``, which never mutates it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

_BUNDLED_TEMPLATE_DIR = Path(__file__).parent / "template"

PARAMETERS_FILENAME = "template.parameters.json"
PACKAGE_JSON_FILENAME = "package.json"
GIT_DIRNAME = ".git"


class CleanupConfig(BaseModel):
    """Scaffold-only artifacts handled by the cleanup stage."""

    model_config = ConfigDict(frozen=True)

    files_to_remove: list[str] = Field(
        default_factory=lambda: ["types.d.ts", PARAMETERS_FILENAME],
        description="Files deleted from the generated project (missing files are ignored)",
    )
    files_to_rename: dict[str, str] = Field(
        default_factory=lambda: {
            "gitignore.template": ".gitignore",
            "npmrc.template": ".npmrc",
        },
        description="Template-suffixed files renamed to their real dotfile names",
    )


class TuningConfig(BaseModel):
    """Knobs for the acquisition and substitution stages."""

    model_config = ConfigDict(frozen=True)

    clone_depth: int = Field(default=1, ge=1, description="Depth passed to git clone")
    clone_timeout: int = Field(default=120, ge=5, description="git clone timeout in seconds")
    max_parallel_files: int = Field(
        default=8, ge=1, description="Maximum files substituted concurrently"
    )


class Config(BaseModel):
    """Run parameters for one create-lib invocation.

    ``library_name`` and ``repo_name`` arrive already normalised by the CLI
    (first character capitalised, leading ``@`` stripped).  ``destination``
    is the folder the new library is generated into.
    """

    model_config = ConfigDict(frozen=True)

    library_name: str = Field(..., min_length=1)
    repo_name: str = Field(..., min_length=1)
    destination: Path
    template_url: str | None = Field(default=None)
    template_dir: Path = Field(default=_BUNDLED_TEMPLATE_DIR)
    overwrite: bool = Field(default=False)
    verbose: bool = Field(default=False)
    tuning: TuningConfig = Field(default_factory=TuningConfig)
    cleanup: CleanupConfig = Field(default_factory=CleanupConfig)

    @field_validator("destination")
    @classmethod
    def _absolute_destination(cls, value: Path) -> Path:
        return Path(value).expanduser().absolute()

    @field_validator("template_url")
    @classmethod
    def _blank_url_is_none(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            return None
        return value

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls, **overrides: Any) -> "Config":
        """Build a ``Config`` from environment variables plus explicit overrides.

        Recognised variables (all optional):
            CREATE_LIB_OUTPUT_DIR, CREATE_LIB_TEMPLATE_URL, CREATE_LIB_TEMPLATE_DIR,
            CREATE_LIB_CLONE_TIMEOUT, CREATE_LIB_MAX_PARALLEL_FILES, CREATE_LIB_DEBUG.

        ``destination`` defaults to ``<CREATE_LIB_OUTPUT_DIR or cwd>/<library_name>``
        when it is not passed explicitly.  Overrides whose value is ``None``
        are ignored so CLI flags that were not given fall back to the
        environment.
        """
        tuning_kwargs: dict[str, Any] = {}
        if os.environ.get("CREATE_LIB_CLONE_TIMEOUT"):
            tuning_kwargs["clone_timeout"] = int(os.environ["CREATE_LIB_CLONE_TIMEOUT"])
        if os.environ.get("CREATE_LIB_MAX_PARALLEL_FILES"):
            tuning_kwargs["max_parallel_files"] = int(
                os.environ["CREATE_LIB_MAX_PARALLEL_FILES"]
            )

        values: dict[str, Any] = {"tuning": TuningConfig(**tuning_kwargs)}
        if os.environ.get("CREATE_LIB_TEMPLATE_URL"):
            values["template_url"] = os.environ["CREATE_LIB_TEMPLATE_URL"]
        if os.environ.get("CREATE_LIB_TEMPLATE_DIR"):
            values["template_dir"] = Path(os.environ["CREATE_LIB_TEMPLATE_DIR"])
        if os.environ.get("CREATE_LIB_DEBUG", "").lower() in ("1", "true", "yes"):
            values["verbose"] = True

        values.update({k: v for k, v in overrides.items() if v is not None})

        if "destination" not in values:
            values["destination"] = resolve_destination(
                os.environ.get("CREATE_LIB_OUTPUT_DIR"), values.get("library_name", "")
            )

        return cls(**values)


def resolve_destination(output_dir: str | Path | None, lib_name: str) -> Path:
    """Return ``<output_dir>/<lib_name>``, defaulting the output dir to cwd."""
    base = Path(output_dir) if output_dir else Path.cwd()
    return (base / lib_name).absolute()
