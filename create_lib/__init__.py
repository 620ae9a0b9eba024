"""create-lib -- generates a library project from a template.

Quick usage::

    from create_lib import Config, Pipeline

    config = Config(
        library_name="MyLib",
        repo_name="my-org/my-lib",
        destination="/tmp/my-lib",
    )
    state = await Pipeline(config).run()
"""

__version__ = "1.0.0"

from create_lib.config import Config
from create_lib.errors import (
    CreateLibError,
    ManifestNotFoundError,
    ManifestParseError,
    PreconditionError,
)
from create_lib.pipeline import Pipeline, PipelineError, RunState

__all__ = [
    "Config",
    "CreateLibError",
    "ManifestNotFoundError",
    "ManifestParseError",
    "Pipeline",
    "PipelineError",
    "PreconditionError",
    "RunState",
    "__version__",
]
