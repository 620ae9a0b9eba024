"""create-lib template sources.

Materialises the template into the destination folder and strips its
version-control history.

Key classes:
    LocalTemplateSource - Copies the template bundled with the package
    GitTemplateSource   - Shallow single-branch clone of a remote template
"""

from .git import SourceError, remove_history, shallow_clone
from .provider import (
    AcquisitionResult,
    GitTemplateSource,
    LocalTemplateSource,
    TemplateSource,
    copy_tree,
    select_source,
)

__all__ = [
    "AcquisitionResult",
    "GitTemplateSource",
    "LocalTemplateSource",
    "SourceError",
    "TemplateSource",
    "copy_tree",
    "remove_history",
    "select_source",
    "shallow_clone",
]
