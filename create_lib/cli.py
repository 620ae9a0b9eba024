"""Command-line entry point for ``create-lib``.

Usage::

    create-lib MyLibClass myOrg/myRepo
    create-lib myLib @myOrg/my-lib -o ./libs --overwrite
    create-lib myLib myOrg/my-lib -t https://github.com/myOrg/lib-template
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys

from pydantic import ValidationError
from rich.markup import escape

from create_lib import __version__
from create_lib.config import Config, resolve_destination
from create_lib.errors import PreconditionError
from create_lib.pipeline import Pipeline
from create_lib.utils import capitalize_first, console, print_debug, strip_scope_marker


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-lib",
        description="Creates a library project from a template",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Example:\n"
            "  create-lib MyLibClass myOrg/myRepo\n"
        ),
    )

    parser.add_argument("lib_name", metavar="LIB_NAME", help="the name of the library")
    parser.add_argument("repo_name", metavar="REPO_NAME", help="the repo of the library")
    parser.add_argument(
        "--output-dir", "-o",
        default=None,
        help="folder to output the library in (defaults to the current working folder)",
    )
    parser.add_argument(
        "--template-url", "-t",
        default=None,
        help="the template to use",
    )
    parser.add_argument(
        "--overwrite", "-w",
        action="store_true",
        default=False,
        help="overwrite any existing output folder",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="print debug output",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def build_config(args: argparse.Namespace) -> Config:
    """Normalise the CLI arguments into a ``Config``.

    The library name gets its first character capitalised and the repo name
    loses a leading ``@``; the destination folder keeps the library name as
    typed.
    """
    if not args.lib_name or not args.repo_name:
        raise ValueError("LIB_NAME and REPO_NAME must not be empty")

    library_name = capitalize_first(args.lib_name)
    repo_name = strip_scope_marker(args.repo_name)
    output_dir = args.output_dir or os.environ.get("CREATE_LIB_OUTPUT_DIR")

    config = Config.from_env(
        library_name=library_name,
        repo_name=repo_name,
        destination=resolve_destination(output_dir, args.lib_name),
        template_url=args.template_url,
        overwrite=args.overwrite,
        verbose=args.verbose,
    )
    print_debug(f"Capitalize '{args.lib_name}' --> '{library_name}'", config.verbose)
    return config


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``create-lib``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = build_config(args)
    except (ValueError, ValidationError) as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}", highlight=False)
        sys.exit(1)

    try:
        state = asyncio.run(Pipeline(config).run())
    except PreconditionError as exc:
        console.print(f"[bold red]Error:[/bold red] {escape(str(exc))}", highlight=False)
        sys.exit(1)

    if not state.success:
        sys.exit(1)


if __name__ == "__main__":
    main()
