"""create-lib pipeline orchestrator.

Implements the six-stage library generation pipeline:

1. SOURCE       -- Copy the bundled template or shallow-clone a remote one.
2. HISTORY      -- Remove the template's ``.git`` folder.
3. PARAMETERS   -- Read ``template.parameters.json``.
4. PACKAGE JSON -- Rewrite the new project's identity fields.
5. REPLACE TEXT -- Substitute tokens in the files the parameters name.
6. CLEANUP      -- Drop scaffold-only files, rename ``*.template`` dotfiles.

Each stage is a function ``(config, state, deps) -> state`` that returns an
updated copy of the run state.  ``Pipeline.run`` executes them in order and
stops at the first failure.
"""

from __future__ import annotations

import dataclasses
import time
import traceback
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from rich.markup import escape
from rich.panel import Panel

from create_lib.cleanup import CleanupReport, cleanup
from create_lib.config import Config
from create_lib.errors import CreateLibError, PreconditionError
from create_lib.package_json import update_package_json
from create_lib.parameters import ParameterManifest, load_parameters
from create_lib.source import (
    AcquisitionResult,
    TemplateSource,
    remove_history,
    select_source,
)
from create_lib.substitution import (
    DiagnosticSink,
    SubstitutionReport,
    TokenTable,
    default_token_table,
    replace_text,
    warn_diagnostic,
)
from create_lib.utils import (
    console,
    create_progress,
    format_duration,
    print_error,
    print_stage_header,
    print_success,
    print_summary_table,
)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class PipelineError(CreateLibError):
    """Raised when a pipeline stage fails irrecoverably."""

    def __init__(self, stage: str, message: str) -> None:
        self.stage = stage
        super().__init__(f"Stage '{stage}': {message}")


# ---------------------------------------------------------------------------
# Run state and stages
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RunState:
    """Results accumulated by the stages of one run."""

    source: AcquisitionResult | None = None
    history_removed: bool = False
    parameters: ParameterManifest | None = None
    package_manifest: dict[str, Any] | None = None
    substitution: SubstitutionReport | None = None
    cleanup: CleanupReport | None = None
    completed: tuple[str, ...] = ()
    failed_stage: str | None = None
    error: str | None = None
    success: bool = False


@dataclass
class Collaborators:
    """Injected dependencies the stages call into."""

    source: TemplateSource
    tokens: TokenTable
    diagnostics: DiagnosticSink = field(default=warn_diagnostic)


StageFn = Callable[[Config, RunState, Collaborators], Awaitable[RunState]]


@dataclass(frozen=True)
class Stage:
    """One pipeline step; ``key`` names it in ``RunState.completed``."""

    key: str
    title: Callable[[Collaborators], str]
    run: StageFn


async def acquire_source(config: Config, state: RunState, deps: Collaborators) -> RunState:
    """Stage 1: materialise the template into the destination folder."""
    result = await deps.source.materialize(config.destination, config.overwrite)
    console.print(
        f"  {len(result.files_copied)} file(s) materialised in {escape(str(config.destination))}"
    )
    return dataclasses.replace(state, source=result)


async def strip_history(config: Config, state: RunState, deps: Collaborators) -> RunState:
    """Stage 2: delete the template's version-control metadata, if any."""
    removed = remove_history(config.destination)
    return dataclasses.replace(state, history_removed=removed)


async def read_parameters(config: Config, state: RunState, deps: Collaborators) -> RunState:
    """Stage 3: load ``template.parameters.json`` from the destination root."""
    manifest = load_parameters(config.destination)
    console.print(
        f"  {len(manifest.tokens())} token(s) across {len(manifest.paths())} file(s)"
    )
    return dataclasses.replace(state, parameters=manifest)


async def rewrite_package_json(config: Config, state: RunState, deps: Collaborators) -> RunState:
    """Stage 4: point ``package.json`` at the new repository."""
    written = await update_package_json(config.destination, config.repo_name)
    console.print(
        f"  name: [bold]{escape(str(written['name']))}[/bold]  "
        f"version: {escape(str(written['version']))}"
    )
    return dataclasses.replace(state, package_manifest=written)


async def substitute_tokens(config: Config, state: RunState, deps: Collaborators) -> RunState:
    """Stage 5: replace tokens in every file the parameters name."""
    if state.parameters is None:
        raise PipelineError("substitution", "parameters were not loaded")
    report = await replace_text(
        config.destination,
        state.parameters,
        deps.tokens,
        diagnostics=deps.diagnostics,
        max_parallel=config.tuning.max_parallel_files,
        verbose=config.verbose,
    )
    console.print(
        f"  {report.total_replacements} replacement(s) in "
        f"{len(report.files_written)} file(s)"
    )
    return dataclasses.replace(state, substitution=report)


async def clean_up(config: Config, state: RunState, deps: Collaborators) -> RunState:
    """Stage 6: remove scaffold-only files and rename dotfile templates."""
    report = cleanup(
        config.destination,
        config.cleanup.files_to_remove,
        config.cleanup.files_to_rename,
    )
    return dataclasses.replace(state, cleanup=report)


STAGES: tuple[Stage, ...] = (
    Stage("source", lambda deps: deps.source.title(), acquire_source),
    Stage("history", lambda deps: "Remove .git folder", strip_history),
    Stage("parameters", lambda deps: "Read parameters file", read_parameters),
    Stage("package_json", lambda deps: "Update package.json", rewrite_package_json),
    Stage("substitution", lambda deps: "Replace text", substitute_tokens),
    Stage("cleanup", lambda deps: "Cleanup", clean_up),
)


def check_destination(config: Config) -> None:
    """Reject the run when the destination exists and overwrite is off."""
    if config.destination.exists() and not config.overwrite:
        raise PreconditionError(
            f"Destination {config.destination} exists, "
            "use the '--overwrite' flag to overwrite."
        )


# ---------------------------------------------------------------------------
# Pipeline Orchestrator
# ---------------------------------------------------------------------------


class Pipeline:
    """Runs the stages for one ``Config`` in order.

    Attributes:
        config: Run parameters.
        deps: Template source, token table and diagnostics sink handed to
            every stage.  Defaults are derived from *config*.
        stages: The stage sequence; tests may pass a shorter one.
    """

    def __init__(
        self,
        config: Config,
        *,
        source: TemplateSource | None = None,
        tokens: TokenTable | None = None,
        diagnostics: DiagnosticSink | None = None,
        stages: tuple[Stage, ...] = STAGES,
    ) -> None:
        self.config = config
        self.deps = Collaborators(
            source=source or select_source(config),
            tokens=tokens or default_token_table(config.library_name, config.repo_name),
            diagnostics=diagnostics or warn_diagnostic,
        )
        self.stages = stages

    async def run(self) -> RunState:
        """Execute every stage, stopping at the first failure.

        Returns:
            The final run state; ``success`` is ``True`` only when every
            stage completed.

        Raises:
            PreconditionError: If the destination exists and overwrite is
                off.  Nothing on disk is touched in that case.
        """
        check_destination(self.config)
        started = time.monotonic()

        console.print(
            Panel(
                f"[bold bright_cyan]create-lib[/bold bright_cyan]\n"
                f"Library     : {escape(self.config.library_name)}\n"
                f"Repository  : {escape(self.config.repo_name)}\n"
                f"Destination : {escape(str(self.config.destination))}\n"
                f"Template    : "
                f"{escape(str(self.config.template_url or self.config.template_dir))}",
                title="[bold]Create library[/bold]",
                border_style="bright_cyan",
            )
        )

        state = RunState()
        total = len(self.stages)

        for index, stage in enumerate(self.stages, start=1):
            title = stage.title(self.deps)
            print_stage_header(index, total, title)

            try:
                with create_progress() as progress:
                    progress.add_task(escape(title), total=None)
                    state = await stage.run(self.config, state, self.deps)
                state = dataclasses.replace(state, completed=state.completed + (stage.key,))

            except (CreateLibError, OSError) as exc:
                error = exc if isinstance(exc, PipelineError) else PipelineError(title, str(exc))
                state = dataclasses.replace(state, failed_stage=stage.key, error=str(error))
                print_error(str(error))
                break

            except Exception as exc:
                tb = traceback.format_exc()
                state = dataclasses.replace(
                    state, failed_stage=stage.key, error=f"{title}: {exc}"
                )
                print_error(f"Stage '{title}' failed: {exc}")
                console.print(tb, style="dim", markup=False, highlight=False)
                break

        else:
            state = dataclasses.replace(state, success=True)

        self._print_final_summary(state, time.monotonic() - started)
        return state

    def _print_final_summary(self, state: RunState, elapsed: float) -> None:
        if not state.success:
            return

        print_success(f"Lib created at {self.config.destination}")
        summary: dict[str, str] = {
            "Destination": str(self.config.destination),
            "Duration": format_duration(elapsed),
        }
        if state.substitution is not None:
            summary["Files substituted"] = str(len(state.substitution.files_written))
            summary["Skipped tokens"] = ", ".join(state.substitution.skipped_tokens) or "-"
        if state.cleanup is not None:
            summary["Removed"] = ", ".join(state.cleanup.removed) or "-"
            summary["Renamed"] = (
                ", ".join(f"{a} -> {b}" for a, b in state.cleanup.renamed.items()) or "-"
            )
        print_summary_table(summary, title="Library Created")
