"""Progress display for ``matchpack solve``.

Everything here writes to stderr so stdout stays parseable with
``--format json``. The bar follows a :class:`LayoutPipelineSolver`: its fill
is the solver's overall ``progress`` and its label is the current phase.

Usage:
    from matchpack.cli.progress import create_progress, print_status

    with create_progress(quiet=args.quiet) as progress:
        while not solver.solved and not solver.failed:
            solver.step()
            progress.update(solver)
"""

import sys

from matchpack.pipeline import TERMINAL_PHASE


def is_terminal() -> bool:
    """Check if stderr is attached to a terminal."""
    return sys.stderr.isatty()


def create_progress(quiet: bool = False) -> "PipelineProgress":
    """Create the solve progress display.

    The display is inert when ``quiet`` is set or stderr is not a terminal.
    """
    return PipelineProgress(enabled=not quiet and is_terminal())


def print_status(message: str, style: str = "bold", quiet: bool = False) -> None:
    """Print a styled status line to stderr unless ``quiet``."""
    if quiet:
        return
    _get_stderr_console().print(message, style=style)


def _get_stderr_console():
    from rich.console import Console

    return Console(stderr=True)


class PipelineProgress:
    """Rich progress bar that tracks a pipeline solver between steps."""

    def __init__(self, enabled: bool = True):
        self._progress = None
        self._task_id = None
        if not enabled:
            return

        from rich.progress import (
            BarColumn,
            Progress,
            SpinnerColumn,
            TaskProgressColumn,
            TextColumn,
            TimeElapsedColumn,
        )

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TextColumn("{task.fields[iterations]} steps"),
            TimeElapsedColumn(),
            console=_get_stderr_console(),
            transient=True,
        )

    @property
    def enabled(self) -> bool:
        return self._progress is not None

    def __enter__(self) -> "PipelineProgress":
        if self._progress is not None:
            self._progress.start()
            self._task_id = self._progress.add_task("Starting", total=1.0, iterations=0)
        return self

    def __exit__(self, *exc_info) -> None:
        if self._progress is not None:
            self._progress.stop()

    def update(self, solver) -> None:
        """Refresh the bar from ``solver``'s phase, progress and step count."""
        if self._progress is None:
            return

        phase = solver.get_current_phase()
        self._progress.update(
            self._task_id,
            completed=solver.progress,
            description="Finishing" if phase == TERMINAL_PHASE else phase,
            iterations=solver.iterations,
        )
