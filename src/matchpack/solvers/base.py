"""Incremental solver contract shared by every phase and by the pipeline.

A solver makes progress one bounded unit of work at a time. Callers drive it
by calling :meth:`BaseSolver.step` repeatedly (or :meth:`BaseSolver.solve`)
and inspect ``solved`` / ``failed`` / ``error`` in between. Nothing runs in
the background, so a host loop can interleave stepping with rendering or
cancellation checks; cancelling is simply not calling ``step()`` again.

Lifecycle:
    1. ``step()`` -- no-op once solved or failed, otherwise counts one
       iteration and runs ``_step()``.
    2. An exception escaping ``_step()`` fails the solver with a
       :class:`SubSolverError`.
    3. Exceeding ``max_iterations`` without solving fails the solver with an
       :class:`IterationLimitExceededError`.

Subclasses implement ``_step()`` and usually ``visualize()``.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any

from ..config import DEFAULT_PHASE_MAX_ITERATIONS
from ..exceptions import IterationLimitExceededError, MatchpackError, SubSolverError
from ..graphics import GraphicsObject

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = DEFAULT_PHASE_MAX_ITERATIONS


class BaseSolver:
    """Base class for step-wise solvers.

    Attributes:
        max_iterations: Step budget; exceeding it without solving is fatal
        iterations: Number of ``step()`` calls that did work
        solved: Terminal success flag
        failed: Terminal failure flag, sticky
        error: Error attached when ``failed`` is set
        progress: Optional 0..1 estimate maintained via ``compute_progress()``
        time_to_solve: Seconds spent in the last ``solve()`` call
        stats: Free-form solver statistics
        active_sub_solver: Solver currently being delegated to, if any
    """

    # Config key named in the hint attached to iteration-limit errors
    max_iterations_setting = "pipeline.phase_max_iterations"

    def __init__(
        self,
        max_iterations: int | None = None,
        clock: Callable[[], float] | None = None,
    ):
        self.max_iterations = max_iterations or DEFAULT_MAX_ITERATIONS
        self.clock = clock or time.perf_counter
        self.iterations = 0
        self.solved = False
        self.failed = False
        self.error: MatchpackError | None = None
        self.progress = 0.0
        self.time_to_solve: float | None = None
        self.stats: dict[str, Any] = {}
        self.active_sub_solver: BaseSolver | None = None

    @property
    def name(self) -> str:
        return type(self).__name__

    def step(self) -> None:
        """Advance by one unit of work."""
        if self.solved or self.failed:
            return

        self.iterations += 1
        if self.iterations > self.max_iterations:
            self._fail(
                IterationLimitExceededError(
                    f"{self.name} ran out of iterations",
                    context={"solver": self.name, "max_iterations": self.max_iterations},
                    suggestions=[f"Raise {self.max_iterations_setting} in .matchpack.toml"],
                )
            )
            return

        try:
            self._step()
        except Exception as e:
            error = SubSolverError(
                f"{self.name} error: {e!r}",
                context={"solver": self.name, "iteration": self.iterations},
            )
            error.__cause__ = e
            logger.exception("%s failed at iteration %d", self.name, self.iterations)
            self.failed = True
            self.error = error
            return

        self.progress = self.compute_progress()

    def _step(self) -> None:
        raise NotImplementedError

    def _fail(self, error: MatchpackError) -> None:
        """Mark the solver failed with ``error``."""
        logger.error("%s failed: %s", self.name, error.message)
        self.failed = True
        self.error = error

    def solve(self) -> None:
        """Step until solved or failed."""
        start = self.clock()
        while not self.solved and not self.failed:
            self.step()
        self.time_to_solve = self.clock() - start

    def compute_progress(self) -> float:
        return 1.0 if self.solved else self.progress

    def visualize(self) -> GraphicsObject:
        """Return a complete debug view of the current state."""
        return GraphicsObject()

    def preview(self) -> GraphicsObject:
        """Return a cheap partial view suitable for streaming progress."""
        return GraphicsObject()
