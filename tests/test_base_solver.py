"""Tests for the incremental solver contract."""

import pytest

from matchpack.exceptions import IterationLimitExceededError, SubSolverError
from matchpack.graphics import GraphicsObject
from matchpack.solvers.base import DEFAULT_MAX_ITERATIONS, BaseSolver


class CountdownSolver(BaseSolver):
    """Solves after a fixed number of steps."""

    def __init__(self, steps_needed, **kwargs):
        super().__init__(**kwargs)
        self.steps_needed = steps_needed
        self.calls = 0

    def _step(self):
        self.calls += 1
        if self.calls >= self.steps_needed:
            self.solved = True

    def compute_progress(self):
        return 1.0 if self.solved else self.calls / self.steps_needed


class NeverSolves(BaseSolver):
    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.calls = 0

    def _step(self):
        self.calls += 1


class Explodes(BaseSolver):
    def _step(self):
        raise KeyError("C7.1")


class TestStepping:
    """Test step() bookkeeping."""

    def test_counts_iterations_until_solved(self):
        solver = CountdownSolver(3)
        for _ in range(3):
            solver.step()
        assert solver.solved
        assert solver.iterations == 3
        assert solver.progress == 1.0

    def test_progress_updates_each_step(self):
        solver = CountdownSolver(4)
        solver.step()
        assert solver.progress == pytest.approx(0.25)

    def test_step_is_noop_once_solved(self):
        solver = CountdownSolver(1)
        solver.step()
        solver.step()
        solver.step()
        assert solver.iterations == 1
        assert solver.calls == 1

    def test_default_iteration_bound(self):
        assert BaseSolver().max_iterations == DEFAULT_MAX_ITERATIONS

    def test_base_step_not_implemented(self):
        solver = BaseSolver()
        solver.step()
        assert solver.failed
        assert isinstance(solver.error.__cause__, NotImplementedError)


class TestIterationLimit:
    """Test the iteration bound."""

    def test_exceeding_bound_fails(self):
        solver = NeverSolves(max_iterations=3)
        for _ in range(10):
            solver.step()

        assert solver.failed
        assert not solver.solved
        assert solver.calls == 3
        assert isinstance(solver.error, IterationLimitExceededError)
        assert solver.error.context["max_iterations"] == 3

    def test_solving_on_last_allowed_step_succeeds(self):
        solver = CountdownSolver(3, max_iterations=3)
        solver.solve()
        assert solver.solved
        assert not solver.failed

    def test_failed_is_sticky(self):
        solver = NeverSolves(max_iterations=1)
        solver.solve()
        iterations = solver.iterations
        solver.step()
        assert solver.failed
        assert solver.iterations == iterations


class TestExceptions:
    """Test exceptions escaping _step()."""

    def test_exception_fails_solver(self):
        solver = Explodes()
        solver.step()

        assert solver.failed
        assert isinstance(solver.error, SubSolverError)
        assert isinstance(solver.error.__cause__, KeyError)
        assert "Explodes" in solver.error.message

    def test_exception_is_logged(self, caplog):
        solver = Explodes()
        with caplog.at_level("ERROR", logger="matchpack"):
            solver.step()
        assert "Explodes failed at iteration 1" in caplog.text


class TestSolve:
    def test_solve_records_time(self, fake_clock):
        solver = CountdownSolver(5, clock=fake_clock)
        solver.solve()
        assert solver.solved
        assert solver.time_to_solve == 1.0

    def test_default_visualizations_are_empty(self):
        solver = BaseSolver()
        assert isinstance(solver.visualize(), GraphicsObject)
        assert solver.visualize().is_empty
        assert solver.preview().is_empty

    def test_name(self):
        assert CountdownSolver(1).name == "CountdownSolver"
