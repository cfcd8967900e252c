"""
Layout pipeline orchestrator.

:class:`LayoutPipelineSolver` is itself a :class:`BaseSolver`. Each
``step()`` performs one bounded unit of work: it either constructs the
current phase's solver or steps the active one once. When the active solver
solves, its completion hook copies the result into pipeline state and the
next phase becomes current; when it fails, the pipeline adopts its error
and stops for good.

Example::

    from matchpack import LayoutPipelineSolver

    solver = LayoutPipelineSolver(problem)
    solver.solve_until_phase("packInnerPartitionsSolver")
    partitions = solver.chip_partitions

    solver.solve()
    layout = solver.get_output_layout()
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import ClassVar

from ..basic_layout import do_basic_input_problem_layout, visualize_input_problem
from ..config import OverlapPolicy, PipelineConfig
from ..connectivity import get_pin_id_to_strongly_connected_pins
from ..exceptions import IncompleteLayoutError, InvalidFinalLayoutError, OverlapViolationError
from ..graphics import GraphicsObject, merge_graphics
from ..solvers.base import BaseSolver
from ..solvers.decoupling import DecouplingCapGroup, IdentifyDecouplingCapsSolver
from ..solvers.inner_packing import PackedPartition, PackInnerPartitionsSolver
from ..solvers.partition_packing import PartitionPackingSolver
from ..solvers.partitions import ChipPartition, ChipPartitionsSolver
from ..types import InputProblem, OutputLayout, PinId
from ..validation import ChipOverlap, check_for_overlaps
from .phases import PIPELINE_DEF, TERMINAL_PHASE, PhaseDefinition, PhaseRecord, PipelinePhase

logger = logging.getLogger(__name__)


class LayoutPipelineSolver(BaseSolver):
    """Run the layout phases in order, one unit of work per ``step()``.

    Args:
        input_problem: Problem to lay out; never modified
        clock: Time source for phase timing (default ``time.perf_counter``)
        max_iterations: Step budget for the whole pipeline
        phase_max_iterations: Step budget for each phase solver
        overlap_policy: What ``get_output_layout()`` does with overlaps
        config: Pipeline settings used for any argument left as None

    Attributes:
        current_pipeline_step_index: Index of the current phase in ``pipeline_def``
        phase_records: Timing per executed phase, keyed by phase name
        pin_id_to_strongly_connected_pins: Connectivity computed at construction
        decoupling_cap_groups: Output of the decoupling phase
        chip_partitions: Output of the partitioning phase
        packed_partitions: Output of the inner packing phase
        last_overlaps: Overlaps found by the last ``get_output_layout()`` call
    """

    pipeline_def: ClassVar[tuple[PhaseDefinition, ...]] = PIPELINE_DEF
    max_iterations_setting = "pipeline.max_iterations"

    def __init__(
        self,
        input_problem: InputProblem,
        *,
        clock: Callable[[], float] | None = None,
        max_iterations: int | None = None,
        phase_max_iterations: int | None = None,
        overlap_policy: OverlapPolicy | str | None = None,
        config: PipelineConfig | None = None,
    ):
        config = config or PipelineConfig()
        super().__init__(max_iterations=max_iterations or config.max_iterations, clock=clock)
        self.input_problem = input_problem
        self.phase_max_iterations = phase_max_iterations or config.phase_max_iterations
        if overlap_policy is None:
            overlap_policy = config.overlap_policy
        if not isinstance(overlap_policy, OverlapPolicy):
            overlap_policy = OverlapPolicy.from_string(overlap_policy)
        self.overlap_policy = overlap_policy

        self.current_pipeline_step_index = 0
        self.phase_records: dict[str, PhaseRecord] = {}
        self._phase_solvers: dict[PipelinePhase, BaseSolver] = {}

        self.pin_id_to_strongly_connected_pins: Mapping[PinId, frozenset[PinId]] = (
            get_pin_id_to_strongly_connected_pins(input_problem)
        )
        self.decoupling_cap_groups: list[DecouplingCapGroup] = []
        self.chip_partitions: list[ChipPartition] = []
        self.packed_partitions: list[PackedPartition] = []
        self.last_overlaps: list[ChipOverlap] = []

        logger.info(
            "Created layout pipeline: %d chips, %d pins, %d nets",
            len(input_problem.chip_map),
            len(input_problem.chip_pin_map),
            len(input_problem.net_map),
        )

    def _step(self) -> None:
        if self.current_pipeline_step_index >= len(self.pipeline_def):
            self.solved = True
            logger.info("Layout pipeline solved in %d iterations", self.iterations)
            return

        definition = self.pipeline_def[self.current_pipeline_step_index]
        active = self.active_sub_solver

        if active is not None:
            active.step()
            if active.solved:
                record = self.phase_records[definition.name]
                record.complete(self.clock())
                logger.info(
                    "Phase %s solved in %.3fs (%d iterations)",
                    definition.name,
                    record.elapsed_time,
                    active.iterations,
                )
                self.active_sub_solver = None
                if definition.on_solved is not None:
                    definition.on_solved(self, active)
                self.current_pipeline_step_index += 1
            elif active.failed:
                logger.error("Phase %s failed: %s", definition.name, active.error)
                self.error = active.error
                self.failed = True
                self.active_sub_solver = None
            return

        solver = definition.build(self)
        self._phase_solvers[definition.phase] = solver
        self.phase_records[definition.name] = PhaseRecord(
            start_time=self.clock(),
            first_iteration_index=self.iterations,
        )
        self.active_sub_solver = solver
        logger.debug("Starting phase %s at iteration %d", definition.name, self.iterations)

    def get_current_phase(self) -> str:
        """Name of the current phase, or ``"none"`` once every phase has run."""
        if self.current_pipeline_step_index < len(self.pipeline_def):
            return self.pipeline_def[self.current_pipeline_step_index].name
        return TERMINAL_PHASE

    def solve_until_phase(self, phase: PipelinePhase | str) -> None:
        """Step until ``phase`` is current, or the pipeline is solved or failed.

        Raises:
            ValueError: If ``phase`` is not a pipeline phase or ``"none"``
        """
        if isinstance(phase, PipelinePhase):
            target = phase.value
        elif phase == TERMINAL_PHASE:
            target = TERMINAL_PHASE
        else:
            target = PipelinePhase.from_string(phase).value

        while self.get_current_phase() != target and not self.solved and not self.failed:
            self.step()

    def get_phase_solver(self, phase: PipelinePhase | str) -> BaseSolver | None:
        """Solver constructed for ``phase``, if that phase has started."""
        if not isinstance(phase, PipelinePhase):
            phase = PipelinePhase.from_string(phase)
        return self._phase_solvers.get(phase)

    @property
    def identify_decoupling_caps_solver(self) -> IdentifyDecouplingCapsSolver | None:
        return self._phase_solvers.get(PipelinePhase.IDENTIFY_DECOUPLING_CAPS)

    @property
    def chip_partitions_solver(self) -> ChipPartitionsSolver | None:
        return self._phase_solvers.get(PipelinePhase.CHIP_PARTITIONS)

    @property
    def pack_inner_partitions_solver(self) -> PackInnerPartitionsSolver | None:
        return self._phase_solvers.get(PipelinePhase.PACK_INNER_PARTITIONS)

    @property
    def partition_packing_solver(self) -> PartitionPackingSolver | None:
        return self._phase_solvers.get(PipelinePhase.PARTITION_PACKING)

    def compute_progress(self) -> float:
        if self.solved:
            return 1.0
        completed = min(self.current_pipeline_step_index, len(self.pipeline_def))
        active = self.active_sub_solver.progress if self.active_sub_solver is not None else 0.0
        return (completed + active) / len(self.pipeline_def)

    def _terminal_solver(self) -> BaseSolver | None:
        return self._phase_solvers.get(self.pipeline_def[-1].phase)

    def visualize(self) -> GraphicsObject:
        if not self.solved and self.active_sub_solver is not None:
            return self.active_sub_solver.visualize()

        terminal = self._terminal_solver()
        if self.solved and terminal is not None and terminal.solved:
            return terminal.visualize()

        # Background grid so unplaced chips are not all drawn at the origin
        problem = self.input_problem
        visualizations = [
            visualize_input_problem(problem, do_basic_input_problem_layout(problem))
        ]
        for definition in self.pipeline_def:
            solver = self._phase_solvers.get(definition.phase)
            if solver is not None:
                visualizations.append(solver.visualize())

        if len(visualizations) == 1:
            return visualizations[0]
        return merge_graphics(
            viz.tag_step(step_index) for step_index, viz in enumerate(visualizations)
        )

    def preview(self) -> GraphicsObject:
        if self.active_sub_solver is not None:
            return self.active_sub_solver.preview()

        for definition in reversed(self.pipeline_def):
            solver = self._phase_solvers.get(definition.phase)
            if solver is not None:
                return solver.visualize()
        return super().preview()

    def check_for_overlaps(self, layout: OutputLayout) -> list[ChipOverlap]:
        """Overlapping chip pairs in ``layout``; independent of solve progress."""
        return check_for_overlaps(layout, self.input_problem.chip_map)

    def get_output_layout(self) -> OutputLayout:
        """Return the final layout after checking it for overlaps.

        Raises:
            IncompleteLayoutError: If the pipeline has not solved
            InvalidFinalLayoutError: If the final phase produced no layout
            OverlapViolationError: If chips overlap under the strict policy
        """
        if not self.solved:
            raise IncompleteLayoutError(
                "Pipeline execution incomplete",
                context={"current_phase": self.get_current_phase(), "failed": self.failed},
                suggestions=["Call solve() or keep calling step() until solved"],
            )

        terminal = self._terminal_solver()
        final_layout = getattr(terminal, "final_layout", None)
        if terminal is None or not terminal.solved or final_layout is None:
            raise InvalidFinalLayoutError(
                "Final layout extraction failed",
                context={"terminal_phase": self.pipeline_def[-1].name},
            )

        self.last_overlaps = self.check_for_overlaps(final_layout)
        if self.last_overlaps:
            details = ", ".join(
                f"{o.chip1} <-> {o.chip2} (area: {o.overlap_area:.4f})" for o in self.last_overlaps
            )
            logger.warning(
                "Physical overlap detected: %d violations found. Details: %s",
                len(self.last_overlaps),
                details,
            )
            if self.overlap_policy is OverlapPolicy.STRICT:
                raise OverlapViolationError(
                    self.last_overlaps,
                    context={"overlap_policy": self.overlap_policy.value},
                    suggestions=["Increase chip_gap or partition_gap in the problem"],
                )

        return final_layout
