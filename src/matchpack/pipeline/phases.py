"""
Phase table for the layout pipeline.

The pipeline is a closed, ordered set of phases. Each
:class:`PhaseDefinition` pairs a :class:`PipelinePhase` with two closures:

- ``build(pipeline)`` constructs the phase's solver from the pipeline's
  current state (input problem, precomputed connectivity and the outputs of
  strictly earlier phases), and
- ``on_solved(pipeline, solver)`` copies the solver's result into pipeline
  state once the phase is solved. It runs exactly once per phase.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Generic, TypeVar

from ..solvers.base import BaseSolver
from ..solvers.decoupling import IdentifyDecouplingCapsSolver
from ..solvers.inner_packing import PackInnerPartitionsSolver
from ..solvers.partition_packing import PartitionPackingSolver
from ..solvers.partitions import ChipPartitionsSolver

if TYPE_CHECKING:
    from .solver import LayoutPipelineSolver

__all__ = [
    "PipelinePhase",
    "TERMINAL_PHASE",
    "PhaseDefinition",
    "PhaseRecord",
    "PIPELINE_DEF",
]

# Reported by get_current_phase() once every phase has completed
TERMINAL_PHASE = "none"


class PipelinePhase(str, Enum):
    """Pipeline phases, in execution order."""

    IDENTIFY_DECOUPLING_CAPS = "identifyDecouplingCapsSolver"
    CHIP_PARTITIONS = "chipPartitionsSolver"
    PACK_INNER_PARTITIONS = "packInnerPartitionsSolver"
    PARTITION_PACKING = "partitionPackingSolver"

    @classmethod
    def from_string(cls, s: str) -> PipelinePhase:
        """Parse a phase name, raising ValueError for unknown names."""
        try:
            return cls(s.strip())
        except ValueError:
            available = ", ".join(p.value for p in cls)
            raise ValueError(f"Unknown pipeline phase '{s}' (expected one of: {available})") from None


S = TypeVar("S", bound=BaseSolver)


@dataclass(frozen=True)
class PhaseDefinition(Generic[S]):
    """One row of the phase table."""

    phase: PipelinePhase
    build: Callable[[LayoutPipelineSolver], S]
    on_solved: Callable[[LayoutPipelineSolver, S], None] | None = None

    @property
    def name(self) -> str:
        return self.phase.value


@dataclass
class PhaseRecord:
    """Timing of one executed phase.

    ``start_time`` and ``first_iteration_index`` are set when the phase's
    solver is constructed; ``end_time`` and ``elapsed_time`` are set once by
    :meth:`complete`.
    """

    start_time: float
    first_iteration_index: int
    end_time: float | None = None
    elapsed_time: float | None = None

    @property
    def completed(self) -> bool:
        return self.end_time is not None

    def complete(self, end_time: float) -> None:
        if self.completed:
            raise RuntimeError("Phase record already completed")
        self.end_time = end_time
        self.elapsed_time = end_time - self.start_time


def _build_identify_decoupling_caps(pipeline: LayoutPipelineSolver) -> IdentifyDecouplingCapsSolver:
    return IdentifyDecouplingCapsSolver(
        pipeline.input_problem,
        max_iterations=pipeline.phase_max_iterations,
    )


def _on_decoupling_caps_identified(
    pipeline: LayoutPipelineSolver, solver: IdentifyDecouplingCapsSolver
) -> None:
    pipeline.decoupling_cap_groups = list(solver.output_decoupling_cap_groups)


def _build_chip_partitions(pipeline: LayoutPipelineSolver) -> ChipPartitionsSolver:
    return ChipPartitionsSolver(
        pipeline.input_problem,
        decoupling_cap_groups=pipeline.decoupling_cap_groups,
        max_iterations=pipeline.phase_max_iterations,
    )


def _on_chip_partitions(pipeline: LayoutPipelineSolver, solver: ChipPartitionsSolver) -> None:
    pipeline.chip_partitions = list(solver.partitions)


def _build_pack_inner_partitions(pipeline: LayoutPipelineSolver) -> PackInnerPartitionsSolver:
    return PackInnerPartitionsSolver(
        pipeline.input_problem,
        partitions=pipeline.chip_partitions,
        pin_id_to_strongly_connected_pins=pipeline.pin_id_to_strongly_connected_pins,
        max_iterations=pipeline.phase_max_iterations,
    )


def _on_inner_partitions_packed(
    pipeline: LayoutPipelineSolver, solver: PackInnerPartitionsSolver
) -> None:
    pipeline.packed_partitions = list(solver.packed_partitions)


def _build_partition_packing(pipeline: LayoutPipelineSolver) -> PartitionPackingSolver:
    return PartitionPackingSolver(
        pipeline.input_problem,
        packed_partitions=pipeline.packed_partitions,
        max_iterations=pipeline.phase_max_iterations,
    )


PIPELINE_DEF: tuple[PhaseDefinition, ...] = (
    PhaseDefinition(
        PipelinePhase.IDENTIFY_DECOUPLING_CAPS,
        build=_build_identify_decoupling_caps,
        on_solved=_on_decoupling_caps_identified,
    ),
    PhaseDefinition(
        PipelinePhase.CHIP_PARTITIONS,
        build=_build_chip_partitions,
        on_solved=_on_chip_partitions,
    ),
    PhaseDefinition(
        PipelinePhase.PACK_INNER_PARTITIONS,
        build=_build_pack_inner_partitions,
        on_solved=_on_inner_partitions_packed,
    ),
    # The final layout stays on the solver; get_output_layout() reads it there
    PhaseDefinition(PipelinePhase.PARTITION_PACKING, build=_build_partition_packing),
)
