"""Layout pipeline: the phase table and the orchestrator that runs it."""

from .phases import PIPELINE_DEF, TERMINAL_PHASE, PhaseDefinition, PhaseRecord, PipelinePhase
from .solver import LayoutPipelineSolver

__all__ = [
    "LayoutPipelineSolver",
    "PIPELINE_DEF",
    "TERMINAL_PHASE",
    "PhaseDefinition",
    "PhaseRecord",
    "PipelinePhase",
]
