"""
matchpack: incremental chip layout pipeline.

Turns an abstract circuit description (chips, pins, connectivity) into a
non-overlapping 2D schematic layout by running a fixed chain of phase
solvers one bounded step at a time.

Modules:
    types: Input problem and output layout data model
    connectivity: Strongly-connected pin precomputation
    solvers: Incremental solver contract and the four layout phases
    pipeline: Phase table and the LayoutPipelineSolver orchestrator
    validation: Rotation-aware overlap detection
    graphics: Structured debug graphics
    problem_io: JSON/YAML problem and layout files
    config: TOML configuration

Quick Start::

    from matchpack import LayoutPipelineSolver, load_problem

    solver = LayoutPipelineSolver(load_problem("board.yaml"))
    while not solver.solved and not solver.failed:
        solver.step()

    layout = solver.get_output_layout()
"""

__version__ = "0.1.0"

# Data model
from matchpack.types import (
    Chip,
    ChipPin,
    InputProblem,
    Net,
    OutputLayout,
    Placement,
    Point,
)

# Pipeline
from matchpack.connectivity import get_pin_id_to_strongly_connected_pins
from matchpack.pipeline import (
    TERMINAL_PHASE,
    LayoutPipelineSolver,
    PhaseRecord,
    PipelinePhase,
)
from matchpack.solvers import BaseSolver

# Validation
from matchpack.validation import ChipOverlap, check_for_overlaps

# Graphics
from matchpack.graphics import GraphicsObject

# File I/O
from matchpack.problem_io import load_layout, load_problem, save_layout

# Configuration
from matchpack.config import Config, OverlapPolicy

# Exceptions
from matchpack.exceptions import (
    IncompleteLayoutError,
    InvalidFinalLayoutError,
    IterationLimitExceededError,
    MatchpackError,
    OverlapViolationError,
    SubSolverError,
)

__all__ = [
    "__version__",
    "Chip",
    "ChipPin",
    "InputProblem",
    "Net",
    "OutputLayout",
    "Placement",
    "Point",
    "get_pin_id_to_strongly_connected_pins",
    "TERMINAL_PHASE",
    "LayoutPipelineSolver",
    "PhaseRecord",
    "PipelinePhase",
    "BaseSolver",
    "ChipOverlap",
    "check_for_overlaps",
    "GraphicsObject",
    "load_layout",
    "load_problem",
    "save_layout",
    "Config",
    "OverlapPolicy",
    "MatchpackError",
    "IterationLimitExceededError",
    "SubSolverError",
    "IncompleteLayoutError",
    "InvalidFinalLayoutError",
    "OverlapViolationError",
]
