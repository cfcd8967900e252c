"""
Custom exception hierarchy for matchpack.

Provides consistent error handling with context, suggestions, and actionable guidance.
All exceptions include:
- Context information (phase name, iteration counts, file paths, etc.)
- Suggestions for how to fix the issue
- Clear, formatted error messages

Example::

    from matchpack.exceptions import IterationLimitExceededError

    raise IterationLimitExceededError(
        "PackInnerPartitionsSolver ran out of iterations",
        context={"solver": "PackInnerPartitionsSolver", "max_iterations": 100000},
        suggestions=["Raise pipeline.phase_max_iterations in .matchpack.toml"],
    )
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Union

if TYPE_CHECKING:
    from .validation import ChipOverlap


class MatchpackError(Exception):
    """
    Base exception for all matchpack errors.

    Provides consistent formatting with context and suggestions.

    Attributes:
        context: Dictionary of contextual information (phase, iteration, file, etc.)
        suggestions: List of actionable suggestions for fixing the error
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.message = message
        self.context = context or {}
        self.suggestions = suggestions or []
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context and suggestions."""
        parts = [self.message]

        if self.context:
            parts.append("\n\nContext:")
            for key, value in self.context.items():
                parts.append(f"\n  {key}: {value}")

        if self.suggestions:
            parts.append("\n\nSuggestions:")
            for suggestion in self.suggestions:
                parts.append(f"\n  - {suggestion}")

        return "".join(parts)

    def __str__(self) -> str:
        return self._format_message()


class IterationLimitExceededError(MatchpackError):
    """
    A solver exceeded its iteration bound without reaching ``solved``.

    Fatal to the solver that raised it. When the solver is a pipeline phase,
    the orchestrator adopts this error and becomes failed as well.

    Example::

        raise IterationLimitExceededError(
            "ChipPartitionsSolver ran out of iterations",
            context={"solver": "ChipPartitionsSolver", "iterations": 100001},
        )
    """

    pass


class SubSolverError(MatchpackError):
    """
    A solver raised an unexpected exception while stepping.

    The original exception is chained as ``__cause__``.

    Example::

        raise SubSolverError(
            "IdentifyDecouplingCapsSolver error: KeyError('C7.1')",
            context={"solver": "IdentifyDecouplingCapsSolver", "iteration": 12},
        )
    """

    pass


class IncompleteLayoutError(MatchpackError):
    """
    Output layout requested before the pipeline has solved.

    Example::

        raise IncompleteLayoutError(
            "Pipeline execution incomplete",
            context={"current_phase": "packInnerPartitionsSolver"},
            suggestions=["Call solve() or keep calling step() until solved"],
        )
    """

    pass


class InvalidFinalLayoutError(MatchpackError):
    """
    The pipeline solved but the terminal phase produced no layout.

    Example::

        raise InvalidFinalLayoutError(
            "Final layout extraction failed",
            context={"terminal_phase": "partitionPackingSolver"},
        )
    """

    pass


class OverlapViolationError(MatchpackError):
    """
    Chips in the final layout overlap.

    Only raised when the pipeline runs with the strict overlap policy; by
    default overlaps are logged and the layout is still returned.

    Attributes:
        overlaps: The overlapping chip pairs that were found
    """

    def __init__(
        self,
        overlaps: List["ChipOverlap"],
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        self.overlaps = list(overlaps)
        message = f"Physical overlap detected: {len(self.overlaps)} violation(s) found:\n"
        message += "\n".join(
            f"  {i + 1}. {o.chip1} <-> {o.chip2} (area: {o.overlap_area:.4f})"
            for i, o in enumerate(self.overlaps)
        )
        super().__init__(message, context, suggestions)


class ProblemFormatError(MatchpackError):
    """
    Problem or layout file is malformed.

    Example::

        raise ProblemFormatError(
            "Pin references unknown chip",
            file_path="problem.json",
            context={"pin": "U9.1"},
        )
    """

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
        file_path: Optional[Union[str, Path]] = None,
    ):
        ctx = context or {}
        if file_path and "file" not in ctx:
            ctx["file"] = str(file_path)
        super().__init__(message, ctx, suggestions)


class ConfigurationError(MatchpackError):
    """
    Configuration or settings error.

    Raised when pipeline options are invalid or incompatible.

    Example::

        raise ConfigurationError(
            "Unknown overlap policy",
            context={"overlap_policy": "fatal", "available": ["warn", "strict"]},
        )
    """

    pass


__all__ = [
    "MatchpackError",
    "IterationLimitExceededError",
    "SubSolverError",
    "IncompleteLayoutError",
    "InvalidFinalLayoutError",
    "OverlapViolationError",
    "ProblemFormatError",
    "ConfigurationError",
]
