"""
Solve command: run the layout pipeline on a problem file.

Usage:
    matchpack solve problem.yaml                        # Solve and print placements
    matchpack solve problem.yaml -o layout.json         # Also write the layout
    matchpack solve problem.yaml --until packInnerPartitionsSolver
    matchpack solve problem.yaml --strict               # Fail on overlapping chips
    matchpack solve problem.yaml --format json          # JSON output

Exit Codes:
    0 - Layout solved (or stopped at the requested phase)
    1 - Pipeline failed, input invalid, or overlaps found with --strict
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from matchpack.config import Config, ConfigError
from matchpack.exceptions import MatchpackError, OverlapViolationError
from matchpack.logging import enable_verbose
from matchpack.pipeline import TERMINAL_PHASE, LayoutPipelineSolver, PipelinePhase
from matchpack.problem_io import load_problem, save_layout
from matchpack.types import OutputLayout
from matchpack.validation import ChipOverlap

from .progress import create_progress, print_status

PHASE_CHOICES = [p.value for p in PipelinePhase] + [TERMINAL_PHASE]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="matchpack solve",
        description="Lay out the chips of a problem file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("problem", help="Path to problem file (.json, .yaml)")
    parser.add_argument("-o", "--output", help="Write the layout to this file (.json, .yaml)")
    parser.add_argument(
        "--until",
        choices=PHASE_CHOICES,
        help="Stop when this phase becomes current (\"none\" runs every phase)",
    )
    parser.add_argument(
        "--format",
        choices=["table", "json"],
        default=None,
        help="Output format (default: from config, else table)",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat overlapping chips in the final layout as an error",
    )
    parser.add_argument("--max-iterations", type=int, help="Step budget for the whole pipeline")
    parser.add_argument(
        "--phase-max-iterations", type=int, help="Step budget for each phase solver"
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log phase transitions")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for solve command."""
    args = build_parser().parse_args(argv)

    try:
        config = Config.load()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    output_format = args.format or config.defaults.format
    quiet = args.quiet or config.defaults.quiet or output_format == "json"
    if args.verbose or config.defaults.verbose:
        enable_verbose("INFO")

    try:
        problem = load_problem(args.problem)
        solver = LayoutPipelineSolver(
            problem,
            max_iterations=args.max_iterations,
            phase_max_iterations=args.phase_max_iterations,
            overlap_policy="strict" if args.strict else None,
            config=config.pipeline,
        )
    except MatchpackError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # The terminal phase is only current for the step that marks the pipeline solved
    until = None if args.until == TERMINAL_PHASE else args.until

    with create_progress(quiet=quiet) as progress:
        while not solver.solved and not solver.failed:
            if until and solver.get_current_phase() == until:
                break
            solver.step()
            progress.update(solver)

    if solver.failed:
        print(f"Error: {solver.error}", file=sys.stderr)
        return 1

    if not solver.solved:
        print_status(f"Stopped at phase {solver.get_current_phase()}", quiet=quiet)
        _print_result(solver, None, [], output_format)
        return 0

    try:
        layout = solver.get_output_layout()
    except OverlapViolationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.output:
        try:
            save_layout(layout, args.output)
        except OSError as e:
            print(f"Error writing layout file: {e}", file=sys.stderr)
            return 1
        print_status(f"Wrote layout to {Path(args.output).name}", quiet=quiet)

    _print_result(solver, layout, solver.last_overlaps, output_format)
    return 0


def _print_result(
    solver: LayoutPipelineSolver,
    layout: OutputLayout | None,
    overlaps: list[ChipOverlap],
    output_format: str,
) -> None:
    if output_format == "json":
        data = {
            "solved": solver.solved,
            "current_phase": solver.get_current_phase(),
            "iterations": solver.iterations,
            "phases": {
                name: {
                    "start_time": record.start_time,
                    "end_time": record.end_time,
                    "elapsed_time": record.elapsed_time,
                    "first_iteration_index": record.first_iteration_index,
                }
                for name, record in solver.phase_records.items()
            },
            "layout": layout.to_dict() if layout is not None else None,
            "overlaps": [o.to_dict() for o in overlaps],
        }
        print(json.dumps(data, indent=2))
        return

    console = Console()

    phase_table = Table(title="Phases")
    phase_table.add_column("Phase")
    phase_table.add_column("First iteration", justify="right")
    phase_table.add_column("Elapsed (s)", justify="right")
    for name, record in solver.phase_records.items():
        elapsed = f"{record.elapsed_time:.4f}" if record.completed else "[yellow]running[/yellow]"
        phase_table.add_row(name, str(record.first_iteration_index), elapsed)
    console.print(phase_table)

    if layout is None:
        return

    placement_table = Table(title=f"Placements ({len(layout)} chips)")
    placement_table.add_column("Chip")
    placement_table.add_column("X", justify="right")
    placement_table.add_column("Y", justify="right")
    placement_table.add_column("Rotation", justify="right")
    for chip_id, placement in layout.chip_placements.items():
        placement_table.add_row(
            chip_id,
            f"{placement.x:.3f}",
            f"{placement.y:.3f}",
            f"{placement.ccw_rotation_degrees:g}",
        )
    console.print(placement_table)

    if overlaps:
        console.print(f"[yellow]{len(overlaps)} overlapping chip pair(s):[/yellow]")
        for o in overlaps:
            console.print(f"  {o.chip1} <-> {o.chip2} (area: {o.overlap_area:.4f})")
    else:
        console.print("[green]No overlaps[/green]")


if __name__ == "__main__":
    sys.exit(main())
