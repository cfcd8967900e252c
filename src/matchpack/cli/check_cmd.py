"""
Check command: look for overlapping chips in an existing layout.

Usage:
    matchpack check problem.yaml layout.json
    matchpack check problem.yaml layout.json --format json

Exit Codes:
    0 - No overlaps
    1 - Overlaps found or command failure
"""

from __future__ import annotations

import argparse
import json
import sys

from rich.console import Console
from rich.table import Table

from matchpack.exceptions import MatchpackError
from matchpack.problem_io import load_layout, load_problem
from matchpack.validation import check_for_overlaps


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="matchpack check",
        description="Check a layout for overlapping chips",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("problem", help="Path to problem file (.json, .yaml)")
    parser.add_argument("layout", help="Path to layout file (.json, .yaml)")
    parser.add_argument(
        "--format",
        choices=["table", "json"],
        default="table",
        help="Output format (default: table)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for check command."""
    args = build_parser().parse_args(argv)

    try:
        problem = load_problem(args.problem)
        layout = load_layout(args.layout)
    except MatchpackError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    overlaps = check_for_overlaps(layout, problem.chip_map)
    unknown = [chip_id for chip_id in layout.chip_placements if chip_id not in problem.chip_map]

    if args.format == "json":
        print(
            json.dumps(
                {
                    "chips": len(layout),
                    "unknown_chips": unknown,
                    "overlaps": [o.to_dict() for o in overlaps],
                },
                indent=2,
            )
        )
        return 1 if overlaps else 0

    console = Console()
    if unknown:
        console.print(f"[yellow]Skipped chips missing from the problem: {', '.join(unknown)}[/yellow]")

    if not overlaps:
        console.print(f"[green]No overlaps among {len(layout)} chips[/green]")
        return 0

    table = Table(title=f"Overlaps ({len(overlaps)})")
    table.add_column("Chip 1")
    table.add_column("Chip 2")
    table.add_column("Area", justify="right")
    for o in overlaps:
        table.add_row(o.chip1, o.chip2, f"{o.overlap_area:.4f}")
    console.print(table)
    return 1


if __name__ == "__main__":
    sys.exit(main())
