"""
Command-line interface for matchpack.

Provides CLI commands via the `matchpack` command:

    matchpack solve <problem>            - Run the layout pipeline
    matchpack check <problem> <layout>   - Check a layout for overlapping chips
    matchpack config                     - Show or initialize configuration

Examples:
    matchpack solve board.yaml -o layout.json
    matchpack solve board.yaml --until packInnerPartitionsSolver --format json
    matchpack check board.yaml layout.json
    matchpack config --init
"""

import argparse
import sys
from typing import List, Optional

from matchpack import __version__

__all__ = ["main"]

COMMANDS = {
    "solve": "Run the layout pipeline on a problem file",
    "check": "Check a layout for overlapping chips",
    "config": "Show or initialize configuration",
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for matchpack CLI."""
    if argv is None:
        argv = sys.argv[1:]

    # Subcommands parse their own arguments, including -h
    if argv and argv[0] in COMMANDS:
        return _run_command(argv[0], argv[1:])

    parser = argparse.ArgumentParser(
        prog="matchpack",
        description="Incremental chip layout pipeline",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--version", action="version", version=f"matchpack {__version__}")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    for name, help_text in COMMANDS.items():
        subparsers.add_parser(name, help=help_text)

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1
    return _run_command(args.command, [])


def _run_command(command: str, sub_argv: List[str]) -> int:
    if command == "solve":
        from .solve_cmd import main as solve_main

        return solve_main(sub_argv)

    elif command == "check":
        from .check_cmd import main as check_main

        return check_main(sub_argv)

    elif command == "config":
        from .config_cmd import main as config_main

        return config_main(sub_argv)

    return 1


if __name__ == "__main__":
    sys.exit(main())
