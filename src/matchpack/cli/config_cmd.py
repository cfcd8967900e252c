"""
Config command for matchpack CLI.

Usage:
    matchpack config --show          Show effective settings and where each came from
    matchpack config --init          Write a commented .matchpack.toml here
    matchpack config --init --user   Write the user config instead
    matchpack config --paths         Show which config files would be loaded
"""

import argparse
import sys
from pathlib import Path

from matchpack import config as config_files
from matchpack.config import (
    CONFIG_FILENAMES,
    SECTIONS,
    SETTINGS,
    Config,
    ConfigError,
    format_toml_value,
    generate_template,
    get_config_paths,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="matchpack config",
        description="Manage matchpack configuration",
    )
    action_group = parser.add_mutually_exclusive_group()
    action_group.add_argument(
        "--show",
        action="store_true",
        help="Show effective configuration with sources (default)",
    )
    action_group.add_argument(
        "--init",
        action="store_true",
        help="Create a template config file in the current directory",
    )
    action_group.add_argument(
        "--paths",
        action="store_true",
        help="Show config file paths",
    )
    parser.add_argument(
        "--user",
        action="store_true",
        help="With --init, write ~/.config/matchpack/config.toml instead",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for config command."""
    args = build_parser().parse_args(argv)

    try:
        if args.init:
            return _init_config(args.user)
        if args.paths:
            return _show_paths()
        return _show_config()
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _show_config() -> int:
    """Print every setting as TOML, annotated with the file it came from."""
    effective = Config.load()

    print("# Effective matchpack configuration")
    for section in SECTIONS:
        print()
        print(f"[{section}]")
        for setting in SETTINGS:
            if setting.section != section:
                continue
            source = effective.get_source(setting.name)
            source_display = Path(source).name if source != "default" else source
            value = format_toml_value(effective.get(setting.name))
            print(f"{setting.key} = {value}  # from: {source_display}")
    return 0


def _show_paths() -> int:
    paths = get_config_paths()

    print(f"User config: {config_files.USER_CONFIG_PATH}")
    print("  Status: exists" if paths["user"] else "  Status: not found")
    print(f"Project config search: {', '.join(CONFIG_FILENAMES)}")
    print(f"  Found: {paths['project']}" if paths["project"] else "  Status: not found")
    return 0


def _init_config(user: bool = False) -> int:
    target = config_files.USER_CONFIG_PATH if user else Path.cwd() / CONFIG_FILENAMES[0]

    if target.exists():
        print(f"Error: Config file already exists: {target}", file=sys.stderr)
        print("Remove it first or edit it by hand.", file=sys.stderr)
        return 1

    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(generate_template())
    except OSError as e:
        print(f"Error writing config file: {e}", file=sys.stderr)
        return 1

    print(f"Created config template: {target}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
