"""
Configuration files for matchpack.

Settings are read from, in increasing precedence:

1. built-in defaults
2. the user config ``~/.config/matchpack/config.toml``
3. the project config ``.matchpack.toml`` (or ``matchpack.toml``), found by
   walking up from the working directory to the enclosing ``.git`` root

CLI flags override all of them. Two sections are recognised::

    [defaults]
    format = "json"

    [pipeline]
    phase_max_iterations = 50000
    overlap_policy = "strict"
"""

import sys
import warnings
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, NamedTuple

from .exceptions import ConfigurationError

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

# Config file names to search for in project directories
CONFIG_FILENAMES = [".matchpack.toml", "matchpack.toml"]

# User-level config path
USER_CONFIG_PATH = Path.home() / ".config" / "matchpack" / "config.toml"

DEFAULT_PHASE_MAX_ITERATIONS = 100_000
DEFAULT_PIPELINE_MAX_ITERATIONS = 1_000_000

SECTIONS = ("defaults", "pipeline")


class ConfigError(ConfigurationError):
    """Configuration-related errors."""

    pass


class OverlapPolicy(str, Enum):
    """What ``get_output_layout()`` does when the final layout has overlaps."""

    WARN = "warn"  # Log the overlaps and return the layout
    STRICT = "strict"  # Raise OverlapViolationError

    @classmethod
    def from_string(cls, s: str) -> "OverlapPolicy":
        """Parse an overlap policy, raising ConfigError for unknown values."""
        try:
            return cls(s.lower().strip())
        except ValueError as e:
            available = ", ".join(p.value for p in cls)
            raise ConfigError(f"Unknown overlap policy '{s}' (expected one of: {available})") from e


@dataclass
class DefaultsConfig:
    """Default options for CLI commands."""

    format: str = "table"
    verbose: bool = False
    quiet: bool = False


@dataclass
class PipelineConfig:
    """Layout pipeline configuration."""

    max_iterations: int = DEFAULT_PIPELINE_MAX_ITERATIONS
    phase_max_iterations: int = DEFAULT_PHASE_MAX_ITERATIONS
    overlap_policy: OverlapPolicy = OverlapPolicy.WARN


def _as_output_format(value: Any, name: str, source: str) -> str:
    if value not in ("table", "json"):
        raise ConfigError(f"'{name}' must be \"table\" or \"json\" in {source}, got {value!r}")
    return value


def _as_bool(value: Any, name: str, source: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'{name}' must be true or false in {source}, got {value!r}")
    return value


def _as_positive_int(value: Any, name: str, source: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"'{name}' must be a positive integer in {source}, got {value!r}")
    return value


def _as_overlap_policy(value: Any, name: str, source: str) -> OverlapPolicy:
    if not isinstance(value, str):
        raise ConfigError(f"'{name}' must be a string in {source}, got {value!r}")
    return OverlapPolicy.from_string(value)


class Setting(NamedTuple):
    """A recognised ``section.key`` entry and how to parse it."""

    section: str
    key: str
    parse: Callable[[Any, str, str], Any]
    help: str

    @property
    def name(self) -> str:
        return f"{self.section}.{self.key}"


SETTINGS: tuple[Setting, ...] = (
    Setting("defaults", "format", _as_output_format, "Output format: table, json"),
    Setting("defaults", "verbose", _as_bool, "Log phase transitions to stderr"),
    Setting("defaults", "quiet", _as_bool, "Suppress progress output"),
    Setting("pipeline", "max_iterations", _as_positive_int, "Total step budget for the whole pipeline"),
    Setting(
        "pipeline",
        "phase_max_iterations",
        _as_positive_int,
        "Step budget for each individual phase solver",
    ),
    Setting(
        "pipeline",
        "overlap_policy",
        _as_overlap_policy,
        "What to do when chips in the final layout overlap: warn, strict",
    ),
)

_SETTINGS_BY_NAME = {setting.name: setting for setting in SETTINGS}


@dataclass
class Config:
    """Merged configuration from all sources."""

    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)

    # Which file each setting came from (for --show)
    _sources: dict = field(default_factory=dict, repr=False)

    @classmethod
    def load(cls, start_dir: Path | None = None) -> "Config":
        """
        Load configuration with precedence: project > user > defaults.

        Args:
            start_dir: Directory to start the project search from (default: cwd)

        Raises:
            ConfigError: If a config file is unreadable or holds an invalid value
        """
        config = cls()
        for path in _config_files(start_dir or Path.cwd()):
            config._apply(_load_toml_file(path), str(path))
        return config

    def _apply(self, data: dict[str, Any], source: str) -> None:
        for section_name, section in data.items():
            if section_name not in SECTIONS:
                warnings.warn(f"Unknown config section '{section_name}' in {source}", stacklevel=3)
                continue
            if not isinstance(section, dict):
                raise ConfigError(f"'{section_name}' must be a table in {source}")

            for key, value in section.items():
                setting = _SETTINGS_BY_NAME.get(f"{section_name}.{key}")
                if setting is None:
                    warnings.warn(
                        f"Unknown config key '{section_name}.{key}' in {source}", stacklevel=3
                    )
                    continue
                setattr(getattr(self, section_name), key, setting.parse(value, setting.name, source))
                self._sources[setting.name] = source

    def get(self, name: str) -> Any:
        """Value of a ``section.key`` setting."""
        section, key = name.split(".", 1)
        return getattr(getattr(self, section), key)

    def get_source(self, name: str) -> str:
        """File a ``section.key`` setting came from, or ``"default"``."""
        return self._sources.get(name, "default")


def _config_files(start_dir: Path) -> list[Path]:
    """Existing config files, lowest precedence first."""
    files = []
    if USER_CONFIG_PATH.exists():
        files.append(USER_CONFIG_PATH)
    project_config = _find_project_config(start_dir)
    if project_config is not None:
        files.append(project_config)
    return files


def _find_project_config(start_dir: Path) -> Path | None:
    """
    Find the project config by walking up the directory tree.

    The walk stops at a directory containing ``.git`` or at the filesystem
    root.
    """
    current = start_dir.resolve()

    while True:
        for filename in CONFIG_FILENAMES:
            config_path = current / filename
            if config_path.is_file():
                return config_path

        if (current / ".git").exists():
            return None

        parent = current.parent
        if parent == current:
            return None
        current = parent


def _load_toml_file(path: Path) -> dict[str, Any]:
    """
    Parse a TOML file.

    Raises:
        ConfigError: If the file cannot be read or is not valid TOML
    """
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e


def format_toml_value(value: Any) -> str:
    """Render a setting value as a TOML literal."""
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return f'"{value}"'
    return str(value)


def generate_template() -> str:
    """
    Generate a config file with every setting documented and commented out.

    Each setting is shown with its built-in default.
    """
    defaults = Config()
    lines = [
        "# matchpack configuration file",
        "# Place as .matchpack.toml in the project root, or at",
        "# ~/.config/matchpack/config.toml for user defaults",
    ]
    for section in SECTIONS:
        lines += ["", f"[{section}]"]
        for setting in SETTINGS:
            if setting.section == section:
                value = format_toml_value(defaults.get(setting.name))
                lines += [f"# {setting.help}", f"# {setting.key} = {value}", ""]
        lines.pop()
    return "\n".join(lines) + "\n"


def get_config_paths() -> dict[str, Path | None]:
    """
    Paths of the config files that would be loaded from the current directory.

    Returns:
        Dict with 'user' and 'project' keys
    """
    return {
        "user": USER_CONFIG_PATH if USER_CONFIG_PATH.exists() else None,
        "project": _find_project_config(Path.cwd()),
    }
