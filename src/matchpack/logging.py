"""
Logging setup for matchpack.

Modules log through ``logging.getLogger(__name__)``, so every record lands
under the ``matchpack`` logger. That logger is silent until
:func:`enable_verbose` attaches a stderr handler. ``INFO`` shows each
pipeline phase finishing with its elapsed time; ``DEBUG`` adds phase starts
and solver construction.
"""

import logging
import sys

PACKAGE_LOGGER = "matchpack"
DEFAULT_FORMAT = "[%(levelname)s] %(name)s: %(message)s"

_HANDLER_NAME = "matchpack-verbose"

_logger = logging.getLogger(PACKAGE_LOGGER)
_logger.addHandler(logging.NullHandler())  # Default: no output


def _verbose_handlers() -> list[logging.Handler]:
    return [h for h in _logger.handlers if h.get_name() == _HANDLER_NAME]


def enable_verbose(level: str = "INFO", format: str | None = None) -> None:
    """Send matchpack log records at ``level`` and above to stderr.

    Calling it again replaces the earlier handler.

    Args:
        level: Logging level - "DEBUG", "INFO", "WARNING", "ERROR"
        format: Optional custom format string

    Raises:
        ValueError: If ``level`` is not a logging level name

    Example:
        enable_verbose("DEBUG")
        LayoutPipelineSolver(problem).solve()  # Logs phase starts and timings
        disable_verbose()
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    disable_verbose()

    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(format or DEFAULT_FORMAT))
    _logger.addHandler(handler)
    _logger.setLevel(numeric_level)


def disable_verbose() -> None:
    """Remove the handler added by :func:`enable_verbose`."""
    for handler in _verbose_handlers():
        _logger.removeHandler(handler)
    _logger.setLevel(logging.NOTSET)


def is_verbose() -> bool:
    """Whether :func:`enable_verbose` is in effect."""
    return bool(_verbose_handlers())
