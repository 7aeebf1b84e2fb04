"""
Logging configuration — central setup for all entrypoints.

Called by main.py at startup, and again by ``gccforge build`` once the
workdir is known so the run log lands next to the build trees. Every
module that does ``logger = logging.getLogger(__name__)`` inherits it.

Levels are resolved in precedence order:
    CLI flag  >  GCCFORGE_LOG_LEVEL env var  >  WARNING (default)

Output of the external tools (configure, make, git, ...) goes to the
``gccforge.output`` logger at DEBUG. It is shown on the console only
when ``show_tool_output`` is set and always lands in the log file.
"""

from __future__ import annotations

import logging
import sys

TOOL_OUTPUT_LOGGER = "gccforge.output"

# ── Formats ─────────────────────────────────────────────────────

# (max level, format, datefmt); the first entry whose level covers the
# console level wins. WARNING and above print bare messages.
_CONSOLE_FORMATS: tuple[tuple[int, str, str | None], ...] = (
    (logging.DEBUG, "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s", "%H:%M:%S"),
    (logging.INFO, "%(asctime)s [%(name)s] %(message)s", "%H:%M:%S"),
)
_CONSOLE_PLAIN = "%(message)s"

_FILE_FORMAT = "%(asctime)s %(levelname)-5s %(name)s:%(lineno)d — %(message)s"
_FILE_DATEFMT = "%Y-%m-%d %H:%M:%S"


class _LevelGate(logging.Filter):
    """Applies a level to everything except tool output, which is on or off."""

    def __init__(self, level: int, tool_output: bool):
        super().__init__()
        self.level = level
        self.tool_output = tool_output

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name == TOOL_OUTPUT_LOGGER:
            return self.tool_output
        return record.levelno >= self.level


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_file_level: str | None = None,
    show_tool_output: bool = False,
    log_file_mode: str = "a",
) -> None:
    """Configure Python logging for the entire process.

    Replaces any handlers from an earlier call, so it is safe to call
    again with a log file.

    Args:
        level: Console level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_file: Optional path to a log file.
        log_file_level: Level for the log file. Defaults to ``level``.
        show_tool_output: Stream external tool output to the console
            as well as the log file.
        log_file_mode: ``"w"`` starts the file afresh, ``"a"`` appends.
    """
    console_level = _parse_level(level)

    console = logging.StreamHandler(sys.stderr)
    console.addFilter(_LevelGate(console_level, show_tool_output))
    console.setFormatter(_console_formatter(console_level))

    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.addHandler(console)

    # Root passes the most verbose level any handler wants
    root_level = console_level

    if log_file:
        file_level = _parse_level(log_file_level) if log_file_level else console_level
        root_level = min(root_level, file_level)

        fh = logging.FileHandler(log_file, mode=log_file_mode, encoding="utf-8")
        fh.addFilter(_LevelGate(file_level, tool_output=True))
        fh.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATEFMT))
        root.addHandler(fh)

    root.setLevel(root_level)
    logging.getLogger(TOOL_OUTPUT_LOGGER).setLevel(logging.DEBUG)
    logging.raiseExceptions = False


def _console_formatter(level: int) -> logging.Formatter:
    for max_level, fmt, datefmt in _CONSOLE_FORMATS:
        if level <= max_level:
            return logging.Formatter(fmt, datefmt=datefmt)
    return logging.Formatter(_CONSOLE_PLAIN)


def _parse_level(level: str | None) -> int:
    """Level name → numeric level; unknown or empty names mean WARNING."""
    if not level:
        return logging.WARNING
    return logging.getLevelNamesMapping().get(level.upper(), logging.WARNING)
