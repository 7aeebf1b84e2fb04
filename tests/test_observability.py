"""
Tests for logging setup — console gating and the run log file.
"""

import logging
from pathlib import Path

import pytest

from gccforge.core.observability.logging_config import (
    TOOL_OUTPUT_LOGGER,
    _LevelGate,
    _parse_level,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


class TestLevelGate:
    def test_applies_level(self):
        gate = _LevelGate(logging.WARNING, tool_output=False)
        assert gate.filter(_record("gccforge.core", logging.WARNING))
        assert not gate.filter(_record("gccforge.core", logging.INFO))

    def test_tool_output_is_on_or_off(self):
        assert not _LevelGate(logging.DEBUG, tool_output=False).filter(_record(TOOL_OUTPUT_LOGGER, logging.DEBUG))
        assert _LevelGate(logging.ERROR, tool_output=True).filter(_record(TOOL_OUTPUT_LOGGER, logging.DEBUG))


class TestParseLevel:
    @pytest.mark.parametrize(("name", "level"), [
        ("debug", logging.DEBUG),
        ("INFO", logging.INFO),
        (None, logging.WARNING),
        ("loud", logging.WARNING),
    ])
    def test_names(self, name, level):
        assert _parse_level(name) == level


class TestSetupLogging:
    def test_console_only(self):
        setup_logging("ERROR")
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.ERROR

    def test_repeated_setup_replaces_handlers(self, tmp_path: Path):
        setup_logging("WARNING", log_file=str(tmp_path / "a.log"))
        setup_logging("WARNING", log_file=str(tmp_path / "b.log"))
        assert len(logging.getLogger().handlers) == 2

    def test_run_log_captures_tool_output(self, tmp_path: Path):
        log = tmp_path / "run.log"
        setup_logging("WARNING", log_file=str(log), log_file_level="INFO")

        logging.getLogger("gccforge.core.engine").info("Stage started")
        logging.getLogger("gccforge.core.engine").debug("noise")
        logging.getLogger(TOOL_OUTPUT_LOGGER).debug("checking for gcc... yes")
        for handler in logging.getLogger().handlers:
            handler.flush()

        text = log.read_text()
        assert "Stage started" in text
        assert "checking for gcc... yes" in text
        assert "noise" not in text
        assert logging.getLogger().level == logging.INFO

    def test_append_mode_keeps_earlier_runs(self, tmp_path: Path):
        log = tmp_path / "run.log"
        log.write_text("earlier run\n")
        setup_logging("WARNING", log_file=str(log))
        logging.getLogger("gccforge").warning("this run")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert log.read_text().startswith("earlier run")

    def test_write_mode_starts_fresh(self, tmp_path: Path):
        log = tmp_path / "run.log"
        setup_logging("WARNING", log_file=str(log), log_file_mode="w")
        logging.getLogger("gccforge").warning("first run")
        setup_logging("WARNING", log_file=str(log), log_file_mode="w")
        logging.getLogger("gccforge").warning("second run")
        for handler in logging.getLogger().handlers:
            handler.flush()

        text = log.read_text()
        assert "second run" in text
        assert "first run" not in text
