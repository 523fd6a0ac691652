"""Tests for bidi.logger."""

import logging
from pathlib import Path

from bidi.logger import get_logger, quiet_libraries, resolve_log_level


class TestGetLogger:
    def test_handlers_added_once(self) -> None:
        first = get_logger("bidi.test-once")
        second = get_logger("bidi.test-once")
        assert first is second
        assert len(first.handlers) == 1
        assert first.propagate is False

    def test_file_handler(self, tmp_path: Path) -> None:
        log_file = tmp_path / "bidi.log"
        logger = get_logger("bidi.test-file", level=logging.DEBUG, log_file=str(log_file))
        logger.debug("chunk %s of %s", 1, 3)
        for handler in logger.handlers:
            handler.flush()
        assert "| DEBUG | bidi.test-file | chunk 1 of 3" in log_file.read_text(encoding="utf-8")


class TestLevels:
    def test_resolve_log_level(self) -> None:
        assert resolve_log_level("debug") == logging.DEBUG
        assert resolve_log_level(logging.ERROR) == logging.ERROR
        assert resolve_log_level("nonsense") == logging.INFO

    def test_quiet_libraries(self) -> None:
        quiet_libraries(logging.ERROR, names=("bidi.test-noisy",))
        assert logging.getLogger("bidi.test-noisy").level == logging.ERROR
