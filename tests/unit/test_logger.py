"""
Unit tests for logging setup.
"""

import logging

import pytest

from sealbid.utils.logger import SealBidLogger, get_logger, setup_logging, short_hex


@pytest.fixture(autouse=True)
def fresh_logging():
    SealBidLogger.reset()
    yield
    SealBidLogger.reset()


class TestLogger:

    def test_namespaced(self):
        assert get_logger("proof").name == "sealbid.proof"

    def test_setup_once(self):
        setup_logging(level=logging.DEBUG)
        setup_logging(level=logging.ERROR)
        root = logging.getLogger("sealbid")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1

    def test_reset_allows_reconfigure(self):
        setup_logging(level=logging.DEBUG)
        SealBidLogger.reset()
        setup_logging(level=logging.WARNING)
        assert logging.getLogger("sealbid").level == logging.WARNING

    def test_log_file(self, tmp_path):
        path = tmp_path / "logs" / "sealbid.log"
        setup_logging(level=logging.INFO, log_file=str(path))
        get_logger("window").info("bid appended")
        for handler in logging.getLogger("sealbid").handlers:
            handler.flush()
        assert "bid appended" in path.read_text()

    def test_console_only_by_default(self):
        setup_logging(level=logging.INFO)
        handlers = logging.getLogger("sealbid").handlers
        assert not any(isinstance(h, logging.FileHandler) for h in handlers)

    def test_short_hex(self):
        assert short_hex(b"\xab" * 32) == "ab" * 8 + "..."
