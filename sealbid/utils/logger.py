"""
Logging for sealbid.

All loggers live under the "sealbid" namespace (sealbid.keys,
sealbid.lifecycle, sealbid.window, ...). Console output is colored with
colorlog; the CLI can add a plain log file with --log-file.

Log lines never carry private keys, blinding or plaintext bid fields;
digests appear as a short hex prefix (short_hex).
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import colorlog

ROOT_LOGGER = "sealbid"

CONSOLE_FORMAT = "%(log_color)s%(asctime)s [%(name)s] %(levelname)-8s%(reset)s %(message)s"
FILE_FORMAT = "%(asctime)s [%(name)s] %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_COLORS = {
    "DEBUG": "cyan",
    "INFO": "green",
    "WARNING": "yellow",
    "ERROR": "red",
    "CRITICAL": "red,bg_white",
}


class SealBidLogger:
    """Configures the sealbid logger hierarchy once per process"""

    _initialized = False

    @classmethod
    def setup(cls, level: int = logging.INFO, log_file: Optional[str] = None):
        """
        Attach the console handler and, if asked, a file handler.

        Args:
            level: Logging level for every handler
            log_file: Path of an extra plain-text log; parent dirs are created
        """
        if cls._initialized:
            return

        root_logger = logging.getLogger(ROOT_LOGGER)
        root_logger.setLevel(level)
        root_logger.handlers.clear()

        console_handler = colorlog.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(colorlog.ColoredFormatter(
            CONSOLE_FORMAT, datefmt=DATE_FORMAT, log_colors=LOG_COLORS,
        ))
        root_logger.addHandler(console_handler)

        if log_file:
            path = Path(log_file)
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path)
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
            root_logger.addHandler(file_handler)

        cls._initialized = True

    @classmethod
    def reset(cls) -> None:
        """Close and drop configured handlers so setup() can run again."""
        root_logger = logging.getLogger(ROOT_LOGGER)
        for handler in root_logger.handlers:
            handler.close()
        root_logger.handlers.clear()
        cls._initialized = False

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        if not cls._initialized:
            cls.setup()
        return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def get_logger(name: str) -> logging.Logger:
    """Logger for a subsystem, e.g. get_logger("proof") -> sealbid.proof"""
    return SealBidLogger.get_logger(name)


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None):
    SealBidLogger.setup(level=level, log_file=log_file)


def short_hex(data: bytes, length: int = 16) -> str:
    """Hex prefix used when a digest appears in a log line."""
    return data.hex()[:length] + "..."
