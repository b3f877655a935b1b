"""Logging configuration and console output formatting."""

import json
import logging
import sys
from typing import Any, Dict, Optional


class ColorCodes:
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[94m"
    MAGENTA = "\033[35m"
    BOLD = "\033[1m"


LEVEL_COLORS = {
    "DEBUG": ColorCodes.BLUE,
    "INFO": ColorCodes.GREEN,
    "WARNING": ColorCodes.YELLOW,
    "ERROR": ColorCodes.RED + ColorCodes.BOLD,
    "CRITICAL": ColorCodes.MAGENTA + ColorCodes.BOLD,
}


class JsonFormatter(logging.Formatter):
    """Format log records as color-coded JSON."""

    def format(self, record: logging.LogRecord) -> str:
        color = LEVEL_COLORS.get(record.levelname, "")

        msg = record.msg if isinstance(record.msg, dict) else record.getMessage()
        output = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "msg": msg,
        }

        if hasattr(record, "data"):
            output["data"] = record.data

        json_str = json.dumps(output, default=str)
        return f"{color}{json_str}{ColorCodes.RESET}"


def configure_logging(level: str = "WARNING") -> None:
    """Set up application logging with JSON formatting on stderr."""
    app_logger = logging.getLogger("qa_matrix")
    app_logger.setLevel(level.upper())

    # Only add a handler once per process
    if not app_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JsonFormatter())
        app_logger.addHandler(handler)
        app_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance below the application logger."""
    if name.startswith("qa_matrix"):
        return logging.getLogger(name)
    return logging.getLogger(f"qa_matrix.{name}")


def log_with_data(
    logger: logging.Logger, level: int, msg: str, data: Optional[Dict[str, Any]] = None
):
    """Log a message with optional structured data."""
    if data:
        logger.log(level, msg, extra={"data": data})
    else:
        logger.log(level, msg)


def _emit(color: str, msg: str, end: str = "\n") -> None:
    sys.stdout.write(f"{color}{msg}{ColorCodes.RESET}{end}")
    sys.stdout.flush()


def title(msg: str) -> None:
    _emit(ColorCodes.BLUE, msg)


def subtitle(msg: str) -> None:
    _emit(ColorCodes.YELLOW, msg)


def status_banner(success: bool) -> None:
    """Print the overall run verdict."""
    if success:
        _emit(ColorCodes.GREEN, "\n### OVERALL STATUS: SUCCESS ###")
    else:
        _emit(ColorCodes.RED, "\n### OVERALL STATUS: FAILURE ###")


def fatal(msg: str) -> None:
    _emit(ColorCodes.RED, msg)
