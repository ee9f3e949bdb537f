"""Centralized logging configuration using Loguru.

Usage:
    from sqlmason.utils.logging import logger
    logger.info("Message")
    logger.debug("Debug message")  # Only shows if SQLMASON_LOG_LEVEL=DEBUG

Environment Variables:
    SQLMASON_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: INFO)
    SQLMASON_LOG_JSON: 0|1 (default: 0, human-readable)
    SQLMASON_LOG_FILE: path to log file (optional, always NDJSON)
"""

import json
import sys
from pathlib import Path

from loguru import logger

from sqlmason.config import LOG_FILE, LOG_JSON, LOG_LEVEL

# Remove default handler
logger.remove()


def _ndjson_line(message) -> str:
    """Format a loguru message as one JSON object."""
    record = message.record
    entry = {
        "level": record["level"].name,
        "time": int(record["time"].timestamp() * 1000),
        "msg": record["message"],
        "name": record["name"],
        "pid": record["process"].id,
    }
    for key, value in record["extra"].items():
        entry[key] = value if isinstance(value, (str, int, float, bool)) or value is None else str(value)
    if record["exception"]:
        entry["err"] = {
            "type": record["exception"].type.__name__ if record["exception"].type else "Error",
            "message": str(record["exception"].value) if record["exception"].value else "",
        }
    return json.dumps(entry)


def json_sink(message) -> None:
    """Write NDJSON records to stdout.

    Never call logger.* inside a sink - causes infinite recursion.
    """
    sys.stdout.write(_ndjson_line(message) + "\n")
    sys.stdout.flush()


# Human-readable format (no emojis)
_human_format = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}:{function}:{line}</cyan> - "
    "<level>{message}</level>"
)

if LOG_JSON:
    logger.add(json_sink, level=LOG_LEVEL, colorize=False)
else:
    logger.add(
        sys.stderr,
        level=LOG_LEVEL,
        format=_human_format,
        colorize=None,  # Auto-detect: colors if TTY, plain if piped
    )

if LOG_FILE:
    def _file_sink(message) -> None:
        """Append NDJSON records to the configured log file."""
        with open(LOG_FILE, "a", encoding="utf-8") as f:
            f.write(_ndjson_line(message) + "\n")

    logger.add(_file_sink, level="DEBUG")


def configure_file_logging(log_dir: Path, level: str = "DEBUG") -> int:
    """Add rotating file handler for persistent logs.

    Args:
        log_dir: Directory for log files (e.g., Path(".mason"))
        level: Minimum log level for file output

    Returns:
        The loguru handler id, for logger.remove()
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "sqlmason.log"

    return logger.add(
        log_file,
        rotation="10 MB",
        retention="7 days",
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
    )


__all__ = [
    "logger",
    "configure_file_logging",
    "json_sink",
]
