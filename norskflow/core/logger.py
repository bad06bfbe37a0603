"""Logger configuration for NorskFlow.

Planner warnings carry their numbers as keyword context
(`logger.warning("...", shortfall_km=1.2)`); both sinks render that context
after the message so a plan that misses its target can be diagnosed from the
log line alone.
"""

import sys
from pathlib import Path

from loguru import logger

from norskflow.config.settings import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def _with_context(base: str):
    def formatter(record) -> str:
        if not record["extra"]:
            return base + "\n{exception}"
        context = " ".join(f"{key}={value}" for key, value in record["extra"].items())
        # Escape braces so loguru does not read the context as format fields
        context = context.replace("{", "{{").replace("}", "}}")
        return f"{base} | {context}\n{{exception}}"

    return formatter


def setup_logger(
    level: str | None = None,
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Configure loguru logger with console and optional file output.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Defaults to LOG_LEVEL from settings.
        log_file: Optional path to log file. If None, only console logging.
        rotation: Log rotation size (e.g., "10 MB", "1 day")
        retention: Log retention period (e.g., "7 days", "1 month")
    """
    level = level or settings.log_level
    logger.remove()

    logger.add(
        sys.stderr,
        format=_with_context(CONSOLE_FORMAT),
        level=level,
        colorize=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path,
            format=_with_context(FILE_FORMAT),
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            diagnose=True,
        )

    logger.debug(f"Logger initialized with level={level}, file={log_file or '-'}")
