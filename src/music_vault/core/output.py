"""
Logging setup using Loguru.
Console sink for the server process plus an optional rotating file sink.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from .config import LoggingConfig, get_data_dir

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"


def get_log_file_path() -> Path:
    """Get the default path to the log file."""
    return get_data_dir() / "music-vault.log"


def setup_loguru(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    rotation: str = "10 MB",
    retention: int = 5,
    console_output: bool = True,
) -> None:
    """
    Configure loguru sinks for the application.

    Args:
        level: Minimum level (DEBUG, INFO, WARNING, ERROR)
        log_file: File sink path; None disables file logging
        rotation: Size/time at which the file sink rotates
        retention: Number of rotated files to keep
        console_output: Whether to also log to stderr
    """
    # Remove default handler
    logger.remove()

    if console_output:
        logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            rotation=rotation,
            retention=retention,
            level=level,
            format=LOG_FORMAT,
            enqueue=True,  # Request handlers log from worker threads too
        )

    logger.info(f"Loguru initialized (level={level}, file={log_file})")


def setup_from_config(config: LoggingConfig) -> None:
    """Configure logging from the [logging] config section."""
    log_file = Path(config.log_file).expanduser() if config.log_file else get_log_file_path()
    setup_loguru(
        level=config.level,
        log_file=log_file,
        rotation=config.rotation,
        retention=config.retention,
        console_output=config.console_output,
    )
