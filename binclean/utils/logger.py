"""Logging configuration."""

import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional, Union

LEVELS = {
    "debug": logging.DEBUG,
    "verbose": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def parse_level(level: Union[int, str]) -> int:
    """
    Translate a level name (Debug, Verbose, Info, Warning, Error) to a logging level.

    Args:
        level: Level name or numeric logging level

    Returns:
        Numeric logging level
    """
    if isinstance(level, int):
        return level
    try:
        return LEVELS[level.strip().lower()]
    except KeyError:
        raise ValueError(f"Invalid log level '{level}'. Valid values: {', '.join(LEVELS)}")


def setup_logger(
    name: str = "binclean",
    level: Union[int, str] = logging.INFO,
    log_dir: Optional[str] = None,
    console: bool = True,
) -> logging.Logger:
    """
    Setup logger with optional file and console handlers.

    Args:
        name: Logger name
        level: Logging level
        log_dir: Directory for log files (no file handler if None)
        console: Whether to add console handler

    Returns:
        Configured logger
    """
    level = parse_level(level)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    detailed_formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(threadName)s - %(filename)s:%(lineno)d - %(message)s"
    )
    simple_formatter = logging.Formatter("%(levelname)s - %(message)s")

    if log_dir:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        file_handler = logging.FileHandler(
            log_path / f"{name}_{timestamp}.log",
            encoding="utf-8"
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(file_handler)

    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(simple_formatter)
        root_logger.addHandler(console_handler)

    return logging.getLogger(name)
