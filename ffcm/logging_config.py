"""Logging setup for the contract manager scripts."""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from .config import get_log_level

CONSOLE_FORMAT = '%(levelname)s: %(message)s'
AUDIT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(
    level: Union[int, str, None] = None,
    audit_log: Optional[Path] = None,
    log_to_console: bool = True,
) -> logging.Logger:
    """
    Configure the 'ffcm' logger.

    Previews only need console output. Commands that change league data pass
    ``audit_log`` so every run is appended to one file, keeping a history of
    turnovers and config fixes next to the league files.

    Args:
        level: Level name or number (default: log_level from app_config.json)
        audit_log: File to append records to (default: none)
        log_to_console: Whether to log to stdout (default: True)

    Returns:
        The configured 'ffcm' logger

    Example:
        from ffcm.logging_config import setup_logging
        setup_logging(audit_log=data_dir / 'logs' / 'turnover.log')
    """
    if level is None:
        level = get_log_level()
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger('ffcm')
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []

    if audit_log is not None:
        audit_log.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(audit_log, mode='a', encoding='utf-8')
        file_handler.setFormatter(logging.Formatter(AUDIT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S'))
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console_handler)

    return logger
