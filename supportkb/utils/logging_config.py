"""
Centralized logging configuration for the application.
Provides consistent logging setup with proper file paths and rotation.
"""

import os
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Project root directory (2 levels up from this file)
PROJECT_ROOT = Path(__file__).parent.parent.parent.absolute()
DEFAULT_LOGS_DIR = os.path.join(PROJECT_ROOT, "logs")

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def setup_logger(
    module_name: str = "supportkb",
    level: str = "INFO",
    logs_dir: Optional[str] = None,
    log_to_file: bool = True
) -> logging.Logger:
    """
    Configure a logger with console and rotating file handlers.

    Args:
        module_name: Name of the logger (also used for the log file name)
        level: Log level name, e.g. "INFO" or "DEBUG"
        logs_dir: Directory for log files (default: <project>/logs)
        log_to_file: Set to False to only log to the console

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(module_name)
    logger.setLevel(level.upper())

    # Clear existing handlers to avoid duplicates when reconfiguring
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level.upper())
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_to_file:
        logs_dir = logs_dir or DEFAULT_LOGS_DIR
        os.makedirs(logs_dir, exist_ok=True)

        log_file = os.path.join(logs_dir, f"{module_name.replace('.', '_')}.log")
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(level.upper())
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        logger.info(f"Logger initialized. Log file: {log_file}")

    return logger
