"""
Centralized logging configuration for the fact-check pipeline.

This module provides a consistent, structured logging approach
across the entire project.
"""

import logging
import os
import sys
from typing import Optional, Union

import colorlog


def create_logger(
    name: Optional[str] = None,
    log_level: Union[int, str] = logging.INFO,
    log_dir: Optional[str] = None,
    log_file: Optional[str] = None,
):
    """
    Create a structured, color-coded logger with optional file logging.

    :param name: Name of the logger (typically __name__)
    :param log_level: Logging level (default: logging.INFO)
    :param log_dir: Directory to store log files (optional)
    :param log_file: Specific log file name (optional)
    :return: Configured logger instance
    """
    logger = colorlog.getLogger(name or __name__)
    logger.setLevel(log_level)
    logger.propagate = False

    # Remove any existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    console_handler = colorlog.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    formatter = colorlog.ColoredFormatter(
        "%(log_color)s[%(levelname)s]%(reset)s "
        "%(blue)s[%(name)s]%(reset)s "
        "%(message)s",
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "yellow",
            "ERROR": "red",
            "CRITICAL": "red,bg_white",
        },
        secondary_log_colors={},
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # Optional file logging
    if log_dir or log_file:
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        if not log_file:
            log_file = f"{name or 'factcheck'}.log"

        if log_dir:
            log_file = os.path.join(log_dir, log_file)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)

        # Plain text formatter for file logs
        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger


def configure_package_logging(
    log_level: Union[int, str] = logging.INFO,
    log_dir: Optional[str] = None,
    package: str = "factcheck",
) -> None:
    """
    Re-apply level and file output to every logger already created for a package.

    Module loggers are created at import time with the defaults; the entry
    point calls this once the configured values are known. Loggers are
    reconfigured in place, so module-level references stay valid.

    :param log_level: Logging level for every package logger
    :param log_dir: Directory for a shared ``<package>.log`` file (optional)
    :param package: Top-level logger name
    """
    names = [
        name
        for name, existing in logging.root.manager.loggerDict.items()
        if isinstance(existing, logging.Logger)
        and (name == package or name.startswith(f"{package}."))
    ]
    for name in names:
        create_logger(
            name,
            log_level=log_level,
            log_dir=log_dir,
            log_file=f"{package}.log" if log_dir else None,
        )


def log_exception(logger, e, context=None):
    """
    Standardized exception logging with optional context.

    :param logger: Logger instance
    :param e: Exception object
    :param context: Optional additional context for the error
    """
    logger.critical("🚨 FACT-CHECK RUN FAILED 🚨")
    logger.critical(f"Error Type: {type(e).__name__}")
    logger.critical(f"Error Details: {str(e)}")

    if context:
        logger.critical(f"Context: {context}")

    logger.critical("Troubleshooting:")
    logger.critical("  1. Check that the cached source file exists and is current")
    logger.critical("  2. Verify the analysis year and reference region")
    logger.critical("  3. Review the capital prefix table")
