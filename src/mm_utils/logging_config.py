"""
Logging configuration for mm-throughput-graph.

Library modules log through ``logging.getLogger(__name__)``, so configuring
the ``mm_throughput`` component logger captures every record they emit.
Console output goes to stderr; stdout is reserved for the chart or data block.

Usage:
    from mm_utils.logging_config import setup_component_logging

    setup_component_logging(
        component_name="mm_throughput",
        log_level="INFO",
        log_dir="logs",  # optional, console only when omitted
    )
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(funcName)s() - %(message)s"


def setup_component_logging(
    component_name: str,
    log_level: str = "WARNING",
    log_dir: str | None = None,
    format_string: str | None = None,
) -> logging.Logger:
    """
    Configure logging for a component with console and optional file output.

    When ``log_dir`` is given a log file named {component_name}_{timestamp}.log
    is created there in addition to the stderr console handler.

    Args:
        component_name: Logger name, e.g. 'mm_throughput'
        log_level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_dir: Directory for log files. No file is written when None.
        format_string: Log message format. If None, uses default format.

    Returns:
        Configured logger instance
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)

    logger = logging.getLogger(component_name)
    logger.setLevel(level)
    logger.propagate = False

    # Remove existing handlers to avoid duplicates
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_file = None
    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"{component_name}_{timestamp}.log"
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug(f"Logging configured for {component_name} component")
    if log_file is not None:
        logger.info(f"Log file: {log_file}")

    return logger


def get_component_logger(component_name: str) -> logging.Logger:
    """
    Get logger for a component (assumes setup_component_logging was already called).

    Args:
        component_name: Name of the component

    Returns:
        Logger instance
    """
    return logging.getLogger(component_name)
