"""
Logging Configuration
=====================

Console logging always, rotating file logs optionally. Every record carries
the name of the thread that produced it, which tells the HTTP front door,
the websocket server thread and the health monitor apart.

Log Format:
    2026-10-19 10:15:30 [INFO    ] [MainThread] lan_print_agent.app - GET /health

Usage:
    setup_logging(log_level=logging.INFO, enable_file_logging=True)

    logger = get_logger(__name__)
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ROOT_LOGGER = 'lan_print_agent'


class ThreadContextFilter(logging.Filter):
    """Adds ``thread_name`` to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.thread_name = threading.current_thread().name
        return True


def setup_logging(
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = False,
) -> logging.Logger:
    """
    Configure agent logging.

    Args:
        log_level: Minimum log level
        log_dir: Directory for log files (default: <DATA_DIR>/logs)
        enable_file_logging: Also write rotating main and error logs

    Returns:
        The configured namespace logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(log_level)
    logger.propagate = False

    # Allows re-configuration after a supervised restart
    logger.handlers.clear()

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    thread_filter = ThreadContextFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(thread_filter)
    logger.addHandler(console_handler)

    if enable_file_logging:
        if log_dir is None:
            # config logs through this module, so it is imported late
            from . import config
            log_dir = Path(config.DATA_DIR) / 'logs'
        log_dir.mkdir(parents=True, exist_ok=True)

        app_log_file = log_dir / 'agent.log'
        file_handler = RotatingFileHandler(
            filename=app_log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(thread_filter)
        logger.addHandler(file_handler)

        error_handler = RotatingFileHandler(
            filename=log_dir / 'agent_error.log',
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        error_handler.addFilter(thread_filter)
        logger.addHandler(error_handler)

        logger.info("File logging enabled: %s", app_log_file)

    logger.info("Logging configured at level %s", logging.getLevelName(log_level))
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger under the agent namespace.

    Args:
        name: Module name (typically __name__)
    """
    if not name.startswith(ROOT_LOGGER):
        name = f'{ROOT_LOGGER}.{name}'
    return logging.getLogger(name)
