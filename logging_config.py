"""
Logging setup for the print tray service.

Every record carries the name of the asyncio task (or thread, outside the
event loop) that emitted it, so the lines of one print job can be picked out
of an interleaved log:

    2026-10-19 10:15:30 [INFO    ] [print-queue] print_tray.print_queue - Job 1a2b3c4d finished

Usage:
    from logging_config import setup_logging, get_logger

    setup_logging(log_level=logging.INFO, enable_file_logging=True)
    logger = get_logger(__name__)
"""

import asyncio
import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

APP_LOGGER = "print_tray"


class TaskContextFilter(logging.Filter):
    """Adds ``task_name`` to each record: the running asyncio task, else the thread."""

    def filter(self, record: logging.LogRecord) -> bool:
        task = None
        try:
            task = asyncio.current_task()
        except RuntimeError:
            # no running loop in this thread
            pass
        record.task_name = task.get_name() if task is not None else threading.current_thread().name
        return True


def setup_logging(
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = False,
) -> logging.Logger:
    """
    Configure the ``print_tray`` logger.

    A console handler is always installed. With ``enable_file_logging`` a
    rotating application log and a separate ERROR-only log are written to
    ``log_dir`` (default: ./logs next to this file).

    Calling it again replaces the handlers, so it is safe to re-run.
    """
    logger = logging.getLogger(APP_LOGGER)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)-8s] [%(task_name)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    task_filter = TaskContextFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(task_filter)
    logger.addHandler(console_handler)

    if enable_file_logging:
        if log_dir is None:
            log_dir = Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        app_log_file = log_dir / f"{APP_LOGGER}.log"
        file_handler = RotatingFileHandler(
            filename=app_log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(task_filter)
        logger.addHandler(file_handler)

        error_handler = RotatingFileHandler(
            filename=log_dir / f"{APP_LOGGER}_error.log",
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        error_handler.addFilter(task_filter)
        logger.addHandler(error_handler)

        logger.info("File logging enabled: %s", app_log_file)

    logger.info("Logging configured at level %s", logging.getLevelName(log_level))
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Child logger under the ``print_tray`` namespace.

    ``get_logger("print_queue")`` -> ``print_tray.print_queue``
    """
    if not name.startswith(APP_LOGGER):
        name = f"{APP_LOGGER}.{name}"
    return logging.getLogger(name)
