# src/ocrpdf/logger.py

import logging
import sys
from pathlib import Path
from queue import Queue
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from typing import Optional, Union, TextIO

LOGGER_NAME = "ocrpdf"


# --- Custom Formatters ---
class PrefixFormatter(logging.Formatter):
    """Renders console diagnostics as 'Error: ...' / 'Warning: ...'."""
    def format(self, record: logging.LogRecord) -> str:
        label = record.levelname.capitalize()
        return f"{label}: {record.getMessage()}"


# --- Main Configuration Function ---
def setup_logging(
    log_queue: Queue,
    *,
    verbose: bool = False,
    file_path: Optional[Union[str, Path]] = None,
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
    stream: Optional[TextIO] = None,
) -> QueueListener:
    """
    Sets up the logging listener architecture.

    Args:
        log_queue: The queue every worker thread logs to.
        verbose: Attach a console handler on stderr. Without it diagnostics are dropped.
        file_path: Optional persistent log file, written in every mode.
        console_level: Minimum level for the console handler.
        file_level: Minimum level for the file handler.
        stream: Console stream override, defaults to sys.stderr.

    Returns:
        A QueueListener instance. You must call .start() on it.
    """
    handlers = []

    if verbose:
        ch = logging.StreamHandler(stream if stream is not None else sys.stderr)
        ch.setLevel(console_level)
        ch.setFormatter(PrefixFormatter())
        handlers.append(ch)

    if file_path:
        fp = Path(file_path)
        fp.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(fp, maxBytes=5*1024*1024, backupCount=2, encoding="utf-8")
        fh.setLevel(file_level)
        fh.setFormatter(logging.Formatter("%(asctime)s | %(threadName)-22s | %(levelname)-8s | %(message)s"))
        handlers.append(fh)

    if not handlers:
        handlers.append(logging.NullHandler())

    return QueueListener(log_queue, *handlers, respect_handler_level=True)


def configure_logging(log_queue: Queue) -> QueueHandler:
    """
    Routes the package logger into `log_queue`.
    Removes any handlers left from an earlier run and adds only a QueueHandler.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    logger.handlers.clear()
    qh = QueueHandler(log_queue)
    logger.addHandler(qh)
    logger.propagate = False
    return qh


def reset_logging() -> None:
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
