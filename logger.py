"""
Logging configuration with rotation, request ids and multiple handlers
"""
import logging
import sys
from contextvars import ContextVar
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from config import settings

# Id of the request being served, "-" outside of requests (e.g. at startup)
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")

CONSOLE_FORMAT = '(Thread %(threadName)s) [%(asctime)s] %(levelname)s %(name)s [%(request_id)s] - %(message)s'
FILE_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(request_id)s] %(funcName)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class RequestIdFilter(logging.Filter):
    """Stamp each record with the id of the request it was logged for"""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get()
        return True


def _rotating_handler(path: Path, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path,
        maxBytes=settings.get('log_file_max_bytes', 10485760),
        backupCount=settings.get('log_file_backup_count', 10),
        encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def get_logger(name: str, log_file: Optional[str] = None) -> logging.Logger:
    """
    Get a logger writing to the console and to rotating files.

    Loggers of the modules of a package propagate to the package logger:
    configuring the package logger once is enough.

    Args:
        name: Logger name
        log_file: File of the full log, in the configured log directory
    """
    log_dir = Path(settings.get('log_dir', 'logs'))
    log_dir.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logger.setLevel(log_level)

    # Prevent duplicate logs
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))

    handlers = [
        console_handler,
        _rotating_handler(log_dir / (log_file or "nlp_server.log"), logging.DEBUG),
        _rotating_handler(log_dir / "errors.log", logging.ERROR),
    ]
    request_id_filter = RequestIdFilter()
    for handler in handlers:
        handler.addFilter(request_id_filter)
        logger.addHandler(handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return logger


def configure_root_logger():
    """Configure the root logger for third-party libraries"""
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)

    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        root_logger.addHandler(handler)


configure_root_logger()
