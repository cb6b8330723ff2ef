"""
Coaster Stats - Structured Logging
Provides JSON-formatted console logging plus the plain-text scrape run logs.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict

from pythonjsonlogger import jsonlogger

from .config import LOG_LEVEL, config


def setup_logger(name: str = __name__) -> logging.Logger:
    """
    Configure structured JSON logger.

    Args:
        name: Logger name (typically __name__ from calling module)

    Returns:
        Configured logger instance

    Example:
        >>> logger = setup_logger(__name__)
        >>> logger.info("Scrape completed", extra={
        ...     "processed": 23211,
        ...     "downloaded": 8120,
        ...     "failed": 3
        ... })
    """
    logger = logging.getLogger(name)

    # Prevent duplicate handlers
    if logger.handlers:
        return logger

    level = getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(name)s %(levelname)s %(message)s',
        datefmt='%Y-%m-%dT%H:%M:%S'
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)

    # Don't propagate to root logger
    logger.propagate = False

    return logger


# Global logger instance
logger = setup_logger('coaster_stats')


class _IsoTimestampFormatter(logging.Formatter):
    """Formats records as ``[<iso timestamp>] <LABEL>: <message>``."""

    def __init__(self, label: str):
        super().__init__()
        self.label = label

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(timespec='milliseconds')
        return f"[{stamp}] {self.label}: {record.getMessage()}"


class RunLogFiles:
    """
    The three append-only text logs written by a scrape run.

    - success.log: one line per coaster fully processed
    - error.log: upstream warnings, image failures, save failures
    - data_saved.log: every statistic inserted into a stat table

    Each file is restarted with a session header when the run begins.
    Error lines are echoed to the structured logger as well.
    """

    FILES = {
        'success': ('success.log', 'SUCCESS'),
        'error': ('error.log', 'ERROR'),
        'data': ('data_saved.log', 'DATA'),
    }

    def __init__(self, log_dir: Path):
        self.log_dir = Path(log_dir)
        self._loggers: Dict[str, logging.Logger] = {}

    def start_session(self) -> None:
        """Create the log directory and write the session header to each file."""
        self.close()
        self.log_dir.mkdir(parents=True, exist_ok=True)
        header = f"--- Log session started at {datetime.now(timezone.utc).isoformat()} ---\n"

        for kind, (filename, label) in self.FILES.items():
            path = self.log_dir / filename
            path.write_text(header, encoding='utf-8')

            # Private to this instance; not registered with the logging manager
            file_logger = logging.Logger(f"coaster_stats.run.{kind}")
            file_logger.setLevel(logging.INFO)
            file_logger.propagate = False

            handler = logging.FileHandler(path, mode='a', encoding='utf-8')
            handler.setFormatter(_IsoTimestampFormatter(label))
            file_logger.addHandler(handler)
            self._loggers[kind] = file_logger

        logger.info(f"Log files created at {self.log_dir}")

    def success(self, message: str) -> None:
        self._write('success', message)

    def error(self, message: str, echo: bool = True) -> None:
        if echo:
            logger.error(message, extra={"event_type": "scrape_error"})
        self._write('error', message)

    def data(self, message: str) -> None:
        self._write('data', message)

    def close(self) -> None:
        """Flush and detach file handlers."""
        for file_logger in self._loggers.values():
            for handler in list(file_logger.handlers):
                file_logger.removeHandler(handler)
                handler.close()
        self._loggers = {}

    def _write(self, kind: str, message: str) -> None:
        file_logger = self._loggers.get(kind)
        if file_logger is not None:
            file_logger.info(message)


def log_scrape_start(start_id: int, end_id: int, concurrency: int):
    """Log the start of a scrape run."""
    logger.info("Coaster scrape started", extra={
        "event_type": "scrape_start",
        "start_id": start_id,
        "end_id": end_id,
        "concurrency": concurrency,
        "environment": config.environment
    })


def log_scrape_complete(duration_seconds: float, counts: Dict[str, int]):
    """Log scrape completion with outcome counts."""
    logger.info("Coaster scrape completed", extra={
        "event_type": "scrape_complete",
        "duration_seconds": duration_seconds,
        **counts
    })


def log_api_request(method: str, path: str, status_code: int, duration_ms: float):
    """Log API request metrics."""
    logger.info("API request", extra={
        "event_type": "api_request",
        "method": method,
        "path": path,
        "status_code": status_code,
        "duration_ms": duration_ms
    })
