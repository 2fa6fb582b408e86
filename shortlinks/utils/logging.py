"""Application-wide logging initialization

IMPORTANT: Call `initialize_logging()` in the lambda handler's `__init__.py` file
before any other logging is done.

Logging format:
{
    "timestamp": "2025-10-15T12:00:00.000Z",
    "level": "INFO",
    "logger": "shortlinks.store",
    "message": "Short link created",
    "shortCode": "abc123"
}

Besides stdout, records can be kept in a bounded in-memory LogBufferHandler
so a host application can inspect, filter and export its recent log history.
"""

import os
import json
import logging
import logging.config
from collections import deque
from datetime import datetime, UTC
from typing import Any

from shortlinks.constants import ENV, DEFAULT_LOG_BUFFER_SIZE


class JsonFormatter(logging.Formatter):
    """JSON formatter that includes LogRecord extras"""

    STANDARD_ATTRS = frozenset(
        {
            'args',
            'asctime',
            'created',
            'exc_info',
            'exc_text',
            'filename',
            'funcName',
            'levelname',
            'levelno',
            'lineno',
            'module',
            'msecs',
            'msg',
            'name',
            'pathname',
            'process',
            'processName',
            'relativeCreated',
            'stack_info',
            'thread',
            'threadName',
            'taskName',
        }
    )

    def to_dict(self, record: logging.LogRecord) -> dict[str, Any]:
        # fmt: off
        timestamp = datetime.fromtimestamp(record.created, tz=UTC) \
                            .isoformat(timespec="milliseconds") \
                            .replace("+00:00", "Z")
        # fmt: on

        log = {
            'timestamp': timestamp,
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        # Attach `extra` fields
        for key, value in record.__dict__.items():
            if key not in self.STANDARD_ATTRS:
                log[key] = value

        if record.exc_info:
            log['exception'] = self.formatException(record.exc_info)

        return log

    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(self.to_dict(record), default=str)


class LogBufferHandler(logging.Handler):
    """Keep the latest log entries in memory

    Entries are stored as JsonFormatter dictionaries. Once `capacity` is reached
    the oldest entries are discarded.

    Example:
        >>> buffer = LogBufferHandler(capacity=100)
        >>> logging.getLogger('shortlinks').addHandler(buffer)
        >>> logging.getLogger('shortlinks.store').warning('Short link expired', extra={'shortCode': 'abc123'})
        >>> buffer.by_level('WARNING')[0]['shortCode']
        'abc123'
    """

    def __init__(self, capacity: int = DEFAULT_LOG_BUFFER_SIZE, level: int = logging.NOTSET):
        super().__init__(level=level)
        if capacity < 1:
            raise ValueError(f'Capacity must be a positive integer (given value: {capacity}).')
        self.entries: deque[dict[str, Any]] = deque(maxlen=capacity)
        self.setFormatter(JsonFormatter())

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.entries.append(self.formatter.to_dict(record))
        except Exception:
            self.handleError(record)

    def records(self) -> list[dict[str, Any]]:
        return list(self.entries)

    def by_level(self, level: str) -> list[dict[str, Any]]:
        return [entry for entry in self.entries if entry['level'] == level.upper()]

    def by_module(self, module: str) -> list[dict[str, Any]]:
        """Entries emitted by the `module` logger or any of its children"""
        return [entry for entry in self.entries if entry['logger'] == module or entry['logger'].startswith(f'{module}.')]

    def clear(self) -> None:
        self.entries.clear()

    def export(self) -> str:
        return json.dumps(list(self.entries), indent=2, default=str)


def initialize_logging(buffer: LogBufferHandler | None = None) -> None:
    log_level = os.getenv(ENV.App.LOG_LEVEL, 'INFO').upper()
    handlers = {
        'stdout': {
            'class': 'logging.StreamHandler',
            'formatter': 'json',
            'stream': 'ext://sys.stdout',
        }
    }
    if buffer is not None:
        handlers['buffer'] = {
            '()': lambda: buffer,
        }

    logging.config.dictConfig(
        {
            'version': 1,
            'disable_existing_loggers': False,
            'formatters': {
                'json': {
                    '()': JsonFormatter,
                }
            },
            'handlers': handlers,
            'root': {
                'level': log_level,
                'handlers': list(handlers),
            },
        }
    )
