"""Logging setup for the flattening CLI and embedding applications.

Library modules only call ``logging.getLogger(__name__)``; the application
decides where records go by calling setup_logging() once at startup:
    - Colored human-readable console output on stderr
    - Optional log file, human or JSON lines
    - Contextual fields (app, curve) appended to every record
    - Python warnings and uncaught exceptions routed through logging

Usage:
    from bezier_flatten.utils import logging_config

    logging_config.setup_logging("DEBUG", log_file="outputs/logs/flatten.log",
                                 json=True, context={"app": "flatten"})
    with logging_config.log_context(curve="s-curve"):
        logger.info("18 points")

Record layout:
    Human: 2026-10-19T13:45:12.345Z | INFO     | app=flatten curve=s-curve | 18 points
    JSON: {"t": "2026-10-19T13:45:12.345000+00:00", "lvl": "INFO",
           "logger": "...", "msg": "18 points", "app": "flatten", "curve": "s-curve"}

setup_logging() is idempotent: it replaces the handlers it installed before
and leaves handlers added by other code (e.g. pytest's caplog) alone.
"""

import contextlib
import contextvars
import json as jsonlib
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional


_fields: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar('log_fields', default={})

_handlers: List[logging.Handler] = []


class ContextFormatter(logging.Formatter):
    """Render records as "human" lines or "json" objects, with context fields."""

    LEVEL_COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def __init__(self, mode: str = "human", color: bool = False):
        super().__init__()
        if mode not in ("human", "json"):
            raise ValueError(f"Unknown format mode: {mode}. Use 'human' or 'json'.")
        self.mode = mode
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        when = datetime.fromtimestamp(record.created, tz=timezone.utc)
        fields = _fields.get()

        if self.mode == "json":
            entry = {
                't': when.isoformat(),
                'lvl': record.levelname,
                'logger': record.name,
                'msg': record.getMessage(),
                **fields,
            }
            if record.exc_info:
                entry['exc'] = self.formatException(record.exc_info)
            return jsonlib.dumps(entry, default=str)

        level = f"{record.levelname:8s}"
        if self.color:
            level = f"{self.LEVEL_COLORS.get(record.levelname, '')}{level}{self.RESET}"

        parts = [when.strftime('%Y-%m-%dT%H:%M:%S.') + f"{when.microsecond // 1000:03d}Z", level]
        if fields:
            parts.append(' '.join(f"{k}={v}" for k, v in fields.items()))
        parts.append(record.getMessage())

        line = ' | '.join(parts)
        if record.exc_info:
            line += '\n' + self.formatException(record.exc_info)
        return line


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    to_stderr: bool = True,
    capture_warnings: bool = True,
    context: Optional[Dict[str, Any]] = None
) -> List[logging.Handler]:
    """Configure the root logger.

    Parameters
    ----------
    log_level : str
        "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL" (any case)
    log_file : str, optional
        Also write records here; parent directories are created
    json : bool
        JSON lines in the log file instead of human-readable lines
    to_stderr : bool
        Console output on stderr, colored when stderr is a terminal
    capture_warnings : bool
        Route ``warnings.warn`` through the 'py.warnings' logger
    context : dict, optional
        Fields to attach to every subsequent record (see push_context)

    Returns
    -------
    list[logging.Handler]
        Handlers now installed on the root logger
    """
    root = logging.getLogger()
    while _handlers:
        handler = _handlers.pop()
        root.removeHandler(handler)
        handler.close()

    root.setLevel(log_level.upper())

    if to_stderr:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ContextFormatter("human", color=sys.stderr.isatty()))
        _handlers.append(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(ContextFormatter("json" if json else "human"))
        _handlers.append(file_handler)

    for handler in _handlers:
        root.addHandler(handler)

    logging.captureWarnings(capture_warnings)

    if context:
        push_context(**context)

    return list(_handlers)


def push_context(**fields) -> None:
    """Attach fields to every subsequent record in this context."""
    _fields.set({**_fields.get(), **fields})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Drop the given fields, or all of them when keys is None."""
    if keys is None:
        _fields.set({})
        return
    _fields.set({k: v for k, v in _fields.get().items() if k not in keys})


@contextlib.contextmanager
def log_context(**fields) -> Iterator[None]:
    """Attach fields for the duration of a block, then restore the previous ones."""
    token = _fields.set({**_fields.get(), **fields})
    try:
        yield
    finally:
        _fields.reset(token)


def install_excepthook() -> None:
    """Log uncaught exceptions (Ctrl+C excepted) as CRITICAL before exiting."""
    def hook(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logging.getLogger(__name__).critical(
            "Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback)
        )

    sys.excepthook = hook
