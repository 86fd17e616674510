"""structlog over stdlib logging.

Every run appends JSON lines to a rotating file under
``~/.local/state/kubelens``. Console output goes to stderr and is off
for the TUI, which owns the terminal. Log lines carry the kubectl
context and namespace bound with ``bind_cluster``.
"""

from __future__ import annotations

import logging
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any

import structlog

LOG_DIR = Path.home() / ".local" / "state" / "kubelens"
LOG_FILE = LOG_DIR / "kubelens.log"
MAX_LOG_SIZE = 5 * 1024 * 1024
BACKUP_COUNT = 3
RETENTION_DAYS = 30


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _console_level(verbose: bool, debug: bool) -> int:
    if debug:
        return logging.DEBUG
    return logging.INFO if verbose else logging.WARNING


def _cleanup_old_logs() -> None:
    """Delete rotated logs untouched for RETENTION_DAYS."""
    if not LOG_DIR.exists():
        return
    cutoff = time.time() - RETENTION_DAYS * 86400
    for path in LOG_DIR.glob(f"{LOG_FILE.name}*"):
        try:
            if path.stat().st_mtime < cutoff:
                path.unlink()
        except OSError as e:
            # Another kubelens process may be rotating the same file
            structlog.get_logger().debug("log_cleanup_skipped", path=str(path), error=str(e))


def _setup_file_logging() -> None:
    """Attach the rotating JSON file handler at DEBUG."""
    LOG_DIR.mkdir(parents=True, exist_ok=True)
    _cleanup_old_logs()

    handler = RotatingFileHandler(LOG_FILE, maxBytes=MAX_LOG_SIZE, backupCount=BACKUP_COUNT)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=_shared_processors(),
        )
    )
    logging.getLogger().addHandler(handler)


def _console_handler(level: int, json_output: bool, debug: bool) -> logging.Handler:
    renderer: structlog.types.Processor
    if json_output:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=sys.stderr.isatty(),
            exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=debug),
        )
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer, foreign_pre_chain=_shared_processors()
        )
    )
    return handler


def configure_logging(
    verbose: bool = False,
    debug: bool = False,
    json_output: bool = False,
    console: bool = True,
) -> None:
    """Configure structured logging.

    Args:
        verbose: Show INFO on the console.
        debug: Show DEBUG on the console.
        json_output: Render console lines as JSON.
        console: Attach the stderr handler. ``browse`` passes False.
    """
    # Loggers emit everything; each handler applies its own level
    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.DEBUG),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    if console:
        root.addHandler(_console_handler(_console_level(verbose, debug), json_output, debug))
    _setup_file_logging()


def bind_cluster(context: str | None, namespace: str | None) -> None:
    """Tag subsequent log lines with the kubectl context and namespace."""
    structlog.contextvars.bind_contextvars(
        kube_context=context or "-", kube_namespace=namespace or "-"
    )


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """Logger named ``name`` with ``initial_context`` bound."""
    logger: structlog.BoundLogger = structlog.get_logger(name)
    return logger.bind(**initial_context) if initial_context else logger
