"""Structured logging for mapcov.

Events are rendered by structlog through stdlib handlers, so one config can
send console output to stderr and JSON to a file at separate levels.

Every event emitted inside ``run_scope`` carries a ``run_id``. A source map
session opens one scope per operation with its own id, so the extraction,
reload and remap events of one coverage run can be correlated in the log.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from mapcov.config.models import LoggingConfig

RUN_ID_KEY = "run_id"


def new_run_id() -> str:
    return uuid4().hex[:12]


def get_run_id() -> str | None:
    value = structlog.contextvars.get_contextvars().get(RUN_ID_KEY)
    return str(value) if value else None


def set_run_id(run_id: str | None = None) -> str:
    """Bind ``run_id`` (or a fresh one) to the current context."""
    rid = run_id or new_run_id()
    structlog.contextvars.bind_contextvars(**{RUN_ID_KEY: rid})
    return rid


def clear_run_id() -> None:
    structlog.contextvars.unbind_contextvars(RUN_ID_KEY)


@contextmanager
def run_scope(run_id: str | None = None) -> Iterator[str]:
    """Bind a run id for the duration of the block.

    An explicit ``run_id`` wins, then one already bound by the caller, then a
    fresh one. The previous binding is restored on exit.
    """
    rid = run_id or get_run_id() or new_run_id()
    with structlog.contextvars.bound_contextvars(**{RUN_ID_KEY: rid}):
        yield rid


def _level(name: str | None, default: int) -> int:
    value = logging.getLevelName((name or "").upper())
    return value if isinstance(value, int) else default


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog. Pass config for multi-output, or use simple params.

    Args:
        config: Logging configuration with outputs
        json_format: Use JSON format for simple setup
        level: Default log level
    """
    from mapcov.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    default_level = _level(config.level, logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(default_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Don't cache - allows reconfiguration and respects level changes
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        handler.close()
    root_logger.handlers.clear()
    root_logger.setLevel(default_level)

    for output in config.outputs:
        handler = _create_handler(output.destination)
        handler.setLevel(_level(output.level or config.level, default_level))
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=_renderer(output.format, output.destination),
                foreign_pre_chain=shared_processors,
            )
        )
        root_logger.addHandler(handler)


def _renderer(fmt: str, destination: str) -> structlog.types.Processor:
    if fmt == "json":
        return structlog.processors.JSONRenderer()
    is_console = destination in ("stderr", "stdout")
    return structlog.dev.ConsoleRenderer(
        colors=is_console and sys.stderr.isatty(),
        pad_event_to=0,
        pad_level=False,
    )


def _create_handler(destination: str) -> logging.Handler:
    """Create handler for stderr, stdout, or file path."""
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a")


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
