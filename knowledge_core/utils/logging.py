"""structlog configuration for knowledge_core.

One processor chain serves both structlog loggers and the standard
library ``logging`` module (httpx, PyMuPDF warnings, ...), so every line
leaves the process in one format: coloured console output while
developing, JSON lines when ``APP_ENV=production`` or when asked for.

Log lines always go to stderr.  The CLI writes its JSON results to
stdout, and the two streams must stay separable.
"""

import logging
import os
import sys
from typing import TextIO

import structlog

# Libraries that log every request at INFO; kept at WARNING unless the
# caller asked for DEBUG.
_CHATTY_LIBRARIES = ("httpx", "httpcore")


def _shared_processors() -> list[structlog.types.Processor]:
    # contextvars must run first so bound crawl/ingestion ids reach every line.
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def _renderer(use_json: bool) -> structlog.types.Processor:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def configure_logging(
    log_level: str = "INFO",
    json_output: bool | None = None,
    stream: TextIO | None = None,
) -> structlog.BoundLogger:
    """Install the knowledge_core logging pipeline.

    Parameters
    ----------
    log_level:
        Minimum level name (``DEBUG``, ``INFO``, ``WARNING``, ``ERROR``).
    json_output:
        ``True``/``False`` forces the renderer; ``None`` picks JSON only
        when ``APP_ENV`` is ``production``.
    stream:
        Destination for every log line.  Defaults to ``sys.stderr``.

    Returns
    -------
    structlog.BoundLogger
        A logger from the freshly configured pipeline.
    """
    level_name = log_level.upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {log_level}")

    if json_output is None:
        json_output = os.environ.get("APP_ENV", "development") == "production"
    renderer = _renderer(json_output)
    target = stream or sys.stderr
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=target),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(target)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared,
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in _CHATTY_LIBRARIES:
        logging.getLogger(name).setLevel(library_level)

    return structlog.get_logger(logger_name="knowledge_core")
