"""structlog setup shared by the service, the CLI, and the pipeline.

One processor chain (context vars, level, stack/exception info, ISO
timestamps) ends in either a ConsoleRenderer or, in production, a
JSONRenderer.  Standard-library logging from httpx, uvicorn, openai and
aiosqlite is routed through the same chain so every line looks alike.

Pipeline runs bind ``document_id`` / ``file_name`` with
:func:`document_log_context`; because extraction runs via
``asyncio.to_thread`` (which copies context vars), extractor log lines
carry the same fields.
"""

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import IO, Any

import structlog

# Chatty libraries never log below WARNING.
_NOISY_LOGGERS = ("httpx", "openai", "aiosqlite", "PIL")


def configure_logging(
    log_level: str = "INFO",
    json_output: bool = False,
    stream: IO[str] | None = None,
) -> structlog.BoundLogger:
    """Configure structlog and stdlib logging.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL.
        json_output: Force the JSON renderer.  Otherwise JSON is used only
                     when ``APP_ENV=production``.
        stream: Where log lines go (default ``sys.stdout``).  The CLI passes
                ``sys.stderr`` so ``--json`` output stays parseable.

    Returns:
        A configured structlog BoundLogger.
    """
    app_env = os.environ.get("APP_ENV", "development")
    use_json = json_output or app_env == "production"
    out = stream if stream is not None else sys.stdout
    level = logging.getLevelName(log_level.upper())

    # contextvars first so document-scoped bindings reach every renderer.
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if use_json:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=out.isatty())

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(out)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *shared_processors,
                renderer,
            ],
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return structlog.get_logger()


def get_logger(name: str) -> structlog.BoundLogger:
    """Return a structlog logger named *name*, configuring defaults on first use."""
    if not structlog.is_configured():
        configure_logging()

    return structlog.get_logger(logger_name=name)


@contextmanager
def document_log_context(document_id: str, **extra: Any) -> Iterator[None]:
    """Bind ``document_id`` (and *extra*) to every log line in this context."""
    with structlog.contextvars.bound_contextvars(document_id=document_id, **extra):
        yield
