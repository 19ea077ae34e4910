"""docflow FastAPI application entry point.

Wires together the processor registry, status tracker, embedding provider,
document store, and pipeline via dependency injection.  Everything is
constructed once by :func:`build_context` and torn down by
:meth:`ProcessingContext.shutdown`; nothing lives in module-level globals.

Run the development server with::

    python -m docflow.main
"""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from dataclasses import dataclass

import structlog
import uvicorn
from fastapi import FastAPI, WebSocket

from docflow import __version__
from docflow.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from docflow.api.routes import router as api_router
from docflow.api.websocket import websocket_status
from docflow.config.loader import load_config, settings_from_config
from docflow.config.settings import Settings
from docflow.interfaces.document_store import IDocumentStore
from docflow.interfaces.embedding_provider import IEmbeddingProvider
from docflow.pipeline.orchestrator import DocumentProcessingPipeline
from docflow.pipeline.status_tracker import StatusTracker
from docflow.services.ingestion.registry import ProcessorRegistry, build_default_registry
from docflow.utils.errors import ConfigurationError
from docflow.utils.logging import configure_logging, get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

# Upper bound on how often finished statuses are purged.
_PURGE_INTERVAL_SECONDS = 3600


# ---------------------------------------------------------------------------
# Process context
# ---------------------------------------------------------------------------


@dataclass
class ProcessingContext:
    """Every long-lived component, built once per process."""

    settings: Settings
    registry: ProcessorRegistry
    tracker: StatusTracker
    embedding_provider: IEmbeddingProvider
    store: IDocumentStore
    pipeline: DocumentProcessingPipeline

    async def start(self) -> None:
        await self.store.initialize()
        _logger.info(
            "context_started",
            embedding_provider=self.embedding_provider.get_provider_name(),
            store=type(self.store).__name__,
            processors=len(self.registry),
        )

    async def shutdown(self) -> None:
        await self.tracker.close()
        await self.store.close()
        _logger.info("context_shutdown")


def build_embedding_provider(settings: Settings) -> IEmbeddingProvider:
    """Select the embedding provider.

    Priority: OpenAI/OpenAI-compatible (if API key set) -> offline hash
    embedder.
    """
    if settings.openai_api_key:
        from docflow.providers.embedding.openai_embedding_provider import (
            OpenAIEmbeddingProvider,
        )

        provider: IEmbeddingProvider = OpenAIEmbeddingProvider(settings=settings)
        if provider.is_available():
            return provider

    from docflow.providers.embedding.hash_embedding_provider import HashEmbeddingProvider

    return HashEmbeddingProvider(dimension=settings.embedding_dimension)


def build_store(settings: Settings) -> IDocumentStore:
    """Select the document store named by ``settings.store_backend``."""
    backend = settings.store_backend.lower()
    if backend == "memory":
        from docflow.providers.store.memory_store import MemoryDocumentStore

        return MemoryDocumentStore()
    if backend == "sqlite":
        from docflow.providers.store.sqlite_store import SQLiteDocumentStore

        return SQLiteDocumentStore(db_path=settings.sqlite_db_path)
    raise ConfigurationError(f"Unknown store backend: {settings.store_backend!r}")


def build_context(
    settings: Settings | None = None,
    *,
    embedding_provider: IEmbeddingProvider | None = None,
    store: IDocumentStore | None = None,
) -> ProcessingContext:
    """Construct every component with injected dependencies.

    Parameters
    ----------
    settings:
        Application settings.  Defaults to ``config/config.yaml`` merged
        with the environment.
    embedding_provider, store:
        Optional overrides (tests inject fakes here).
    """
    s = settings or settings_from_config(load_config())

    registry = build_default_registry(
        lines_per_chunk=s.spreadsheet_lines_per_chunk,
        image_confidence=s.image_confidence,
    )
    tracker = StatusTracker()
    embedder = embedding_provider or build_embedding_provider(s)
    doc_store = store or build_store(s)
    pipeline = DocumentProcessingPipeline(
        registry=registry,
        tracker=tracker,
        embedding_provider=embedder,
        store=doc_store,
        chunk_size=s.chunk_size,
        chunk_overlap=s.chunk_overlap,
        stage_timeout=s.stage_timeout_seconds,
    )
    return ProcessingContext(
        settings=s,
        registry=registry,
        tracker=tracker,
        embedding_provider=embedder,
        store=doc_store,
        pipeline=pipeline,
    )


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


async def _purge_loop(context: ProcessingContext) -> None:
    retention = context.settings.status_retention_seconds
    interval = min(retention, _PURGE_INTERVAL_SECONDS)
    while True:
        await asyncio.sleep(interval)
        context.tracker.purge_finished(retention)


def _make_lifespan(context: ProcessingContext | None, settings: Settings | None):  # noqa: ANN202
    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        """Build the context on startup, tear it down on shutdown."""
        ctx = context or build_context(settings)
        await ctx.start()
        application.state.context = ctx

        purge_task = None
        if ctx.settings.status_retention_seconds > 0:
            purge_task = asyncio.create_task(_purge_loop(ctx))

        _logger.info("app_startup", version=__version__, environment=ctx.settings.app_env)

        yield

        if purge_task is not None:
            purge_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await purge_task
        await ctx.shutdown()
        _logger.info("app_shutdown")

    return _lifespan


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    context: ProcessingContext | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Pass *context* to serve a pre-built context (tests); otherwise one is
    built from *settings* at startup.
    """
    log_settings = context.settings if context is not None else settings or Settings()
    configure_logging(
        log_level=log_settings.log_level,
        json_output=(log_settings.app_env == "production"),
    )

    application = FastAPI(
        title="docflow API",
        version=__version__,
        description=(
            "Upload PDF, Word, spreadsheet, image, or text files; extract their "
            "content, split it into overlapping chunks, embed, and index it, "
            "with live per-document progress."
        ),
        lifespan=_make_lifespan(context, settings),
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    # -- WebSocket --
    @application.websocket("/ws/documents/{document_id}")
    async def ws_status(websocket: WebSocket, document_id: str) -> None:
        await websocket_status(websocket, document_id)

    return application


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    _settings = Settings()
    uvicorn.run(
        "docflow.main:create_app",
        factory=True,
        host=_settings.app_host,
        port=_settings.app_port,
        reload=(_settings.app_env == "development"),
    )
