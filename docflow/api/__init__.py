"""docflow API layer -- routes, schemas, WebSocket, and middleware."""

from docflow.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from docflow.api.routes import router
from docflow.api.schemas import (
    CancelResponse,
    DocumentAcceptedResponse,
    DocumentProcessedResponse,
    ErrorResponse,
    HealthResponse,
    ProcessingStatsResponse,
)
from docflow.api.websocket import websocket_status

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "websocket_status",
    "CancelResponse",
    "DocumentAcceptedResponse",
    "DocumentProcessedResponse",
    "ErrorResponse",
    "HealthResponse",
    "ProcessingStatsResponse",
]
