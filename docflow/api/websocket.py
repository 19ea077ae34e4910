"""WebSocket endpoint for live per-document status updates.

Connects a client to one document's status stream via a
:class:`~docflow.pipeline.status_tracker.StatusTracker` subscription.
Every message is a full ``ProcessingStatus`` snapshot serialized as JSON.

# ─── HOW WEBSOCKET STATUS WORKS ───────────────────────────────────────
#
#   Client                               Backend (this file)
#   ──────                               ──────────────────
#   ws = new WebSocket(url)   ──────→   websocket.accept()
#                                        tracker.subscribe(callback)
#                             ←──────   current snapshot (if any)
#                                        ...pipeline runs...
#                             ←──────   status snapshot (JSON)
#                             ←──────   status snapshot (JSON)
#   ws.close()                ──────→   WebSocketDisconnect
#                                        subscription.unsubscribe()
#
# The snapshot is read and the subscription registered with no await in
# between, so no update can slip through the gap.  Live updates wait on
# ``ready`` until the snapshot has been sent, which keeps it first.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
import contextlib

import structlog
from fastapi import WebSocket, WebSocketDisconnect

from docflow.models.pipeline import ProcessingStatus
from docflow.pipeline.status_tracker import StatusTracker
from docflow.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


async def websocket_status(websocket: WebSocket, document_id: str) -> None:
    """Stream status snapshots for *document_id* until the client disconnects.

    A client may connect before the document is submitted; it then receives
    no initial snapshot, only the live updates from ``pending`` onwards.
    """
    tracker: StatusTracker = websocket.app.state.context.tracker

    await websocket.accept()
    _logger.info("websocket_connected", document_id=document_id)

    ready = asyncio.Event()

    async def _on_status(status: ProcessingStatus) -> None:
        await ready.wait()
        # The socket may close between the update and the send; the
        # finally block below cleans up.
        with contextlib.suppress(Exception):
            await websocket.send_json(status.model_dump(mode="json"))

    current = tracker.get_status(document_id)
    subscription = tracker.subscribe(document_id, _on_status)

    try:
        if current is not None:
            await websocket.send_json(current.model_dump(mode="json"))
        ready.set()

        while True:
            await websocket.receive_text()

    except WebSocketDisconnect:
        _logger.info("websocket_disconnected", document_id=document_id)

    finally:
        ready.set()
        subscription.unsubscribe()
        _logger.debug("websocket_subscription_released", document_id=document_id)
