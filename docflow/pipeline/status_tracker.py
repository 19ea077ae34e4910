"""Per-document processing status store with subscription-based notification.

Tracks the latest :class:`~docflow.models.pipeline.ProcessingStatus` for
every document and broadcasts each update to the subscribers registered for
that document.  Subscribers are keyed by document id so concurrent
pipelines never cross-talk.

# ─── HOW STATUS NOTIFICATION WORKS ────────────────────────────────────
#
#   Orchestrator ──update()──→ StatusTracker ──queue──→ Subscription ──→ callback
#                                                    ──→ Subscription ──→ WebSocket
#
# Data flow:
#   1. The orchestrator calls tracker.update(document_id, **changes)
#   2. Under the document's lock, the tracker reads the current snapshot,
#      merges the changes into a new frozen copy, and stores it
#   3. The new snapshot is put on the queue of every subscription that is
#      registered *at that moment* (late subscribers get no replay; they
#      call get_status() once to catch up)
#   4. Each subscription drains its own queue in a background task, so a
#      slow callback never delays the pipeline, while delivery per
#      subscription stays in update order
#
#   - Callback errors are caught and logged; a broken subscriber cannot
#     crash the pipeline or starve the other subscribers
#   - Both sync and async callbacks are supported (asyncio.iscoroutine check)
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from typing import Any, Union

import structlog

from docflow.models.pipeline import ProcessingStage, ProcessingStatus
from docflow.utils.logging import get_logger

StatusCallback = Callable[[ProcessingStatus], Union[None, Awaitable[None]]]

# Queue sentinel: stop after delivering everything queued before it.
_STOP = object()


class Subscription:
    """Handle returned by :meth:`StatusTracker.subscribe`.

    Calling the handle (or :meth:`unsubscribe`) removes exactly this one
    registration; repeated calls are no-ops.  Updates already queued when
    the subscription is cancelled are still delivered.
    """

    def __init__(
        self,
        tracker: StatusTracker,
        document_id: str,
        callback: StatusCallback,
    ) -> None:
        self._tracker = tracker
        self._document_id = document_id
        self._callback = callback
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._task: asyncio.Task[None] | None = None
        self._active = True

    @property
    def document_id(self) -> str:
        return self._document_id

    @property
    def active(self) -> bool:
        return self._active

    def __call__(self) -> None:
        self.unsubscribe()

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._tracker._remove(self)
        if self._task is not None:
            self._queue.put_nowait(_STOP)

    async def drain(self) -> None:
        """Wait until every update queued so far has been delivered."""
        if self._task is not None:
            await self._queue.join()

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    def _deliver(self, status: ProcessingStatus) -> None:
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self._run())
        self._queue.put_nowait(status)

    async def _run(self) -> None:
        while True:
            item = await self._queue.get()
            try:
                if item is _STOP:
                    self._tracker._workers.discard(self)
                    return
                result = self._callback(item)
                if asyncio.iscoroutine(result):
                    await result
            except Exception as exc:
                self._tracker._logger.warning(
                    "subscriber_callback_error",
                    document_id=self._document_id,
                    error=str(exc),
                    callback=getattr(self._callback, "__name__", repr(self._callback)),
                )
            finally:
                self._queue.task_done()

    def _cancel(self) -> None:
        self._active = False
        if self._task is not None and not self._task.done():
            self._task.cancel()


class StatusTracker:
    """Process-wide map of document id -> latest status, plus subscribers.

    Updates for one document are serialized by a per-document
    :class:`asyncio.Lock`; different documents never contend.  Only frozen
    snapshots ever leave the tracker.
    """

    def __init__(self) -> None:
        self._statuses: dict[str, ProcessingStatus] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._subscriptions: dict[str, list[Subscription]] = {}
        # Every subscription whose worker may still hold queued updates.
        self._workers: set[Subscription] = set()
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_status(self, document_id: str) -> ProcessingStatus | None:
        """Return the latest snapshot for *document_id*, or ``None``."""
        return self._statuses.get(document_id)

    def list_statuses(self) -> list[ProcessingStatus]:
        """Return the latest snapshot of every tracked document."""
        return list(self._statuses.values())

    async def create(self, document_id: str, file_name: str) -> ProcessingStatus:
        """Start a fresh ``pending`` record for *document_id* and broadcast it.

        Any earlier record for the same id (a previous run) is replaced.
        """
        async with self._lock_for(document_id):
            status = ProcessingStatus(document_id=document_id, file_name=file_name)
            self._store_and_notify(status)
        self._logger.debug("status_created", document_id=document_id, file_name=file_name)
        return status

    async def update(self, document_id: str, **changes: Any) -> ProcessingStatus:
        """Merge *changes* into the current snapshot, store, and broadcast it.

        Raises
        ------
        KeyError
            If no record exists for *document_id*.
        """
        async with self._lock_for(document_id):
            current = self._statuses.get(document_id)
            if current is None:
                raise KeyError(f"No status record for document {document_id!r}")
            status = current.model_copy(update=changes)
            self._store_and_notify(status)

        self._logger.debug(
            "status_updated",
            document_id=document_id,
            status=status.status.value,
            progress=status.progress,
        )
        return status

    def subscribe(self, document_id: str, callback: StatusCallback) -> Subscription:
        """Register *callback* for every future update of *document_id*.

        Returns
        -------
        Subscription
            Callable handle; invoke it to unsubscribe.
        """
        subscription = Subscription(self, document_id, callback)
        self._subscriptions.setdefault(document_id, []).append(subscription)
        self._workers.add(subscription)
        self._logger.debug(
            "subscriber_registered",
            document_id=document_id,
            total_subscribers=len(self._subscriptions[document_id]),
        )
        return subscription

    async def flush(self, document_id: str | None = None) -> None:
        """Wait until all queued notifications (optionally for one document) are delivered."""
        pending = [
            sub
            for sub in list(self._workers)
            if document_id is None or sub.document_id == document_id
        ]
        for sub in pending:
            await sub.drain()

    def stats(self) -> dict[str, int]:
        """Count tracked documents by outcome."""
        counts = {"processing": 0, "completed": 0, "failed": 0}
        for status in self._statuses.values():
            if status.status == ProcessingStage.COMPLETED:
                counts["completed"] += 1
            elif status.status == ProcessingStage.ERROR:
                counts["failed"] += 1
            else:
                counts["processing"] += 1
        counts["total"] = len(self._statuses)
        return counts

    def purge_finished(self, max_age_seconds: float) -> int:
        """Drop terminal records that finished more than *max_age_seconds* ago.

        Returns the number of records removed.  In-flight records are never
        purged.
        """
        cutoff = datetime.now(tz=timezone.utc) - timedelta(seconds=max_age_seconds)  # noqa: UP017
        stale = [
            doc_id
            for doc_id, status in self._statuses.items()
            if status.is_terminal and (status.completed_at or status.started_at) < cutoff
        ]
        for doc_id in stale:
            del self._statuses[doc_id]
            lock = self._locks.get(doc_id)
            if lock is not None and not lock.locked():
                del self._locks[doc_id]
        if stale:
            self._logger.info("statuses_purged", removed=len(stale))
        return len(stale)

    async def close(self) -> None:
        """Deliver what is queued, then stop every subscription worker."""
        for subs in list(self._subscriptions.values()):
            for sub in list(subs):
                sub.unsubscribe()
        await self.flush()
        for sub in list(self._workers):
            sub._cancel()
        self._workers.clear()

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _lock_for(self, document_id: str) -> asyncio.Lock:
        lock = self._locks.get(document_id)
        if lock is None:
            lock = self._locks[document_id] = asyncio.Lock()
        return lock

    def _store_and_notify(self, status: ProcessingStatus) -> None:
        self._statuses[status.document_id] = status
        for sub in list(self._subscriptions.get(status.document_id, ())):
            sub._deliver(status)

    def _remove(self, subscription: Subscription) -> None:
        subs = self._subscriptions.get(subscription.document_id)
        if subs is None:
            return
        if subscription in subs:
            subs.remove(subscription)
            self._logger.debug(
                "subscriber_unregistered",
                document_id=subscription.document_id,
                remaining_subscribers=len(subs),
            )
        if not subs:
            del self._subscriptions[subscription.document_id]
        if subscription._task is None:
            self._workers.discard(subscription)
