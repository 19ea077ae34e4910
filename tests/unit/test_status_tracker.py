"""Unit tests for StatusTracker and its subscriptions."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from docflow.models.pipeline import ProcessingStage, ProcessingStatus
from docflow.pipeline.status_tracker import StatusTracker


class TestSnapshots:
    @pytest.mark.asyncio
    async def test_create_and_get(self) -> None:
        tracker = StatusTracker()
        status = await tracker.create("doc-1", "a.txt")

        assert status.status == ProcessingStage.PENDING
        assert status.progress == 0.0
        assert status.total_steps == 5
        assert tracker.get_status("doc-1") is status
        assert tracker.get_status("missing") is None

    @pytest.mark.asyncio
    async def test_update_replaces_snapshot(self) -> None:
        tracker = StatusTracker()
        first = await tracker.create("doc-1", "a.txt")
        second = await tracker.update("doc-1", status=ProcessingStage.EXTRACTING, progress=20.0)

        assert second is not first
        assert first.status == ProcessingStage.PENDING
        assert tracker.get_status("doc-1").progress == 20.0

    @pytest.mark.asyncio
    async def test_snapshots_are_frozen(self) -> None:
        tracker = StatusTracker()
        status = await tracker.create("doc-1", "a.txt")
        with pytest.raises(Exception):
            status.progress = 99.0  # type: ignore[misc]

    @pytest.mark.asyncio
    async def test_update_unknown_document(self) -> None:
        with pytest.raises(KeyError):
            await StatusTracker().update("nope", progress=10.0)

    @pytest.mark.asyncio
    async def test_create_replaces_previous_run(self) -> None:
        tracker = StatusTracker()
        await tracker.create("doc-1", "a.txt")
        await tracker.update("doc-1", status=ProcessingStage.ERROR)
        fresh = await tracker.create("doc-1", "a.txt")
        assert fresh.status == ProcessingStage.PENDING
        assert tracker.get_status("doc-1") is fresh

    @pytest.mark.asyncio
    async def test_list_statuses(self) -> None:
        tracker = StatusTracker()
        await tracker.create("a", "a.txt")
        await tracker.create("b", "b.txt")
        assert {s.document_id for s in tracker.list_statuses()} == {"a", "b"}


class TestSubscriptions:
    @pytest.mark.asyncio
    async def test_updates_delivered_in_order(self) -> None:
        tracker = StatusTracker()
        received: list[float] = []
        tracker.subscribe("doc-1", lambda s: received.append(s.progress))

        await tracker.create("doc-1", "a.txt")
        for progress in (20.0, 40.0, 60.0):
            await tracker.update("doc-1", progress=progress)
        await tracker.flush()

        assert received == [0.0, 20.0, 40.0, 60.0]

    @pytest.mark.asyncio
    async def test_async_callbacks_are_awaited(self) -> None:
        tracker = StatusTracker()
        received: list[ProcessingStage] = []

        async def _callback(status: ProcessingStatus) -> None:
            await asyncio.sleep(0)
            received.append(status.status)

        tracker.subscribe("doc-1", _callback)
        await tracker.create("doc-1", "a.txt")
        await tracker.update("doc-1", status=ProcessingStage.COMPLETED)
        await tracker.flush("doc-1")

        assert received == [ProcessingStage.PENDING, ProcessingStage.COMPLETED]

    @pytest.mark.asyncio
    async def test_subscribers_are_scoped_per_document(self) -> None:
        tracker = StatusTracker()
        seen_a: list[str] = []
        seen_b: list[str] = []
        tracker.subscribe("a", lambda s: seen_a.append(s.document_id))
        tracker.subscribe("b", lambda s: seen_b.append(s.document_id))

        await tracker.create("a", "a.txt")
        await tracker.flush()

        assert seen_a == ["a"]
        assert seen_b == []

    @pytest.mark.asyncio
    async def test_late_subscriber_gets_no_replay(self) -> None:
        tracker = StatusTracker()
        await tracker.create("doc-1", "a.txt")
        received: list[float] = []
        tracker.subscribe("doc-1", lambda s: received.append(s.progress))
        await tracker.flush()
        assert received == []

        await tracker.update("doc-1", progress=20.0)
        await tracker.flush()
        assert received == [20.0]

    @pytest.mark.asyncio
    async def test_unsubscribe_is_idempotent(self) -> None:
        tracker = StatusTracker()
        received: list[float] = []
        other: list[float] = []
        subscription = tracker.subscribe("doc-1", lambda s: received.append(s.progress))
        tracker.subscribe("doc-1", lambda s: other.append(s.progress))

        await tracker.create("doc-1", "a.txt")
        subscription()
        subscription.unsubscribe()
        await tracker.update("doc-1", progress=20.0)
        await tracker.flush()

        assert received == [0.0]
        assert other == [0.0, 20.0]
        assert subscription.active is False

    @pytest.mark.asyncio
    async def test_same_callback_twice_removes_one(self) -> None:
        tracker = StatusTracker()
        received: list[float] = []

        def _callback(status: ProcessingStatus) -> None:
            received.append(status.progress)

        first = tracker.subscribe("doc-1", _callback)
        tracker.subscribe("doc-1", _callback)
        first.unsubscribe()

        await tracker.create("doc-1", "a.txt")
        await tracker.flush()
        assert received == [0.0]

    @pytest.mark.asyncio
    async def test_failing_callback_is_isolated(self) -> None:
        tracker = StatusTracker()
        received: list[float] = []

        def _broken(status: ProcessingStatus) -> None:
            raise RuntimeError("subscriber bug")

        tracker.subscribe("doc-1", _broken)
        tracker.subscribe("doc-1", lambda s: received.append(s.progress))

        await tracker.create("doc-1", "a.txt")
        await tracker.update("doc-1", progress=20.0)
        await tracker.flush()

        assert received == [0.0, 20.0]

    @pytest.mark.asyncio
    async def test_slow_subscriber_does_not_block_updates(self) -> None:
        tracker = StatusTracker()
        gate = asyncio.Event()
        received: list[float] = []

        async def _slow(status: ProcessingStatus) -> None:
            await gate.wait()
            received.append(status.progress)

        tracker.subscribe("doc-1", _slow)
        await tracker.create("doc-1", "a.txt")
        await tracker.update("doc-1", progress=20.0)
        await tracker.update("doc-1", progress=40.0)

        assert tracker.get_status("doc-1").progress == 40.0
        assert received == []

        gate.set()
        await tracker.flush()
        assert received == [0.0, 20.0, 40.0]

    @pytest.mark.asyncio
    async def test_queued_updates_survive_unsubscribe(self) -> None:
        tracker = StatusTracker()
        received: list[float] = []
        subscription = tracker.subscribe("doc-1", lambda s: received.append(s.progress))

        await tracker.create("doc-1", "a.txt")
        await tracker.update("doc-1", progress=20.0)
        subscription.unsubscribe()
        await subscription.drain()

        assert received == [0.0, 20.0]

    @pytest.mark.asyncio
    async def test_concurrent_updates_on_different_documents(self) -> None:
        tracker = StatusTracker()

        async def _drive(doc_id: str) -> None:
            await tracker.create(doc_id, f"{doc_id}.txt")
            for progress in (20.0, 40.0, 60.0, 80.0, 100.0):
                await tracker.update(doc_id, progress=progress)
                await asyncio.sleep(0)

        await asyncio.gather(*(_drive(f"doc-{i}") for i in range(10)))
        assert all(s.progress == 100.0 for s in tracker.list_statuses())

    @pytest.mark.asyncio
    async def test_close_delivers_then_stops(self) -> None:
        tracker = StatusTracker()
        received: list[float] = []
        tracker.subscribe("doc-1", lambda s: received.append(s.progress))
        await tracker.create("doc-1", "a.txt")

        await tracker.close()
        await tracker.update("doc-1", progress=20.0)
        await tracker.flush()

        assert received == [0.0]


class TestHousekeeping:
    @pytest.mark.asyncio
    async def test_stats(self) -> None:
        tracker = StatusTracker()
        await tracker.create("a", "a.txt")
        await tracker.create("b", "b.txt")
        await tracker.create("c", "c.txt")
        await tracker.update("b", status=ProcessingStage.COMPLETED)
        await tracker.update("c", status=ProcessingStage.ERROR)

        assert tracker.stats() == {"processing": 1, "completed": 1, "failed": 1, "total": 3}

    @pytest.mark.asyncio
    async def test_purge_finished_drops_only_old_terminal_records(self) -> None:
        tracker = StatusTracker()
        old = datetime.now(tz=timezone.utc) - timedelta(hours=2)  # noqa: UP017
        await tracker.create("old-done", "a.txt")
        await tracker.update("old-done", status=ProcessingStage.COMPLETED, completed_at=old)
        await tracker.create("recent-done", "b.txt")
        await tracker.update(
            "recent-done",
            status=ProcessingStage.ERROR,
            completed_at=datetime.now(tz=timezone.utc),  # noqa: UP017
        )
        await tracker.create("running", "c.txt")
        await tracker.update("running", status=ProcessingStage.EMBEDDING, started_at=old)

        removed = tracker.purge_finished(max_age_seconds=3600)

        assert removed == 1
        assert tracker.get_status("old-done") is None
        assert tracker.get_status("recent-done") is not None
        assert tracker.get_status("running") is not None
