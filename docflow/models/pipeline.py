"""Processing state models for the document pipeline.

Defines Pydantic v2 models for pipeline stages, error records, and the
per-document status snapshot.  All models use frozen config to enforce
immutability -- every stage transition produces a new
:class:`ProcessingStatus` via ``model_copy(update={...})``, so the
snapshot a subscriber receives can never be changed underneath it.

Architecture note:
    The :class:`~docflow.pipeline.status_tracker.StatusTracker` owns the
    map of document id -> latest ProcessingStatus.  The orchestrator
    (``docflow/pipeline/orchestrator.py``) never holds a mutable alias; it
    asks the tracker to merge a partial update, and the tracker stores and
    broadcasts the resulting copy.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# ProcessingStage -- the linear state machine every document walks through.
# ---------------------------------------------------------------------------
class ProcessingStage(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Stages of the document processing pipeline.

    Documents progress through these stages in order:
        PENDING -> EXTRACTING -> CHUNKING -> EMBEDDING -> INDEXING -> COMPLETED

    ERROR is reachable from any non-terminal stage and absorbs the run.
    """

    PENDING = "pending"
    EXTRACTING = "extracting"
    CHUNKING = "chunking"
    EMBEDDING = "embedding"
    INDEXING = "indexing"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ProcessingStage.COMPLETED, ProcessingStage.ERROR)


# Target progress percentage for each non-error stage.
STAGE_PROGRESS: dict[ProcessingStage, float] = {
    ProcessingStage.PENDING: 0.0,
    ProcessingStage.EXTRACTING: 20.0,
    ProcessingStage.CHUNKING: 40.0,
    ProcessingStage.EMBEDDING: 60.0,
    ProcessingStage.INDEXING: 80.0,
    ProcessingStage.COMPLETED: 100.0,
}

# Human-readable ``current_step`` label for each stage.
STAGE_LABELS: dict[ProcessingStage, str] = {
    ProcessingStage.PENDING: "Initializing",
    ProcessingStage.EXTRACTING: "Extracting content",
    ProcessingStage.CHUNKING: "Creating chunks",
    ProcessingStage.EMBEDDING: "Generating embeddings",
    ProcessingStage.INDEXING: "Indexing content",
    ProcessingStage.COMPLETED: "Completed",
    ProcessingStage.ERROR: "Failed",
}

TOTAL_STEPS = 5


# ---------------------------------------------------------------------------
# ProcessingError -- the typed failure record attached to an ERROR status.
# ---------------------------------------------------------------------------
class ProcessingError(BaseModel):
    """A failure that terminated a document's pipeline run.

    ``retryable`` gates whether a retry action should be offered.
    ``retry_count`` is owned by the caller: it is carried through when the
    caller passes it in on an explicit retry, never incremented here.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    details: dict[str, Any] | None = None
    retryable: bool
    retry_count: int | None = Field(default=None, ge=0)


# ---------------------------------------------------------------------------
# ProcessingStatus -- the snapshot callers poll or subscribe to.
# ---------------------------------------------------------------------------
class ProcessingStatus(BaseModel):
    """The current state of one document's pipeline run.

    Immutable -- use model_copy(update={...}) to produce new snapshots.
    """

    model_config = ConfigDict(frozen=True)

    document_id: str
    file_name: str
    status: ProcessingStage = ProcessingStage.PENDING
    progress: float = Field(default=0.0, ge=0.0, le=100.0)
    current_step: str = STAGE_LABELS[ProcessingStage.PENDING]
    total_steps: int = TOTAL_STEPS
    error: ProcessingError | None = None
    started_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )
    completed_at: datetime | None = None
    # Seconds; only populated while embedding, once a per-chunk rate is known.
    estimated_time_remaining: float | None = Field(default=None, ge=0.0)
    processed_chunks: int | None = Field(default=None, ge=0)
    total_chunks: int | None = Field(default=None, ge=0)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal
