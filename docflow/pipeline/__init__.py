"""Pipeline orchestration: the stage state machine and the status tracker."""

from docflow.pipeline.orchestrator import DocumentProcessingPipeline
from docflow.pipeline.status_tracker import StatusTracker, Subscription

__all__ = [
    "DocumentProcessingPipeline",
    "StatusTracker",
    "Subscription",
]
