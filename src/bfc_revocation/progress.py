"""
Progress reporting for revocation checks.

Each pipeline stage emits a "started" event before it runs and a
"completed" event after it succeeds. Sinks are fire-and-forget: a sink
that raises is logged and otherwise ignored.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

log = logging.getLogger(__name__)

STEP_EXTRACT_PUBLISHER_ADDRESS = "extractPublisherAddress"
STEP_RETRIEVE_BLOB_DATA = "retrieveBlobData"
STEP_RECONSTRUCT_BFC = "reconstructBFC"
STEP_CHECK_REVOCATION = "checkRevocation"


class ProgressStatus(str, Enum):
    """Lifecycle of a pipeline stage."""

    STARTED = "started"
    COMPLETED = "completed"


@dataclass(frozen=True)
class ProgressEvent:
    """A stage transition."""

    correlation_id: str | None
    step: str
    status: ProgressStatus
    additional_metrics: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "correlationId": self.correlation_id,
            "step": self.step,
            "status": self.status.value,
        }
        if self.additional_metrics:
            data["additionalMetrics"] = dict(self.additional_metrics)
        return data


ProgressSink = Callable[[ProgressEvent], object]


class ProgressReporter:
    """Emits ProgressEvents to an optional sink."""

    def __init__(
        self,
        sink: ProgressSink | None = None,
        correlation_id: str | None = None,
    ) -> None:
        self.sink = sink
        self.correlation_id = correlation_id

    def emit(
        self,
        step: str,
        status: ProgressStatus,
        metrics: dict[str, Any] | None = None,
    ) -> None:
        if self.sink is None:
            return
        event = ProgressEvent(
            correlation_id=self.correlation_id,
            step=step,
            status=status,
            additional_metrics=dict(metrics or {}),
        )
        try:
            self.sink(event)
        except Exception:
            log.warning("Progress sink failed on %s/%s", step, status.value, exc_info=True)

    @contextmanager
    def stage(self, step: str) -> Iterator[dict[str, Any]]:
        """Wrap a stage in started/completed events.

        Yields a dict the stage fills with metrics for the completed event.
        Nothing is emitted as completed if the stage raises.
        """
        metrics: dict[str, Any] = {}
        self.emit(step, ProgressStatus.STARTED)
        yield metrics
        self.emit(step, ProgressStatus.COMPLETED, metrics)
