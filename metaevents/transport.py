"""
Transport and metrics collaborators.

Producers hand every event to a ``Transport`` and every search metric to a
``MetricsSink``. Delivery guarantees, retries and backpressure belong to the
transport; the only requirement here is that a failed delivery raises
``TransportError`` synchronously.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

from .errors import TransportError
from .event_log import EventLog
from .events import MetadataEvent, SearchMetric

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ack:
    """Acknowledgement of one published event."""

    sequence: int  # 0-based position in this transport's publish order
    destination: str


@runtime_checkable
class Transport(Protocol):
    """Protocol for delivering events."""

    def publish(self, event: MetadataEvent) -> Ack:
        """
        Deliver one event.

        Raises:
            TransportError: delivery failed
        """
        ...


@runtime_checkable
class MetricsSink(Protocol):
    """Protocol for recording search diagnostics."""

    def record(self, metric: SearchMetric) -> None:
        ...


class InMemoryTransport:
    """
    Keep published events in a list, in publish order.

    Set ``fail_with`` to make every publish fail with that exception
    (wrapped in TransportError unless it already is one).
    """

    destination = "memory"

    def __init__(self, fail_with: Exception | None = None):
        self.events: list[MetadataEvent] = []
        self.fail_with = fail_with
        self._lock = threading.Lock()

    def publish(self, event: MetadataEvent) -> Ack:
        if self.fail_with is not None:
            if isinstance(self.fail_with, TransportError):
                raise self.fail_with
            raise TransportError(f"Failed to publish {event.event_kind}: {self.fail_with}") from self.fail_with
        with self._lock:
            self.events.append(event)
            return Ack(sequence=len(self.events) - 1, destination=self.destination)

    def clear(self) -> None:
        with self._lock:
            self.events.clear()


class JsonlTransport:
    """Append events to a JSON Lines event log."""

    def __init__(self, log: EventLog | Path):
        self.log = log if isinstance(log, EventLog) else EventLog(log)
        self._sequence = 0
        self._lock = threading.Lock()

    @property
    def destination(self) -> str:
        return str(self.log.path)

    def publish(self, event: MetadataEvent) -> Ack:
        with self._lock:
            try:
                self.log.append(event)
            except (OSError, TypeError, ValueError) as e:
                raise TransportError(f"Failed to append {event.event_kind} to {self.log.path}: {e}") from e
            ack = Ack(sequence=self._sequence, destination=self.destination)
            self._sequence += 1
            return ack


class InMemoryMetricsSink:
    """Keep recorded search metrics in a list."""

    def __init__(self) -> None:
        self.metrics: list[SearchMetric] = []

    def record(self, metric: SearchMetric) -> None:
        self.metrics.append(metric)


class LoggingMetricsSink:
    """Write each search metric to a logger as one JSON line."""

    def __init__(self, logger_name: str = "metaevents.search_metrics"):
        self.logger = logging.getLogger(logger_name)

    def record(self, metric: SearchMetric) -> None:
        self.logger.info(metric.to_json())


class JsonlMetricsSink:
    """Append search metrics to a JSON Lines event log."""

    def __init__(self, log: EventLog | Path):
        self.log = log if isinstance(log, EventLog) else EventLog(log)

    def record(self, metric: SearchMetric) -> None:
        try:
            self.log.append(metric)
        except (OSError, TypeError, ValueError) as e:
            raise TransportError(f"Failed to append search metric to {self.log.path}: {e}") from e
