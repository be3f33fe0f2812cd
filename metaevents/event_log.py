"""
Append-only JSON Lines event log.

Stores emitted events one per line. Key property: append-only, never
rewritten. The log is what the JSON Lines transport writes to and what the
CLI reads from.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Protocol

from .events import (
    ASPECT_METADATA_AUDIT_EVENT,
    METADATA_AUDIT_EVENT,
    METADATA_CHANGE_EVENT,
    SEARCH_METRIC,
)
from .models import ChangeType

logger = logging.getLogger(__name__)


class SerializableEvent(Protocol):
    def to_dict(self) -> dict[str, Any]:
        ...


@dataclass(frozen=True)
class LoggedEvent:
    """Structured view of one event line.

    Aspect payloads stay as plain dicts: reading the log does not need the
    producing process's aspect types.
    """

    event_kind: str
    timestamp: datetime
    urn: str | None = None
    change_type: ChangeType | None = None
    aspect_type: str | None = None
    ingestion_mode: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def has_old_value(self) -> bool:
        return "old_value" in self.data

    @property
    def has_new_value(self) -> bool:
        return "new_value" in self.data or "snapshot" in self.data

    def to_dict(self) -> dict[str, Any]:
        return dict(self.data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LoggedEvent:
        """Reconstruct from a JSON dict."""
        change_type = data.get("change_type")
        return cls(
            event_kind=data["event_kind"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            urn=data.get("urn"),
            change_type=ChangeType(change_type) if change_type else None,
            aspect_type=data.get("aspect_type"),
            ingestion_mode=data.get("ingestion_mode"),
            data=dict(data),
        )


class EventLog:
    """Append-only log of emitted events.

    Storage format: JSON Lines (.jsonl) - one event per line
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _ensure_dir(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, event: SerializableEvent | dict[str, Any]) -> None:
        """Append one event. This is the only write operation."""
        data = event if isinstance(event, dict) else event.to_dict()
        line = json.dumps(data, separators=(",", ":")) + "\n"
        with self._lock:
            self._ensure_dir()
            with self.path.open("a", encoding="utf-8") as f:
                f.write(line)

    def iter_events(self) -> Iterator[LoggedEvent]:
        """Iterate over events; malformed lines are skipped."""
        if not self.path.exists():
            return
        with self.path.open("r", encoding="utf-8") as f:
            for lineno, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    data = json.loads(line)
                    if not isinstance(data, dict):
                        raise TypeError(f"expected a JSON object, got {type(data).__name__}")
                    event = LoggedEvent.from_dict(data)
                except (json.JSONDecodeError, KeyError, ValueError, TypeError, AttributeError) as e:
                    logger.warning(f"Skipping malformed event at {self.path}:{lineno}: {e}")
                    continue
                yield event

    def read_all(self) -> list[LoggedEvent]:
        return list(self.iter_events())

    def count(self) -> int:
        return sum(1 for _ in self.iter_events())

    # --- Query methods ---

    def events_for_urn(self, urn: Any) -> list[LoggedEvent]:
        """Get all events for one entity (urn object or string)."""
        key = str(urn)
        return [e for e in self.iter_events() if e.urn == key]

    def events_by_kind(self, event_kind: str) -> list[LoggedEvent]:
        return [e for e in self.iter_events() if e.event_kind == event_kind]

    def events_by_change_type(self, change_type: ChangeType) -> list[LoggedEvent]:
        return [e for e in self.iter_events() if e.change_type == change_type]

    def read(
        self,
        last_n: int | None = None,
        event_kinds: list[str] | None = None,
        change_types: list[ChangeType] | None = None,
        urn: str | None = None,
    ) -> list[LoggedEvent]:
        """
        Read events with optional filtering.

        Args:
            last_n: If specified, return only the last N matching events
            event_kinds: Filter to specific event kinds
            change_types: Filter to specific change types
            urn: Filter to one entity

        Returns:
            Matching events, oldest first
        """
        events = []
        for e in self.iter_events():
            if event_kinds and e.event_kind not in event_kinds:
                continue
            if change_types and e.change_type not in change_types:
                continue
            if urn and e.urn != urn:
                continue
            events.append(e)
        if last_n is not None:
            return events[-last_n:] if last_n > 0 else []
        return events

    # --- Summary methods ---

    def summary(self) -> dict[str, Any]:
        """Statistics about the logged events."""
        events = self.read_all()
        if not events:
            return {"total_events": 0}

        kind_counts: dict[str, int] = {}
        change_type_counts: dict[str, int] = {}
        ingestion_mode_counts: dict[str, int] = {}
        urn_counts: dict[str, int] = {}

        for e in events:
            kind_counts[e.event_kind] = kind_counts.get(e.event_kind, 0) + 1
            if e.change_type is not None:
                ct = e.change_type.value
                change_type_counts[ct] = change_type_counts.get(ct, 0) + 1
            if e.ingestion_mode:
                ingestion_mode_counts[e.ingestion_mode] = (
                    ingestion_mode_counts.get(e.ingestion_mode, 0) + 1
                )
            if e.urn:
                urn_counts[e.urn] = urn_counts.get(e.urn, 0) + 1

        most_changed = sorted(urn_counts.items(), key=lambda x: -x[1])[:10]

        return {
            "total_events": len(events),
            "event_kind_counts": kind_counts,
            "change_type_counts": change_type_counts,
            "ingestion_mode_counts": ingestion_mode_counts,
            "most_changed_urns": most_changed,
            "time_range": {
                "earliest": events[0].timestamp.isoformat(),
                "latest": events[-1].timestamp.isoformat(),
            },
        }


_KIND_ICONS = {
    METADATA_CHANGE_EVENT: ">",
    METADATA_AUDIT_EVENT: "*",
    ASPECT_METADATA_AUDIT_EVENT: "*",
    SEARCH_METRIC: "?",
}

_CHANGE_ICONS = {
    ChangeType.CREATE: "+",
    ChangeType.UPSERT: "~",
    ChangeType.DELETE: "-",
}


def format_event(event: LoggedEvent) -> str:
    """Format a logged event for human-readable display."""
    icon = _CHANGE_ICONS.get(event.change_type) if event.change_type else None
    icon = icon or _KIND_ICONS.get(event.event_kind, "?")

    if event.event_kind == SEARCH_METRIC:
        subject = f"{event.data.get('api_name', '')} {event.data.get('input_query', '')!r}"
    else:
        subject = event.urn or ""

    lines = [f"{icon} [{event.event_kind}] {subject}"]
    lines.append(f"  at: {event.timestamp.isoformat()}")

    if event.change_type is not None:
        lines.append(f"  change: {event.change_type.value}")
    if event.aspect_type:
        lines.append(f"  aspect: {event.aspect_type}")
    if event.ingestion_mode:
        lines.append(f"  ingestion: {event.ingestion_mode}")

    stamp = event.data.get("audit_stamp")
    if isinstance(stamp, dict):
        actor = stamp.get("actor", "")
        if stamp.get("impersonator"):
            actor = f"{actor} (via {stamp['impersonator']})"
        lines.append(f"  actor: {actor}")

    if event.event_kind == SEARCH_METRIC:
        lines.append(f"  index: {event.data.get('index_name', '')}")
        lines.append(f"  hits: {len(event.data.get('top_hits', []))}")

    return "\n".join(lines)
