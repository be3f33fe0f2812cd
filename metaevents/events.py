"""
Event types emitted by metadata event producers.

- SnapshotChangeEvent (MCE): "entity urn should now have this aspect value"
- AuditEvent (MAE): before/after pair with a classified change type
- AspectAuditEvent: audit event tagged with aspect type, provenance and ingestion mode
- SearchMetric: legacy search diagnostics, forwarded verbatim

Events are transient and immutable. ``to_dict`` gives the JSON-compatible form
used by the JSON Lines transport; the wire format of other transports is
their own business.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Union

from .models import Aspect, AuditStamp, ChangeType, IngestionMode, Snapshot
from .urn import Urn

# Event kind constants
METADATA_CHANGE_EVENT = "metadata_change_event"
METADATA_AUDIT_EVENT = "metadata_audit_event"
ASPECT_METADATA_AUDIT_EVENT = "aspect_metadata_audit_event"
SEARCH_METRIC = "search_metric"

EVENT_KINDS = frozenset({
    METADATA_CHANGE_EVENT,
    METADATA_AUDIT_EVENT,
    ASPECT_METADATA_AUDIT_EVENT,
    SEARCH_METRIC,
})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _tagged(value: Aspect | None) -> dict[str, Any] | None:
    """Union-tagged form of an aspect value: ``{aspect_name: payload}``."""
    if value is None:
        return None
    return {type(value).aspect_name(): value.to_dict()}


@dataclass(frozen=True)
class SnapshotChangeEvent:
    """A proposal asserting a new aspect value for an entity.

    Carries no prior state and has no ``old_value``.
    """

    urn: Urn
    snapshot: Snapshot
    timestamp: datetime = field(default_factory=_utcnow)

    event_kind = METADATA_CHANGE_EVENT

    @property
    def new_value(self) -> Aspect:
        return self.snapshot.aspects[0].value

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_kind": self.event_kind,
            "timestamp": self.timestamp.isoformat(),
            "urn": str(self.urn),
            "snapshot": self.snapshot.to_dict(),
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


@dataclass(frozen=True)
class AuditEvent:
    """A generic before/after audit record."""

    urn: Urn
    old_value: Aspect | None
    new_value: Aspect | None
    change_type: ChangeType
    timestamp: datetime = field(default_factory=_utcnow)

    event_kind = METADATA_AUDIT_EVENT

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "event_kind": self.event_kind,
            "timestamp": self.timestamp.isoformat(),
            "urn": str(self.urn),
            "change_type": self.change_type.value,
        }
        if self.old_value is not None:
            d["old_value"] = _tagged(self.old_value)
        if self.new_value is not None:
            d["new_value"] = _tagged(self.new_value)
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


@dataclass(frozen=True)
class AspectAuditEvent:
    """An audit record for one concrete aspect type."""

    urn: Urn
    old_value: Aspect | None
    new_value: Aspect | None
    aspect_type: type[Aspect]
    change_type: ChangeType
    audit_stamp: AuditStamp | None = None
    ingestion_mode: IngestionMode | None = None
    timestamp: datetime = field(default_factory=_utcnow)

    event_kind = ASPECT_METADATA_AUDIT_EVENT

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "event_kind": self.event_kind,
            "timestamp": self.timestamp.isoformat(),
            "urn": str(self.urn),
            "aspect_type": self.aspect_type.aspect_name(),
            "change_type": self.change_type.value,
        }
        if self.old_value is not None:
            d["old_value"] = self.old_value.to_dict()
        if self.new_value is not None:
            d["new_value"] = self.new_value.to_dict()
        if self.audit_stamp is not None:
            d["audit_stamp"] = self.audit_stamp.to_dict()
        if self.ingestion_mode is not None:
            d["ingestion_mode"] = self.ingestion_mode.value
        return d

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


@dataclass(frozen=True)
class SearchMetric:
    """Search-query diagnostics (legacy telemetry path)."""

    input_query: str
    request_id: str
    index_name: str
    top_hits: tuple[str, ...]
    api_name: str
    timestamp: datetime = field(default_factory=_utcnow)

    event_kind = SEARCH_METRIC

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_kind": self.event_kind,
            "timestamp": self.timestamp.isoformat(),
            "input_query": self.input_query,
            "request_id": self.request_id,
            "index_name": self.index_name,
            "top_hits": list(self.top_hits),
            "api_name": self.api_name,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


MetadataEvent = Union[SnapshotChangeEvent, AuditEvent, AspectAuditEvent]
