"""
metaevents - metadata change and audit event producers.

A producer is bound once to an entity kind (snapshot type, aspect union, urn
type) and turns aspect mutations into events:

- binding: one-time validation of the snapshot/aspect-union pair
- inference: change type (CREATE/UPSERT/DELETE) from old/new value presence
- producer: the produce operations, published through a transport
- event_log: append-only JSON Lines storage read by the CLI
"""

__version__ = "0.1.0"

from .binding import AspectBinding, bind, clear_bindings, get_binding, list_bindings, register_binding
from .errors import (
    ConfigurationError,
    InvalidMutationError,
    InvalidUrnError,
    MetadataEventError,
    TransportError,
    TypeMismatchError,
)
from .events import AspectAuditEvent, AuditEvent, SearchMetric, SnapshotChangeEvent
from .inference import infer_change_type
from .models import Aspect, AspectUnion, AuditStamp, ChangeType, IngestionMode, Snapshot
from .producer import BaseMetadataEventProducer, MetadataEventProducer
from .transport import Ack, InMemoryTransport, JsonlTransport, MetricsSink, Transport
from .urn import Urn

__all__ = [
    "__version__",
    # Binding
    "AspectBinding",
    "bind",
    "clear_bindings",
    "get_binding",
    "list_bindings",
    "register_binding",
    # Errors
    "ConfigurationError",
    "InvalidMutationError",
    "InvalidUrnError",
    "MetadataEventError",
    "TransportError",
    "TypeMismatchError",
    # Events
    "AspectAuditEvent",
    "AuditEvent",
    "SearchMetric",
    "SnapshotChangeEvent",
    # Models
    "Aspect",
    "AspectUnion",
    "AuditStamp",
    "ChangeType",
    "IngestionMode",
    "Snapshot",
    "Urn",
    # Producers
    "BaseMetadataEventProducer",
    "MetadataEventProducer",
    "infer_change_type",
    # Transports
    "Ack",
    "InMemoryTransport",
    "JsonlTransport",
    "MetricsSink",
    "Transport",
]
