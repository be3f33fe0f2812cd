"""
Metadata event producers.

A producer is bound at construction to one snapshot type, one aspect union
and one urn type (see ``binding.bind``). Every produce operation validates its
inputs against that binding before building an event, then hands the event to
a transport.

Key rules:
- Snapshot-based change events carry the new value only.
- Audit events need an old value, a new value, or both; the change type is
  inferred unless given explicitly (see ``inference.infer_change_type``).
- For one mutation, the snapshot event is published before its audit event.
"""

from __future__ import annotations

import logging
import warnings
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Generic, Sequence, TypeVar

from .binding import AspectBinding, bind
from .errors import TransportError, TypeMismatchError
from .events import (
    AspectAuditEvent,
    AuditEvent,
    MetadataEvent,
    SearchMetric,
    SnapshotChangeEvent,
)
from .inference import infer_change_type, require_old_or_new
from .models import Aspect, AspectUnion, AuditStamp, ChangeType, IngestionMode, Snapshot
from .transport import Ack, MetricsSink, Transport
from .urn import Urn

if TYPE_CHECKING:
    from .config import ProducerConfig

logger = logging.getLogger(__name__)

SNAPSHOT = TypeVar("SNAPSHOT", bound=Snapshot)
ASPECT_UNION = TypeVar("ASPECT_UNION", bound=AspectUnion)
URN = TypeVar("URN", bound=Urn)


class BaseMetadataEventProducer(ABC, Generic[SNAPSHOT, ASPECT_UNION, URN]):
    """
    Base class for all metadata event producers.

    Subclasses implement the four produce operations; the binding and input
    validation live here.
    """

    def __init__(
        self,
        snapshot_type: type[SNAPSHOT],
        aspect_union_type: type[ASPECT_UNION],
        urn_type: type[URN] | None = None,
    ):
        self._binding = bind(snapshot_type, aspect_union_type, urn_type)

    @property
    def binding(self) -> AspectBinding:
        return self._binding

    @property
    def snapshot_type(self) -> type[Snapshot]:
        return self._binding.snapshot_type

    @property
    def aspect_union_type(self) -> type[AspectUnion]:
        return self._binding.aspect_union_type

    @property
    def urn_type(self) -> type[Urn]:
        return self._binding.urn_type

    # -------------------------------------------------------------------------
    # Produce operations
    # -------------------------------------------------------------------------

    @abstractmethod
    def produce_snapshot_based_change_event(self, urn: URN, new_value: Aspect) -> SnapshotChangeEvent:
        """
        Produce a metadata change event proposing a new aspect value.

        Args:
            urn: Urn of the entity
            new_value: The proposed value; must be a member of the aspect union
        """
        ...

    @abstractmethod
    def produce_audit_event(
        self,
        urn: URN,
        old_value: Aspect | None,
        new_value: Aspect | None,
    ) -> AuditEvent:
        """
        Produce a metadata audit event after an aspect was updated.

        Args:
            urn: Urn of the entity
            old_value: The value prior to the update, or None if there was none
            new_value: The value after the update, or None if it was removed
        """
        ...

    @abstractmethod
    def produce_aspect_specific_audit_event(
        self,
        urn: URN,
        old_value: Aspect | None,
        new_value: Aspect | None,
        aspect_type: type[Aspect],
        audit_stamp: AuditStamp | None = None,
        ingestion_mode: IngestionMode | None = None,
        change_type: ChangeType | None = None,
    ) -> AspectAuditEvent:
        """
        Produce an aspect-specific metadata audit event.

        Args:
            urn: Urn of the entity
            old_value: The value prior to the update, or None if there was none
            new_value: The value after the update, or None if it was removed
            aspect_type: The aspect class of both values
            audit_stamp: Actor and time of the change
            ingestion_mode: How the change entered the system
            change_type: Explicit change type; inferred from the values if None
        """
        ...

    @abstractmethod
    def produce_search_metric(
        self,
        input_query: str,
        request_id: str,
        index_name: str,
        top_hits: Sequence[str],
        api_name: str,
    ) -> SearchMetric | None:
        """
        Forward search diagnostics to the metrics sink.

        Deprecated: kept until search telemetry moves to the hosted search path.
        """
        ...

    def produce_change(
        self,
        urn: URN,
        old_value: Aspect | None,
        new_value: Aspect | None,
        aspect_type: type[Aspect],
        audit_stamp: AuditStamp | None = None,
        ingestion_mode: IngestionMode | None = None,
        change_type: ChangeType | None = None,
    ) -> tuple[SnapshotChangeEvent | None, AspectAuditEvent]:
        """
        Produce the snapshot event and the audit event for one mutation.

        The snapshot event is published first. Deletions have no new value and
        produce only the audit event. All inputs are validated before either
        event is published.
        """
        self._validate_aspect_specific(urn, old_value, new_value, aspect_type)
        snapshot_event = None
        if new_value is not None:
            snapshot_event = self.produce_snapshot_based_change_event(urn, new_value)
        audit_event = self.produce_aspect_specific_audit_event(
            urn,
            old_value,
            new_value,
            aspect_type,
            audit_stamp=audit_stamp,
            ingestion_mode=ingestion_mode,
            change_type=change_type,
        )
        return snapshot_event, audit_event

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def _validate_snapshot(self, urn: URN, new_value: Aspect) -> None:
        self._binding.check_urn(urn)
        if new_value is None:
            raise TypeMismatchError("A snapshot-based change event needs a new value")
        self._binding.check_value(new_value)

    def _validate_audit(self, urn: URN, old_value: Aspect | None, new_value: Aspect | None) -> None:
        self._binding.check_urn(urn)
        require_old_or_new(old_value, new_value)
        for value in (old_value, new_value):
            if value is not None:
                self._binding.check_value(value)

    def _validate_aspect_specific(
        self,
        urn: URN,
        old_value: Aspect | None,
        new_value: Aspect | None,
        aspect_type: type[Aspect],
    ) -> None:
        self._validate_audit(urn, old_value, new_value)
        if not isinstance(aspect_type, type) or not self._binding.is_member(aspect_type):
            raise TypeMismatchError(
                f"Aspect type {aspect_type!r} is not a member of {self.aspect_union_type.__name__}"
            )
        for value in (old_value, new_value):
            if value is not None and type(value) is not aspect_type:
                raise TypeMismatchError(
                    f"Value of type {type(value).__name__} does not match aspect type "
                    f"{aspect_type.__name__}"
                )


class MetadataEventProducer(BaseMetadataEventProducer[SNAPSHOT, ASPECT_UNION, URN]):
    """
    Producer that publishes events through a ``Transport``.

    Publishing is synchronous: a produce call returns after the transport
    acknowledged the event, or raises the transport's ``TransportError``.
    """

    def __init__(
        self,
        snapshot_type: type[SNAPSHOT],
        aspect_union_type: type[ASPECT_UNION],
        transport: Transport,
        *,
        metrics: MetricsSink | None = None,
        urn_type: type[URN] | None = None,
        default_ingestion_mode: IngestionMode | None = None,
        search_metrics_enabled: bool = True,
    ):
        super().__init__(snapshot_type, aspect_union_type, urn_type)
        self.transport = transport
        self.metrics = metrics
        self.default_ingestion_mode = default_ingestion_mode
        self.search_metrics_enabled = search_metrics_enabled

    @classmethod
    def from_config(
        cls,
        snapshot_type: type[SNAPSHOT],
        aspect_union_type: type[ASPECT_UNION],
        config: ProducerConfig,
        *,
        transport: Transport | None = None,
        metrics: MetricsSink | None = None,
        urn_type: type[URN] | None = None,
    ) -> MetadataEventProducer[SNAPSHOT, ASPECT_UNION, URN]:
        """Build a producer from configuration; the transport defaults to the configured one."""
        from .config import build_transport

        return cls(
            snapshot_type,
            aspect_union_type,
            transport if transport is not None else build_transport(config),
            metrics=metrics,
            urn_type=urn_type,
            default_ingestion_mode=config.default_ingestion_mode,
            search_metrics_enabled=config.search_metrics,
        )

    def _publish(self, event: MetadataEvent) -> Ack:
        try:
            ack = self.transport.publish(event)
        except TransportError as e:
            logger.warning(f"Transport rejected {event.event_kind} for {event.urn}: {e}")
            raise
        logger.debug(f"Published {event.event_kind} for {event.urn} (seq {ack.sequence})")
        return ack

    def produce_snapshot_based_change_event(self, urn: URN, new_value: Aspect) -> SnapshotChangeEvent:
        self._validate_snapshot(urn, new_value)
        snapshot = self.snapshot_type(urn=urn, aspects=(self.aspect_union_type.wrap(new_value),))
        event = SnapshotChangeEvent(urn=urn, snapshot=snapshot)
        self._publish(event)
        return event

    def produce_audit_event(
        self,
        urn: URN,
        old_value: Aspect | None,
        new_value: Aspect | None,
    ) -> AuditEvent:
        self._validate_audit(urn, old_value, new_value)
        event = AuditEvent(
            urn=urn,
            old_value=old_value,
            new_value=new_value,
            change_type=infer_change_type(old_value, new_value),
        )
        self._publish(event)
        return event

    def produce_aspect_specific_audit_event(
        self,
        urn: URN,
        old_value: Aspect | None,
        new_value: Aspect | None,
        aspect_type: type[Aspect],
        audit_stamp: AuditStamp | None = None,
        ingestion_mode: IngestionMode | None = None,
        change_type: ChangeType | None = None,
    ) -> AspectAuditEvent:
        self._validate_aspect_specific(urn, old_value, new_value, aspect_type)
        if ingestion_mode is None:
            ingestion_mode = self.default_ingestion_mode
        event = AspectAuditEvent(
            urn=urn,
            old_value=old_value,
            new_value=new_value,
            aspect_type=aspect_type,
            change_type=infer_change_type(old_value, new_value, change_type),
            audit_stamp=audit_stamp,
            ingestion_mode=IngestionMode(ingestion_mode) if ingestion_mode is not None else None,
        )
        self._publish(event)
        return event

    def produce_search_metric(
        self,
        input_query: str,
        request_id: str,
        index_name: str,
        top_hits: Sequence[str],
        api_name: str,
    ) -> SearchMetric | None:
        warnings.warn(
            "produce_search_metric is deprecated; search telemetry is moving to hosted search",
            DeprecationWarning,
            stacklevel=2,
        )
        if self.metrics is None or not self.search_metrics_enabled:
            return None
        metric = SearchMetric(
            input_query=input_query,
            request_id=request_id,
            index_name=index_name,
            top_hits=tuple(top_hits),
            api_name=api_name,
        )
        self.metrics.record(metric)
        return metric
