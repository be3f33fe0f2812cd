"""Pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from dataset_models import DatasetAspect, DatasetSnapshot, DatasetUrn
from metaevents.binding import clear_bindings
from metaevents.models import AuditStamp
from metaevents.producer import MetadataEventProducer
from metaevents.transport import InMemoryMetricsSink, InMemoryTransport
from metaevents.urn import CorpUserUrn


@pytest.fixture(autouse=True)
def _clean_binding_registry():
    clear_bindings()
    yield
    clear_bindings()


@pytest.fixture
def transport() -> InMemoryTransport:
    return InMemoryTransport()


@pytest.fixture
def metrics() -> InMemoryMetricsSink:
    return InMemoryMetricsSink()


@pytest.fixture
def producer(transport: InMemoryTransport, metrics: InMemoryMetricsSink) -> MetadataEventProducer:
    """Producer bound to the sample dataset entity."""
    return MetadataEventProducer(DatasetSnapshot, DatasetAspect, transport, metrics=metrics)


@pytest.fixture
def dataset_urn() -> DatasetUrn:
    return DatasetUrn.parse("urn:li:dataset:1")


@pytest.fixture
def audit_stamp() -> AuditStamp:
    return AuditStamp(actor=CorpUserUrn.create("alice"), time=1_700_000_000_000)
