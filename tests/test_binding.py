"""Tests for snapshot / aspect-union binding and the binding registry."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest

from dataset_models import (
    DatasetAspect,
    DatasetSnapshot,
    DatasetUrn,
    Deprecation,
    EmptyAspect,
    Ownership,
    Schema,
    Status,
    WideDatasetAspect,
)
from metaevents.binding import (
    AspectBinding,
    bind,
    get_binding,
    list_bindings,
    register_binding,
)
from metaevents.errors import ConfigurationError, TypeMismatchError
from metaevents.models import AspectUnion, Snapshot
from metaevents.producer import MetadataEventProducer
from metaevents.transport import InMemoryTransport
from metaevents.urn import Urn


# -----------------------------------------------------------------------------
# bind()
# -----------------------------------------------------------------------------


def test_bind_succeeds_when_every_variant_has_a_slot():
    binding = bind(DatasetSnapshot, DatasetAspect)

    assert binding.snapshot_type is DatasetSnapshot
    assert binding.aspect_union_type is DatasetAspect
    assert binding.urn_type is DatasetUrn
    assert binding.variants == (Schema, Ownership, Status)
    assert binding.entity_type == "dataset"


def test_bind_accepts_union_that_is_a_subset_of_slots():
    class SchemaOnly(AspectUnion):
        VARIANTS = (Schema,)

    binding = bind(DatasetSnapshot, SchemaOnly)

    assert binding.variants == (Schema,)


def test_bind_rejects_variant_without_slot():
    with pytest.raises(ConfigurationError, match="Deprecation") as exc_info:
        bind(DatasetSnapshot, WideDatasetAspect)

    assert exc_info.value.offending == "Deprecation"


def test_bind_rejects_empty_union():
    with pytest.raises(ConfigurationError, match="no variants"):
        bind(DatasetSnapshot, EmptyAspect)


def test_bind_rejects_duplicate_variant():
    class Doubled(AspectUnion):
        VARIANTS = (Schema, Schema)

    with pytest.raises(ConfigurationError, match="twice"):
        bind(DatasetSnapshot, Doubled)


def test_bind_rejects_non_aspect_variant():
    class Bogus(AspectUnion):
        VARIANTS = (str,)  # type: ignore[assignment]

    with pytest.raises(ConfigurationError, match="not an Aspect"):
        bind(DatasetSnapshot, Bogus)


@pytest.mark.parametrize(
    "snapshot_type, union_type",
    [
        (object, DatasetAspect),
        (DatasetSnapshot, object),
        (DatasetSnapshot(urn=DatasetUrn.create("1")), DatasetAspect),
        (DatasetSnapshot, DatasetAspect(Schema())),
    ],
)
def test_bind_rejects_wrong_descriptor_kinds(snapshot_type, union_type):
    with pytest.raises(ConfigurationError):
        bind(snapshot_type, union_type)


def test_bind_rejects_non_urn_type():
    with pytest.raises(ConfigurationError, match="Urn"):
        bind(DatasetSnapshot, DatasetAspect, urn_type=str)  # type: ignore[arg-type]


def test_bind_explicit_urn_type_overrides_snapshot_default():
    binding = bind(DatasetSnapshot, DatasetAspect, urn_type=Urn)

    assert binding.urn_type is Urn
    assert binding.entity_type == "DatasetSnapshot"


def test_binding_is_immutable():
    binding = bind(DatasetSnapshot, DatasetAspect)

    with pytest.raises(FrozenInstanceError):
        binding.aspect_union_type = WideDatasetAspect  # type: ignore[misc]


def test_binding_checks_values_and_urns():
    binding = bind(DatasetSnapshot, DatasetAspect)

    binding.check_value(Schema())
    binding.check_urn(DatasetUrn.create("1"))

    with pytest.raises(TypeMismatchError):
        binding.check_value(Deprecation())
    with pytest.raises(TypeMismatchError):
        binding.check_urn(Urn.parse("urn:li:dataset:1"))


def test_snapshot_without_slots_binds_nothing():
    class Bare(Snapshot):
        pass

    with pytest.raises(ConfigurationError, match="no aspect slot"):
        bind(Bare, DatasetAspect)


# -----------------------------------------------------------------------------
# Producer construction
# -----------------------------------------------------------------------------


def test_producer_construction_fails_fast_on_bad_binding():
    with pytest.raises(ConfigurationError):
        MetadataEventProducer(DatasetSnapshot, WideDatasetAspect, InMemoryTransport())


def test_producer_exposes_its_binding():
    producer = MetadataEventProducer(DatasetSnapshot, DatasetAspect, InMemoryTransport())

    assert producer.snapshot_type is DatasetSnapshot
    assert producer.aspect_union_type is DatasetAspect
    assert producer.urn_type is DatasetUrn
    assert isinstance(producer.binding, AspectBinding)


# -----------------------------------------------------------------------------
# Registry
# -----------------------------------------------------------------------------


def test_register_and_get_binding():
    binding = bind(DatasetSnapshot, DatasetAspect)
    register_binding(binding)

    assert get_binding("dataset") is binding
    assert list_bindings() == ["dataset"]
    assert get_binding("chart") is None


def test_register_same_binding_twice_is_noop():
    register_binding(bind(DatasetSnapshot, DatasetAspect))
    register_binding(bind(DatasetSnapshot, DatasetAspect))

    assert list_bindings() == ["dataset"]


def test_register_conflicting_binding_fails():
    class SchemaOnly(AspectUnion):
        VARIANTS = (Schema,)

    register_binding(bind(DatasetSnapshot, DatasetAspect))

    with pytest.raises(ConfigurationError, match="already bound"):
        register_binding(bind(DatasetSnapshot, SchemaOnly))
