"""Tests for urn parsing and typed urns."""

from __future__ import annotations

import pytest

from dataset_models import DatasetUrn
from metaevents.errors import InvalidUrnError
from metaevents.urn import CorpUserUrn, Urn


def test_parse_simple_urn():
    urn = Urn.parse("urn:li:dataset:1")

    assert urn.namespace == "li"
    assert urn.entity_type == "dataset"
    assert urn.key == ("1",)
    assert urn.id == "1"
    assert str(urn) == "urn:li:dataset:1"


def test_parse_tuple_key_with_nested_urn():
    text = "urn:li:dataset:(urn:li:dataPlatform:hive,db.table,PROD)"
    urn = Urn.parse(text)

    assert urn.key == ("urn:li:dataPlatform:hive", "db.table", "PROD")
    assert str(urn) == text


def test_parse_respects_nested_parentheses():
    text = "urn:li:chart:(urn:li:dataset:(urn:li:dataPlatform:hive,t,PROD),42)"
    urn = Urn.parse(text)

    assert urn.key == ("urn:li:dataset:(urn:li:dataPlatform:hive,t,PROD)", "42")
    assert str(urn) == text


def test_urns_compare_by_value():
    assert Urn.parse("urn:li:dataset:1") == Urn.parse("urn:li:dataset:1")
    assert Urn.parse("urn:li:dataset:1") != Urn.parse("urn:li:dataset:2")
    assert len({Urn.parse("urn:li:dataset:1"), Urn.parse("urn:li:dataset:1")}) == 1


@pytest.mark.parametrize(
    "text",
    [
        "",
        "urn:li:dataset",
        "urx:li:dataset:1",
        "urn::dataset:1",
        "urn:li::1",
        "urn:li:dataset:",
        "urn:li:dataset:(a,b",
        "urn:li:dataset:(a,,b)",
        "urn:li:dataset:(a))",
        "urn:li:dataset:()",
    ],
)
def test_parse_rejects_malformed(text: str):
    with pytest.raises(InvalidUrnError):
        Urn.parse(text)


def test_invalid_urn_error_is_value_error():
    with pytest.raises(ValueError):
        Urn.parse("not-a-urn")


def test_typed_urn_rejects_other_entity_type():
    with pytest.raises(InvalidUrnError, match="dataset"):
        DatasetUrn.parse("urn:li:chart:1")


def test_typed_urn_create():
    urn = CorpUserUrn.create("alice")

    assert isinstance(urn, CorpUserUrn)
    assert str(urn) == "urn:li:corpuser:alice"


def test_create_requires_fixed_entity_type():
    with pytest.raises(InvalidUrnError):
        Urn.create("1")


# ---------------------------------------------------------------------------
# Text round trip
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "text",
    [
        "urn:li:dataset:(a)",
        "urn:li:dataset:f(x)",
        "urn:li:dataset:(f(x),y)",
        "urn:li:dataset:((a,b),c)",
        "urn:li:dataset:(urn:li:dataPlatform:hive)",
    ],
)
def test_parse_then_str_returns_same_text(text: str):
    urn = Urn.parse(text)

    assert str(urn) == text
    assert Urn.parse(str(urn)) == urn


def test_one_component_tuple_key_keeps_parentheses():
    urn = DatasetUrn.parse("urn:li:dataset:(a)")

    assert urn.key == ("a",)
    assert urn.is_tuple
    assert urn.id == "(a)"
    assert urn != DatasetUrn.parse("urn:li:dataset:a")


def test_created_key_with_inner_parentheses_round_trips():
    urn = DatasetUrn.create("f(x)")

    assert str(urn) == "urn:li:dataset:f(x)"
    assert DatasetUrn.parse(str(urn)) == urn


def test_created_multi_component_key_round_trips():
    urn = DatasetUrn.create("urn:li:dataPlatform:hive", "db.table", "PROD")

    assert urn.is_tuple
    assert DatasetUrn.parse(str(urn)) == urn


@pytest.mark.parametrize(
    "key",
    [
        ("(x)",),
        ("a,b", "c"),
        ("a)", "b"),
    ],
)
def test_create_rejects_keys_that_cannot_be_written(key: tuple[str, ...]):
    with pytest.raises(InvalidUrnError):
        DatasetUrn.create(*key)
