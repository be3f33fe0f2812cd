"""
Value types shared by producers and events.

- Aspect: one versioned facet of an entity (frozen dataclass subclasses)
- AspectUnion: closed set of aspect variants legal for one entity kind
- Snapshot: full-state container for one entity kind, declared by its slots
- AuditStamp, ChangeType, IngestionMode: provenance and classification
"""

from __future__ import annotations

import time
from dataclasses import dataclass, fields, is_dataclass
from enum import Enum
from typing import Any, ClassVar

from .errors import TypeMismatchError
from .urn import Urn


class ChangeType(str, Enum):
    """Semantic classification of a mutation."""

    CREATE = "CREATE"
    UPSERT = "UPSERT"
    DELETE = "DELETE"


class IngestionMode(str, Enum):
    """How a mutation entered the system."""

    LIVE = "LIVE"
    BACKFILL = "BACKFILL"
    BOOTSTRAP = "BOOTSTRAP"
    LIVE_OVERRIDE = "LIVE_OVERRIDE"


@dataclass(frozen=True)
class AuditStamp:
    """Who made a change and when (epoch milliseconds)."""

    actor: Urn
    time: int
    impersonator: Urn | None = None

    @classmethod
    def now(cls, actor: Urn, impersonator: Urn | None = None) -> AuditStamp:
        return cls(actor=actor, time=int(time.time() * 1000), impersonator=impersonator)

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"actor": str(self.actor), "time": self.time}
        if self.impersonator is not None:
            d["impersonator"] = str(self.impersonator)
        return d

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuditStamp:
        impersonator = data.get("impersonator")
        return cls(
            actor=Urn.parse(data["actor"]),
            time=int(data["time"]),
            impersonator=Urn.parse(impersonator) if impersonator else None,
        )


@dataclass(frozen=True)
class Aspect:
    """Base for aspect types.

    Subclasses are frozen dataclasses. ``ASPECT_NAME`` overrides the
    fully-qualified class name used to tag aspect-specific events.
    """

    ASPECT_NAME: ClassVar[str | None] = None

    @classmethod
    def aspect_name(cls) -> str:
        return cls.ASPECT_NAME or f"{cls.__module__}.{cls.__qualname__}"

    def to_dict(self) -> dict[str, Any]:
        """Field values as plain data; urns are written as strings."""
        return {f.name: _plain(getattr(self, f.name)) for f in fields(self)}


def _plain(value: Any) -> Any:
    if isinstance(value, Urn):
        return str(value)
    if isinstance(value, (Aspect, AspectUnion)):
        return value.to_dict()
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, tuple):
        return tuple(_plain(v) for v in value)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


class AspectUnion:
    """A closed union of aspect variants.

    Subclasses declare ``VARIANTS``. An instance wraps exactly one member
    value. Membership is by exact type: subclasses of a variant are not
    members unless listed themselves.
    """

    VARIANTS: ClassVar[tuple[type[Aspect], ...]] = ()

    __slots__ = ("value",)

    def __init__(self, value: Aspect):
        if not self.is_member(value):
            raise TypeMismatchError(
                f"{type(value).__name__} is not a member of {type(self).__name__} "
                f"(variants: {', '.join(self.variant_names())})"
            )
        self.value = value

    @classmethod
    def is_member(cls, value_or_type: Any) -> bool:
        """Check whether a value, or an aspect type, belongs to this union."""
        candidate = value_or_type if isinstance(value_or_type, type) else type(value_or_type)
        return candidate in cls.VARIANTS

    @classmethod
    def wrap(cls, value: Aspect) -> AspectUnion:
        return cls(value)

    @classmethod
    def variant_names(cls) -> list[str]:
        return [v.__name__ for v in cls.VARIANTS]

    def to_dict(self) -> dict[str, Any]:
        """Tagged form: ``{aspect_name: payload}``."""
        return {type(self.value).aspect_name(): self.value.to_dict()}

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self.value == other.value  # type: ignore[attr-defined]

    def __hash__(self) -> int:
        return hash((type(self), self.value))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.value!r})"


@dataclass(frozen=True)
class Snapshot:
    """Full-state container for one entity kind.

    Subclasses declare the aspect types the entity can carry in
    ``ASPECT_SLOTS`` and, optionally, the urn type in ``URN_TYPE``.
    """

    urn: Urn
    aspects: tuple[AspectUnion, ...] = ()

    ASPECT_SLOTS: ClassVar[tuple[type[Aspect], ...]] = ()
    URN_TYPE: ClassVar[type[Urn]] = Urn

    @classmethod
    def has_slot(cls, aspect_type: type) -> bool:
        return aspect_type in cls.ASPECT_SLOTS

    def to_dict(self) -> dict[str, Any]:
        return {
            "urn": str(self.urn),
            "aspects": [a.to_dict() for a in self.aspects],
        }
