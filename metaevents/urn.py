"""
Urn: structured, immutable identifier for one entity instance.

Textual form: ``urn:<namespace>:<entityType>:<key>``. The key is either a
single component or a parenthesised tuple of components, which may themselves
be urns:

    urn:li:dataset:1
    urn:li:dataset:(urn:li:dataPlatform:hive,db.table,PROD)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from .errors import InvalidUrnError

URN_PREFIX = "urn"
DEFAULT_NAMESPACE = "li"


def _split_tuple(body: str) -> tuple[str, ...]:
    """Split ``a,(b,c),d`` on top-level commas only."""
    parts: list[str] = []
    depth = 0
    start = 0
    for i, ch in enumerate(body):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth < 0:
                raise InvalidUrnError(f"Unbalanced parentheses in key: {body!r}")
        elif ch == "," and depth == 0:
            parts.append(body[start:i])
            start = i + 1
    if depth != 0:
        raise InvalidUrnError(f"Unbalanced parentheses in key: {body!r}")
    parts.append(body[start:])
    return tuple(parts)


@dataclass(frozen=True)
class Urn:
    """An entity identifier. Equality and hashing are by value.

    Subclasses pin ``ENTITY_TYPE`` to reject urns of other entity kinds.
    """

    namespace: str
    entity_type: str
    key: tuple[str, ...]
    is_tuple: bool = False  # key written in parentheses, even with one component

    ENTITY_TYPE: ClassVar[str | None] = None

    def __post_init__(self) -> None:
        if not self.namespace or ":" in self.namespace:
            raise InvalidUrnError(f"Invalid urn namespace: {self.namespace!r}")
        if not self.entity_type or ":" in self.entity_type:
            raise InvalidUrnError(f"Invalid urn entity type: {self.entity_type!r}")
        if not self.key or any(part == "" for part in self.key):
            raise InvalidUrnError("Urn key components must be non-empty")
        if len(self.key) > 1:
            object.__setattr__(self, "is_tuple", True)
        if self.is_tuple:
            if _split_tuple(",".join(self.key)) != tuple(self.key):
                raise InvalidUrnError(
                    f"Tuple key components must be balanced and comma-free: {self.key!r}"
                )
        elif self.key[0].startswith("("):
            raise InvalidUrnError(f"A single key must not start with '(': {self.key[0]!r}")
        if self.ENTITY_TYPE is not None and self.entity_type != self.ENTITY_TYPE:
            raise InvalidUrnError(
                f"{type(self).__name__} requires entity type {self.ENTITY_TYPE!r}, "
                f"got {self.entity_type!r}"
            )

    @property
    def id(self) -> str:
        """The key portion of the urn as it appears in text."""
        if not self.is_tuple:
            return self.key[0]
        return "(" + ",".join(self.key) + ")"

    def __str__(self) -> str:
        return f"{URN_PREFIX}:{self.namespace}:{self.entity_type}:{self.id}"

    @classmethod
    def parse(cls, text: str) -> Urn:
        """Parse a urn string into ``cls``."""
        if not isinstance(text, str):
            raise InvalidUrnError(f"Urn must be a string, got {type(text).__name__}")
        parts = text.split(":", 3)
        if len(parts) != 4 or parts[0] != URN_PREFIX:
            raise InvalidUrnError(f"Not a urn: {text!r}")
        _, namespace, entity_type, raw_key = parts

        if raw_key.startswith("("):
            if not raw_key.endswith(")"):
                raise InvalidUrnError(f"Unbalanced parentheses in key: {raw_key!r}")
            return cls(
                namespace=namespace,
                entity_type=entity_type,
                key=_split_tuple(raw_key[1:-1]),
                is_tuple=True,
            )
        return cls(namespace=namespace, entity_type=entity_type, key=(raw_key,))

    @classmethod
    def create(cls, *key: str, namespace: str = DEFAULT_NAMESPACE) -> Urn:
        """Build a typed urn from key components.

        Only valid on subclasses that pin ``ENTITY_TYPE``.
        """
        if cls.ENTITY_TYPE is None:
            raise InvalidUrnError(f"{cls.__name__} has no fixed entity type; use parse()")
        return cls(namespace=namespace, entity_type=cls.ENTITY_TYPE, key=tuple(key))


class CorpUserUrn(Urn):
    """Urn of a user, e.g. the actor of an audit stamp."""

    ENTITY_TYPE = "corpuser"
