"""
Type binding between a snapshot type and its aspect union.

A producer is bound once, at construction, to one (snapshot, aspect union,
urn) triple. ``bind`` validates the triple and returns an immutable
``AspectBinding`` that the hot path trusts without re-checking.

A process that wires producers from a startup table can keep one binding per
entity kind in the registry below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from .errors import ConfigurationError, TypeMismatchError
from .models import Aspect, AspectUnion, Snapshot
from .urn import Urn

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AspectBinding:
    """A validated (snapshot, aspect union, urn) triple."""

    snapshot_type: type[Snapshot]
    aspect_union_type: type[AspectUnion]
    urn_type: type[Urn]

    @property
    def entity_type(self) -> str:
        """Entity kind this binding covers (urn entity type, else snapshot name)."""
        return self.urn_type.ENTITY_TYPE or self.snapshot_type.__name__

    @property
    def variants(self) -> tuple[type[Aspect], ...]:
        return self.aspect_union_type.VARIANTS

    def is_member(self, value_or_type: Any) -> bool:
        return self.aspect_union_type.is_member(value_or_type)

    def check_urn(self, urn: Any) -> None:
        if not isinstance(urn, self.urn_type):
            raise TypeMismatchError(
                f"Expected {self.urn_type.__name__}, got {type(urn).__name__}: {urn!r}"
            )

    def check_value(self, value: Any) -> None:
        if not self.is_member(value):
            raise TypeMismatchError(
                f"{type(value).__name__} is not a member of "
                f"{self.aspect_union_type.__name__} "
                f"(variants: {', '.join(self.aspect_union_type.variant_names())})"
            )


def _is_subclass(candidate: Any, base: type) -> bool:
    return isinstance(candidate, type) and issubclass(candidate, base)


def bind(
    snapshot_type: type[Snapshot],
    aspect_union_type: type[AspectUnion],
    urn_type: type[Urn] | None = None,
) -> AspectBinding:
    """
    Validate that every variant of the aspect union is a slot of the snapshot.

    Args:
        snapshot_type: Snapshot subclass declaring ``ASPECT_SLOTS``
        aspect_union_type: AspectUnion subclass declaring ``VARIANTS``
        urn_type: Urn type of the entity (defaults to the snapshot's ``URN_TYPE``)

    Returns:
        The validated binding

    Raises:
        ConfigurationError: a descriptor is not of the right kind, the union is
            empty, or a variant has no matching snapshot slot
    """
    if not _is_subclass(snapshot_type, Snapshot):
        raise ConfigurationError(
            f"Snapshot type must be a Snapshot subclass, got {snapshot_type!r}",
            offending=repr(snapshot_type),
        )
    if not _is_subclass(aspect_union_type, AspectUnion):
        raise ConfigurationError(
            f"Aspect union type must be an AspectUnion subclass, got {aspect_union_type!r}",
            offending=repr(aspect_union_type),
        )

    if urn_type is None:
        urn_type = snapshot_type.URN_TYPE
    if not _is_subclass(urn_type, Urn):
        raise ConfigurationError(
            f"Urn type must be a Urn subclass, got {urn_type!r}",
            offending=repr(urn_type),
        )

    variants = aspect_union_type.VARIANTS
    if not variants:
        raise ConfigurationError(
            f"Aspect union {aspect_union_type.__name__} declares no variants",
            offending=aspect_union_type.__name__,
        )

    seen: set[type] = set()
    for variant in variants:
        name = getattr(variant, "__name__", repr(variant))
        if not _is_subclass(variant, Aspect):
            raise ConfigurationError(
                f"Variant {name} of {aspect_union_type.__name__} is not an Aspect type",
                offending=name,
            )
        if variant in seen:
            raise ConfigurationError(
                f"Variant {name} is declared twice in {aspect_union_type.__name__}",
                offending=name,
            )
        seen.add(variant)
        if not snapshot_type.has_slot(variant):
            raise ConfigurationError(
                f"Variant {name} of {aspect_union_type.__name__} has no aspect slot "
                f"on {snapshot_type.__name__}",
                offending=name,
            )

    binding = AspectBinding(
        snapshot_type=snapshot_type,
        aspect_union_type=aspect_union_type,
        urn_type=urn_type,
    )
    logger.info(
        f"Bound {snapshot_type.__name__} to {aspect_union_type.__name__} "
        f"({len(variants)} variants, urn {urn_type.__name__})"
    )
    return binding


# Global registry: entity kind → binding
_BINDINGS: dict[str, AspectBinding] = {}


def register_binding(binding: AspectBinding) -> None:
    """
    Register a binding under its entity kind.

    Re-registering the same binding is a no-op; a different binding for an
    already registered entity kind is a configuration error.
    """
    existing = _BINDINGS.get(binding.entity_type)
    if existing is not None and existing != binding:
        raise ConfigurationError(
            f"Entity kind {binding.entity_type!r} is already bound to "
            f"{existing.snapshot_type.__name__}/{existing.aspect_union_type.__name__}",
            offending=binding.entity_type,
        )
    _BINDINGS[binding.entity_type] = binding


def get_binding(entity_type: str) -> AspectBinding | None:
    """Look up the binding for an entity kind, or None if not registered."""
    return _BINDINGS.get(entity_type)


def list_bindings() -> list[str]:
    """List all registered entity kinds."""
    return list(_BINDINGS.keys())


def clear_bindings() -> None:
    """Clear all registered bindings (for testing)."""
    _BINDINGS.clear()
