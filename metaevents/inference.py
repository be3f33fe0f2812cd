"""Change-type inference for audit events."""

from __future__ import annotations

from typing import Any

from .errors import InvalidMutationError
from .models import ChangeType


def infer_change_type(
    old_value: Any | None,
    new_value: Any | None,
    explicit: ChangeType | None = None,
) -> ChangeType:
    """
    Classify a mutation from the presence of its old and new values.

    Priority order:
    1. An explicit change type is returned unchanged.
    2. old absent, new present -> CREATE
    3. old present, new present -> UPSERT (equal values included)
    4. old present, new absent -> DELETE

    Raises:
        InvalidMutationError: both values are absent and nothing explicit was given
    """
    if explicit is not None:
        return ChangeType(explicit)
    if old_value is None and new_value is not None:
        return ChangeType.CREATE
    if old_value is not None and new_value is not None:
        return ChangeType.UPSERT
    if old_value is not None:
        return ChangeType.DELETE
    raise InvalidMutationError("A mutation needs an old value, a new value, or both")


def require_old_or_new(old_value: Any | None, new_value: Any | None) -> None:
    """Reject a mutation whose old and new values are both absent."""
    if old_value is None and new_value is None:
        raise InvalidMutationError("A mutation needs an old value, a new value, or both")
