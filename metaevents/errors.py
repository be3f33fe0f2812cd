"""
Error hierarchy for metadata event production.

All errors are raised synchronously to the immediate caller. The enclosing
mutation decides what to do about them (e.g. roll back on TransportError).
"""

from __future__ import annotations


class MetadataEventError(Exception):
    """Base class for all metaevents errors."""


class ConfigurationError(MetadataEventError):
    """A producer binding or configuration value is invalid.

    Raised once, at construction time. A producer that fails here cannot be
    built at all.
    """

    def __init__(self, message: str, *, offending: str | None = None):
        super().__init__(message)
        self.offending = offending


class InvalidMutationError(MetadataEventError, ValueError):
    """A mutation has neither an old nor a new value."""


class TypeMismatchError(MetadataEventError, TypeError):
    """A value, aspect type or urn falls outside the producer's binding."""


class TransportError(MetadataEventError):
    """Delivery of an event to the transport failed."""


class InvalidUrnError(MetadataEventError, ValueError):
    """A string could not be parsed as an urn."""
