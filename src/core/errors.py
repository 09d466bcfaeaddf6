"""DOMS ingest exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class DomsError(Exception):
    """Base exception for all DOMS ingest failures."""


class DomsConfigError(DomsError):
    """Raised for invalid runtime configuration."""


class DomsDependencyError(DomsError):
    """Raised when an optional runtime dependency is missing."""


class DomsIngesterError(DomsError):
    """Raised for event parsing and attribute reading failures."""


class MalformedEventError(DomsIngesterError):
    """Raised when an event cannot be mapped onto repository operations."""


class UnbalancedEventStreamError(MalformedEventError):
    """Raised when node begin/end events do not nest correctly."""


class AttributeReadError(DomsIngesterError):
    """Raised when attribute content cannot be read as UTF-8 text."""


class DomsBackendError(DomsError):
    """Base exception for object store failures."""


class BackendInvalidCredsError(DomsBackendError):
    """Raised when the object store rejects the supplied credentials."""


class BackendInvalidResourceError(DomsBackendError):
    """Raised when the addressed object or datastream is missing or forbidden."""


class BackendMethodFailedError(DomsBackendError):
    """Raised for generic object store and transport failures."""


class PIDGeneratorError(DomsBackendError):
    """Raised when a new object identifier cannot be generated."""


class ChecksumMismatchError(DomsBackendError):
    """Raised when stored content does not match the supplied checksum."""
