"""Object store contract consumed by the tree ingester.

This module declares the repository operations the ingester and the
cleanup helper rely on. Implementations raise DomsBackendError subtypes.
"""

from __future__ import annotations

from typing import Protocol, Sequence


class ObjectStore(Protocol):
    """Repository client operations used during ingest and cleanup."""

    def new_empty_object(
        self,
        old_ids: Sequence[str],
        collections: Sequence[str],
        log_message: str,
    ) -> str:
        """Create an empty object and return its new identifier."""
        ...

    def modify_datastream_by_value(
        self,
        pid: str,
        datastream: str,
        content: str,
        alternative_ids: Sequence[str],
        comment: str,
        checksum: str | None = None,
    ) -> None:
        """Write or replace a textual datastream, verifying the checksum if given."""
        ...

    def add_relation(self, pid: str, predicate: str, object_pid: str, comment: str) -> None:
        """Add a directed relation from ``pid`` to ``object_pid``."""
        ...

    def find_objects_by_identifier(self, identifier: str) -> list[str]:
        """Return pids whose DC identifiers include ``identifier``."""
        ...

    def get_related_objects(self, pid: str, predicate: str) -> list[str]:
        """Return object pids related from ``pid`` through ``predicate``."""
        ...

    def purge_object(self, pid: str, comment: str) -> None:
        """Permanently remove an object."""
        ...
