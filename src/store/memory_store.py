"""In-memory object store.

This module keeps objects, datastreams and relations in process memory.
It backs dry-run ingests and records every write in call order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import hashlib
from typing import Sequence
import uuid

from core.errors import BackendInvalidResourceError, ChecksumMismatchError


@dataclass
class StoredObject:
    """Object state held by the in-memory store."""

    pid: str
    identifiers: list[str]
    collections: list[str]
    datastreams: dict[str, str] = field(default_factory=dict)
    relations: list[tuple[str, str]] = field(default_factory=list)


@dataclass(frozen=True)
class StoreOperation:
    """One recorded write, in the order it was applied.

    Attributes:
        kind: ``create``, ``datastream``, ``relation`` or ``purge``.
        pid: Object the write targeted.
        name: Datastream name or relation predicate, empty otherwise.
        target: Related pid, datastream checksum, or empty.
    """

    kind: str
    pid: str
    name: str = ""
    target: str | None = None


class InMemoryObjectStore:
    """Object store that lives for the duration of one process."""

    def __init__(self, namespace: str = "uuid") -> None:
        self._namespace = namespace
        self._objects: dict[str, StoredObject] = {}
        self.operations: list[StoreOperation] = []

    def new_empty_object(
        self,
        old_ids: Sequence[str],
        collections: Sequence[str],
        log_message: str,
    ) -> str:
        pid = f"{self._namespace}:{uuid.uuid4()}"
        self._objects[pid] = StoredObject(
            pid=pid,
            identifiers=[pid, *old_ids],
            collections=list(collections),
        )
        self.operations.append(StoreOperation(kind="create", pid=pid))
        return pid

    def modify_datastream_by_value(
        self,
        pid: str,
        datastream: str,
        content: str,
        alternative_ids: Sequence[str],
        comment: str,
        checksum: str | None = None,
    ) -> None:
        stored = self._get(pid)
        if checksum is not None:
            actual = hashlib.md5(content.encode("utf-8")).hexdigest()
            if actual != checksum.lower():
                raise ChecksumMismatchError(
                    f"Checksum mismatch for datastream {datastream} on {pid}: "
                    f"expected {checksum}, computed {actual}."
                )
        stored.datastreams[datastream] = content
        self.operations.append(
            StoreOperation(kind="datastream", pid=pid, name=datastream, target=checksum)
        )

    def add_relation(self, pid: str, predicate: str, object_pid: str, comment: str) -> None:
        self._get(pid).relations.append((predicate, object_pid))
        self.operations.append(
            StoreOperation(kind="relation", pid=pid, name=predicate, target=object_pid)
        )

    def find_objects_by_identifier(self, identifier: str) -> list[str]:
        return [pid for pid, stored in self._objects.items() if identifier in stored.identifiers]

    def get_related_objects(self, pid: str, predicate: str) -> list[str]:
        return [target for name, target in self._get(pid).relations if name == predicate]

    def purge_object(self, pid: str, comment: str) -> None:
        self._get(pid)
        del self._objects[pid]
        self.operations.append(StoreOperation(kind="purge", pid=pid))

    def get_object(self, pid: str) -> StoredObject:
        """Return stored state for ``pid``."""
        return self._get(pid)

    def object_count(self) -> int:
        """Return the number of objects currently stored."""
        return len(self._objects)

    def _get(self, pid: str) -> StoredObject:
        stored = self._objects.get(pid)
        if stored is None:
            raise BackendInvalidResourceError(
                f"Object {pid} does not exist in the in-memory store."
            )
        return stored
