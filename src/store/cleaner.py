"""Recursive removal of ingested object trees.

This module finds the root object of a previous ingest by its DC
identifier and purges it together with every hasPart descendant.
"""

from __future__ import annotations

from core.constants import HAS_PART_RELATION
from core.logging_config import get_logger
from store.object_store import ObjectStore

_LOGGER = get_logger(__name__)
_PURGE_COMMENT = "Purged by ingest cleaner."


def clean_tree(object_store: ObjectStore, identifier: str, purge: bool = True) -> list[str]:
    """Purge every object tree rooted at an object with ``identifier``.

    Args:
        object_store: Repository client.
        identifier: DC identifier of the root, e.g. ``path:B400022028241-RT1``.
        purge: When false, only collect the pids that would be purged.

    Returns:
        Affected pids, children before their parents.

    Raises:
        DomsBackendError: If any lookup or purge fails.
    """
    affected: list[str] = []
    for root_pid in object_store.find_objects_by_identifier(identifier):
        affected.extend(_collect_post_order(object_store, root_pid))
    if purge:
        for pid in affected:
            object_store.purge_object(pid, _PURGE_COMMENT)
            _LOGGER.info("object_purged", pid=pid, identifier=identifier)
    return affected


def _collect_post_order(object_store: ObjectStore, root_pid: str) -> list[str]:
    """Walk hasPart relations without recursion and return a post-order."""
    ordered: list[str] = []
    seen: set[str] = set()
    stack: list[tuple[str, bool]] = [(root_pid, False)]
    while stack:
        pid, expanded = stack.pop()
        if expanded:
            ordered.append(pid)
            continue
        if pid in seen:
            continue
        seen.add(pid)
        stack.append((pid, True))
        children = object_store.get_related_objects(pid, HAS_PART_RELATION)
        for child_pid in reversed(children):
            stack.append((child_pid, False))
    return ordered
