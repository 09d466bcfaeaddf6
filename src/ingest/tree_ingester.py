"""Stream-driven ingest of a directory tree into the object store.

This module turns an ordered stream of node and attribute events into
object creation, datastream writes and relation writes. Only the chain
of open ancestors and their pending child lists is held in memory.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from core.constants import (
    CONTENTS_ATTRIBUTE_SUFFIX,
    DATASTREAM_WRITE_COMMENT,
    HAS_FILE_RELATION,
    HAS_PART_RELATION,
    PATH_IDENTIFIER_PREFIX,
)
from core.errors import AttributeReadError, MalformedEventError, UnbalancedEventStreamError
from core.logging_config import get_logger
from core.types import Attribute, NodeBegin, NodeEnd, ParsingEvent, TraversalFrame
from store.object_store import ObjectStore

_LOGGER = get_logger(__name__)


@dataclass(frozen=True)
class RelationTypes:
    """Relation identifiers written when a node closes."""

    has_part: str = HAS_PART_RELATION
    has_file: str = HAS_FILE_RELATION


@dataclass(frozen=True)
class _PendingChildren:
    begin_event: NodeBegin
    child_object_ids: list[str]


class TreeIngester:
    """Single-pass ingester for balanced tree event streams.

    Each NodeBegin creates one object. Attributes are written to the
    innermost open node. When a node closes, hasPart relations to its
    children are written in discovery order, plus hasFile relations if
    the closing node itself was flagged as a data-file node.
    """

    def __init__(
        self,
        object_store: ObjectStore,
        collections: Sequence[str],
        relation_types: RelationTypes = RelationTypes(),
    ) -> None:
        self._object_store = object_store
        self._collections = list(collections)
        self._relation_types = relation_types

    def ingest(self, events: Iterable[ParsingEvent]) -> str:
        """Ingest an event stream and return the root object id.

        Args:
            events: Ordered, balanced tree events.

        Returns:
            Object id created for the first NodeBegin event.

        Raises:
            MalformedEventError: If an event cannot be mapped or nodes are unbalanced.
            AttributeReadError: If attribute content cannot be read as UTF-8.
            DomsBackendError: If any object store call fails.
        """
        frames: list[TraversalFrame] = []
        pending: dict[str, _PendingChildren] = {}
        root_object_id: str | None = None
        for event in events:
            if isinstance(event, NodeBegin):
                object_id = self._handle_node_begin(event, frames, pending)
                if root_object_id is None:
                    root_object_id = object_id
            elif isinstance(event, Attribute):
                self._handle_attribute(event, frames)
            elif isinstance(event, NodeEnd):
                self._handle_node_end(event, frames, pending)
            else:
                raise MalformedEventError(
                    f"Unsupported tree event type {type(event).__name__}. "
                    "Expected NodeBegin, NodeEnd or Attribute."
                )
        if frames:
            raise UnbalancedEventStreamError(
                f"Event stream ended with {len(frames)} open node(s); "
                "every NodeBegin needs a matching NodeEnd."
            )
        if root_object_id is None:
            raise MalformedEventError("Event stream contained no nodes; nothing was ingested.")
        return root_object_id

    def _handle_node_begin(
        self,
        event: NodeBegin,
        frames: list[TraversalFrame],
        pending: dict[str, _PendingChildren],
    ) -> str:
        identifier = f"{PATH_IDENTIFIER_PREFIX}{event.name}"
        log_message = f"Created object with DC id {identifier}"
        object_id = self._object_store.new_empty_object(
            [identifier], self._collections, log_message
        )
        _LOGGER.debug("object_created", identifier=identifier, object_id=object_id)
        parent_id = frames[-1].object_id if frames else None
        frame = TraversalFrame(object_id=object_id, is_data_file_node=event.is_data_file_node)
        frames.append(frame)
        pending[object_id] = _PendingChildren(
            begin_event=event, child_object_ids=frame.child_object_ids
        )
        if parent_id is not None:
            pending[parent_id].child_object_ids.append(object_id)
        return object_id

    def _handle_attribute(self, event: Attribute, frames: list[TraversalFrame]) -> None:
        if not frames:
            raise UnbalancedEventStreamError(
                f"Attribute {event.name} arrived outside of any node."
            )
        if event.name.endswith(CONTENTS_ATTRIBUTE_SUFFIX):
            _LOGGER.debug("contents_attribute_skipped", name=event.name)
            return
        object_id = frames[-1].object_id
        datastream = datastream_name(event.name)
        content = _read_text(event)
        checksum = event.checksum.lower() if event.checksum is not None else None
        self._object_store.modify_datastream_by_value(
            object_id,
            datastream,
            content,
            [event.name],
            DATASTREAM_WRITE_COMMENT,
            checksum=checksum,
        )
        _LOGGER.debug(
            "datastream_written",
            name=event.name,
            datastream=datastream,
            object_id=object_id,
            checksum_verified=checksum is not None,
        )

    def _handle_node_end(
        self,
        event: NodeEnd,
        frames: list[TraversalFrame],
        pending: dict[str, _PendingChildren],
    ) -> None:
        if not frames:
            raise UnbalancedEventStreamError(
                f"NodeEnd {event.name or '<unnamed>'} has no matching NodeBegin."
            )
        frame = frames.pop()
        children = pending.pop(frame.object_id)
        # hasFile follows the closing node's own flag, not the child's.
        write_has_file = children.begin_event.is_data_file_node
        for child_id in children.child_object_ids:
            self._add_relation(frame.object_id, "hasPart", self._relation_types.has_part, child_id)
            if write_has_file:
                self._add_relation(
                    frame.object_id, "hasFile", self._relation_types.has_file, child_id
                )

    def _add_relation(self, parent_id: str, label: str, predicate: str, child_id: str) -> None:
        comment = f"Added relationship {parent_id} {label} {child_id}"
        self._object_store.add_relation(parent_id, predicate, child_id, comment)
        _LOGGER.debug("relation_added", parent_id=parent_id, relation=label, child_id=child_id)


def datastream_name(attribute_name: str) -> str:
    """Derive a datastream name from an attribute name.

    The second-to-last dot-separated segment is upper-cased, so
    ``batch/page.alto.xml`` becomes ``ALTO``. Trailing empty segments
    are ignored.

    Raises:
        MalformedEventError: If the name has fewer than two segments.
    """
    segments = attribute_name.split(".")
    while segments and not segments[-1]:
        segments.pop()
    if len(segments) < 2:
        raise MalformedEventError(f"Cannot find datastream name in {attribute_name}")
    return segments[-2].upper()


def _read_text(event: Attribute) -> str:
    try:
        with event.open_content() as stream:
            return stream.read().decode("utf-8")
    except (OSError, UnicodeDecodeError) as error:
        raise AttributeReadError(
            f"Failed to read attribute {event.name} as UTF-8 text: {error}."
        ) from error
