"""Shared typed models.

This module defines the tree event variants consumed by the ingester
and the immutable option models used by the pipeline and CLI.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import io
from typing import BinaryIO, Callable, Union

from core.constants import (
    NEWSPAPER_CHECKSUM_SUFFIX,
    NEWSPAPER_COLLECTION,
    NEWSPAPER_DATA_FILE_SUFFIXES,
)


@dataclass(frozen=True)
class NodeBegin:
    """A directory or data-file node is entered.

    Attributes:
        name: Node path relative to the batch root's parent.
        is_data_file_node: Whether the event source classified the node as a data file.
    """

    name: str
    is_data_file_node: bool = False


@dataclass(frozen=True)
class NodeEnd:
    """The innermost open node is left.

    Attributes:
        name: Node path, informational only.
    """

    name: str = ""


@dataclass(frozen=True)
class Attribute:
    """A metadata file belonging to the innermost open node.

    Attributes:
        name: File path, e.g. ``batch/page.alto.xml``.
        open_content: Callable returning a binary stream of the file content.
        checksum: Optional checksum reported by the event source.
    """

    name: str
    open_content: Callable[[], BinaryIO]
    checksum: str | None = None

    @classmethod
    def from_bytes(cls, name: str, data: bytes, checksum: str | None = None) -> "Attribute":
        """Build an attribute event backed by in-memory bytes."""
        return cls(name=name, open_content=lambda: io.BytesIO(data), checksum=checksum)


ParsingEvent = Union[NodeBegin, NodeEnd, Attribute]


@dataclass
class TraversalFrame:
    """State of one currently open node during a traversal.

    Attributes:
        object_id: Object identifier assigned by the object store.
        is_data_file_node: Classification carried by the originating NodeBegin.
        child_object_ids: Child object ids in discovery order.
    """

    object_id: str
    is_data_file_node: bool
    child_object_ids: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ClassificationPolicy:
    """File classification rules applied by the file-system event source.

    Attributes:
        data_file_suffixes: Suffixes of files ingested as data-file nodes.
        checksum_suffix: Suffix of sibling files holding checksums.
    """

    data_file_suffixes: tuple[str, ...] = NEWSPAPER_DATA_FILE_SUFFIXES
    checksum_suffix: str = NEWSPAPER_CHECKSUM_SUFFIX


@dataclass(frozen=True)
class IngestOptions:
    """Directory ingest options.

    Attributes:
        batch_dir: Root directory of the batch to ingest.
        collections: Collections applied to every created object.
        policy: File classification rules.
        dry_run: Ingest into a local in-memory store instead of Fedora.
    """

    batch_dir: str
    collections: tuple[str, ...] = (NEWSPAPER_COLLECTION,)
    policy: ClassificationPolicy = field(default_factory=ClassificationPolicy)
    dry_run: bool = False
