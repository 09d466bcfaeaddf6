"""Public SDK surface for DOMS ingest.

This module provides a stable import path for library users.
It re-exports the ingester, event types, stores and option models.
"""

from __future__ import annotations

from core.config import DomsConfig
from core.types import (
    Attribute,
    ClassificationPolicy,
    IngestOptions,
    NodeBegin,
    NodeEnd,
    ParsingEvent,
)
from ingest.pipeline import ingest_directory
from ingest.tree_ingester import RelationTypes, TreeIngester
from ingest.tree_iterator import iterate_tree
from store.cleaner import clean_tree
from store.fedora_client import FedoraRestClient
from store.memory_store import InMemoryObjectStore
from store.object_store import ObjectStore

__all__ = [
    "Attribute",
    "ClassificationPolicy",
    "DomsConfig",
    "FedoraRestClient",
    "InMemoryObjectStore",
    "IngestOptions",
    "NodeBegin",
    "NodeEnd",
    "ObjectStore",
    "ParsingEvent",
    "RelationTypes",
    "TreeIngester",
    "clean_tree",
    "ingest_directory",
    "iterate_tree",
]
