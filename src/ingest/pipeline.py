"""Directory ingest orchestration.

This module wires the file-system event source, the object store
client and the tree ingester together for one batch directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator

from core.config import DomsConfig
from core.logging_config import get_logger
from core.types import IngestOptions, NodeBegin, ParsingEvent
from ingest.tree_ingester import TreeIngester
from ingest.tree_iterator import iterate_tree
from store.fedora_client import FedoraRestClient
from store.memory_store import InMemoryObjectStore
from store.object_store import ObjectStore

_LOGGER = get_logger(__name__)


@dataclass
class _EventCounter:
    """Counts events as they stream through to the ingester."""

    node_count: int = 0
    event_count: int = 0

    def track(self, events: Iterable[ParsingEvent]) -> Iterator[ParsingEvent]:
        for event in events:
            self.event_count += 1
            if isinstance(event, NodeBegin):
                self.node_count += 1
            yield event


def ingest_directory(
    options: IngestOptions,
    config: DomsConfig,
    object_store: ObjectStore | None = None,
) -> str:
    """Ingest a batch directory and return the root object pid.

    Args:
        options: Ingest request options.
        config: Runtime configuration.
        object_store: Optional store override; built from config when omitted.

    Returns:
        Pid of the object created for the batch root.

    Raises:
        DomsIngesterError: If the directory or an attribute cannot be read.
        DomsBackendError: If any repository call fails.
    """
    store = object_store or build_object_store(config, options.dry_run)
    ingester = TreeIngester(store, options.collections)
    counter = _EventCounter()
    _LOGGER.info(
        "ingest_started",
        batch_dir=options.batch_dir,
        collections=list(options.collections),
        dry_run=options.dry_run,
    )
    root_pid = ingester.ingest(counter.track(iterate_tree(options.batch_dir, options.policy)))
    _LOGGER.info(
        "ingest_completed",
        batch_dir=options.batch_dir,
        root_pid=root_pid,
        node_count=counter.node_count,
        event_count=counter.event_count,
        dry_run=options.dry_run,
    )
    return root_pid


def build_object_store(config: DomsConfig, dry_run: bool = False) -> ObjectStore:
    """Build the Fedora client, or an in-memory store for dry runs."""
    if dry_run:
        return InMemoryObjectStore(config.pid_namespace)
    return FedoraRestClient(config)
