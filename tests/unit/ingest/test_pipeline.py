"""Unit tests for directory ingest orchestration."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.config import DomsConfig
from core.constants import HAS_FILE_RELATION, HAS_PART_RELATION
from core.errors import ChecksumMismatchError
from core.types import IngestOptions
from ingest.pipeline import build_object_store, ingest_directory
from store.fedora_client import FedoraRestClient
from store.memory_store import InMemoryObjectStore
from tests.fixture_paths import SAMPLE_BATCH_NAME, sample_batch_path

_PAGE_ID = (
    f"path:{SAMPLE_BATCH_NAME}/400022028241-1/1795-06-13-01/"
    "adresseavisen1759-1795-06-13-01-0007B"
)


def _ingest_sample(store: InMemoryObjectStore) -> str:
    options = IngestOptions(batch_dir=str(sample_batch_path()))
    return ingest_directory(options, DomsConfig(), object_store=store)


def test_ingest_directory_returns_batch_root_object() -> None:
    """Root pid should be the object carrying the batch path identifier."""
    store = InMemoryObjectStore()

    root_pid = _ingest_sample(store)

    assert store.find_objects_by_identifier(f"path:{SAMPLE_BATCH_NAME}") == [root_pid]


def test_ingest_directory_creates_object_per_node() -> None:
    """Sample batch has root, two films, edition, page and one jp2 node."""
    store = InMemoryObjectStore()

    _ingest_sample(store)

    assert store.object_count() == 6


def test_ingest_directory_links_films_to_batch_root() -> None:
    """Batch root should have one hasPart relation per film directory."""
    store = InMemoryObjectStore()

    root_pid = _ingest_sample(store)

    assert len(store.get_related_objects(root_pid, HAS_PART_RELATION)) == 2


def test_ingest_directory_attaches_page_metadata() -> None:
    """ALTO and MODS files should become datastreams on the page object."""
    store = InMemoryObjectStore()
    _ingest_sample(store)

    page = store.get_object(store.find_objects_by_identifier(_PAGE_ID)[0])

    assert sorted(page.datastreams) == ["ALTO", "MODS"]
    assert page.datastreams["ALTO"].startswith("<alto>")
    assert page.collections == ["doms:Newspaper_Collection"]


def test_ingest_directory_writes_no_has_file_for_page_groups() -> None:
    """Pages are not data-file nodes, so only hasPart links the jp2 node."""
    store = InMemoryObjectStore()
    _ingest_sample(store)

    page_pid = store.find_objects_by_identifier(_PAGE_ID)[0]

    assert len(store.get_related_objects(page_pid, HAS_PART_RELATION)) == 1
    assert store.get_related_objects(page_pid, HAS_FILE_RELATION) == []


def test_ingest_directory_fails_on_checksum_mismatch(tmp_path: Path) -> None:
    """A wrong checksum file should abort the ingest with a mismatch error."""
    batch = tmp_path / "batch"
    batch.mkdir()
    (batch / "film.xml").write_text("<film/>", encoding="utf-8")
    (batch / "film.xml.md5").write_text("00000000000000000000000000000000", encoding="utf-8")
    store = InMemoryObjectStore()

    with pytest.raises(ChecksumMismatchError):
        ingest_directory(IngestOptions(batch_dir=str(batch)), DomsConfig(), object_store=store)

    assert store.object_count() == 1


def test_build_object_store_selects_backend() -> None:
    """Dry runs should use the in-memory store, otherwise the REST client."""
    config = DomsConfig()

    assert isinstance(build_object_store(config, dry_run=True), InMemoryObjectStore)
    assert isinstance(build_object_store(config), FedoraRestClient)
