"""Unit tests for the file-system tree event source."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.errors import DomsIngesterError
from core.types import Attribute, ClassificationPolicy, NodeBegin, NodeEnd
from ingest.tree_iterator import iterate_tree
from tests.fixture_paths import fixture_path

_BATCH = "B400022028241-RT1"
_EDITION = f"{_BATCH}/400022028241-1/1795-06-13-01"
_PAGE = f"{_EDITION}/adresseavisen1759-1795-06-13-01-0007B"


def _describe(event: object) -> tuple:
    if isinstance(event, NodeBegin):
        return ("begin", event.name, event.is_data_file_node)
    if isinstance(event, NodeEnd):
        return ("end", event.name)
    assert isinstance(event, Attribute)
    return ("attribute", event.name, event.checksum)


def test_iterate_tree_yields_fixture_batch_in_depth_first_order() -> None:
    """Batch fixture should produce nested, balanced events with grouped pages."""
    events = [_describe(event) for event in iterate_tree(fixture_path(f"batch/{_BATCH}"))]

    assert events == [
        ("begin", _BATCH, False),
        ("attribute", f"{_BATCH}/{_BATCH}.batch.xml", None),
        ("begin", f"{_BATCH}/400022028241-1", False),
        ("attribute", f"{_BATCH}/400022028241-1/400022028241-1.film.xml", None),
        ("begin", _EDITION, False),
        ("begin", _PAGE, False),
        (
            "attribute",
            f"{_EDITION}/adresseavisen1759-1795-06-13-01-0007B.alto.xml",
            "B3E97978A1EB9C4A6241C986B24EDDE0",
        ),
        ("begin", f"{_EDITION}/adresseavisen1759-1795-06-13-01-0007B.jp2", True),
        (
            "attribute",
            f"{_EDITION}/adresseavisen1759-1795-06-13-01-0007B.jp2/contents",
            "2f8e814fa728cd536c96b146f87189f6",
        ),
        ("end", f"{_EDITION}/adresseavisen1759-1795-06-13-01-0007B.jp2"),
        ("attribute", f"{_EDITION}/adresseavisen1759-1795-06-13-01-0007B.mods.xml", None),
        ("end", _PAGE),
        ("end", _EDITION),
        ("end", f"{_BATCH}/400022028241-1"),
        ("begin", f"{_BATCH}/400022028241-2", False),
        ("attribute", f"{_BATCH}/400022028241-2/400022028241-2.film.xml", None),
        ("end", f"{_BATCH}/400022028241-2"),
        ("end", _BATCH),
    ]


def test_iterate_tree_keeps_files_without_data_file_on_directory(tmp_path: Path) -> None:
    """Metadata files with no data file sibling should attach to the directory."""
    batch = tmp_path / "batch"
    batch.mkdir()
    (batch / "page.alto.xml").write_text("<alto/>", encoding="utf-8")
    (batch / "page.mods.xml").write_text("<mods/>", encoding="utf-8")

    events = [_describe(event) for event in iterate_tree(batch)]

    assert events == [
        ("begin", "batch", False),
        ("attribute", "batch/page.alto.xml", None),
        ("attribute", "batch/page.mods.xml", None),
        ("end", "batch"),
    ]


def test_iterate_tree_honours_custom_policy(tmp_path: Path) -> None:
    """Custom data-file and checksum suffixes should drive classification."""
    batch = tmp_path / "batch"
    batch.mkdir()
    (batch / "scan.tif").write_bytes(b"tiff")
    (batch / "scan.tif.sha").write_text("ABCDEF  scan.tif\n", encoding="utf-8")
    policy = ClassificationPolicy(data_file_suffixes=(".tif",), checksum_suffix=".sha")

    events = [_describe(event) for event in iterate_tree(batch, policy)]

    assert events == [
        ("begin", "batch", False),
        ("begin", "batch/scan", False),
        ("begin", "batch/scan.tif", True),
        ("attribute", "batch/scan.tif/contents", "ABCDEF"),
        ("end", "batch/scan.tif"),
        ("end", "batch/scan"),
        ("end", "batch"),
    ]


def test_iterate_tree_attribute_content_reads_file_bytes(tmp_path: Path) -> None:
    """Attribute events should open the underlying file lazily."""
    batch = tmp_path / "batch"
    batch.mkdir()
    (batch / "film.xml").write_text("<film/>", encoding="utf-8")

    attributes = [event for event in iterate_tree(batch) if isinstance(event, Attribute)]
    with attributes[0].open_content() as stream:
        content = stream.read()

    assert content == b"<film/>"


def test_iterate_tree_raises_for_missing_root(tmp_path: Path) -> None:
    """Missing batch directory should fail with an ingester error."""
    missing_path = tmp_path / "does-not-exist"

    with pytest.raises(DomsIngesterError):
        list(iterate_tree(missing_path))

    assert missing_path.exists() is False
