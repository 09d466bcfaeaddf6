"""File-system event source for batch directories.

This module walks a batch directory depth first and yields tree events
lazily. Files sharing a name prefix with a data file are grouped into
a virtual node, and sibling checksum files are attached to the events
of the files they describe.
"""

from __future__ import annotations

from functools import partial
from pathlib import Path
from typing import Iterator

from core.constants import CONTENTS_ATTRIBUTE_SUFFIX
from core.errors import DomsIngesterError
from core.types import Attribute, ClassificationPolicy, NodeBegin, NodeEnd, ParsingEvent


def iterate_tree(
    root: str | Path,
    policy: ClassificationPolicy | None = None,
) -> Iterator[ParsingEvent]:
    """Yield balanced tree events for a batch directory.

    Args:
        root: Batch root directory.
        policy: File classification rules; newspaper defaults when omitted.

    Yields:
        NodeBegin, Attribute and NodeEnd events in depth-first order.

    Raises:
        DomsIngesterError: If the root is missing or a checksum cannot be read.
    """
    active_policy = policy or ClassificationPolicy()
    root_path = Path(root).expanduser().resolve()
    if not root_path.is_dir():
        raise DomsIngesterError(
            f"Failed to read batch at {root_path}: not an existing directory. "
            "Provide the batch root directory."
        )
    base_path = root_path.parent
    pending: list[tuple[Path, bool]] = [(root_path, False)]
    while pending:
        directory, finished = pending.pop()
        node_name = _node_name(directory, base_path)
        if finished:
            yield NodeEnd(node_name)
            continue
        yield NodeBegin(node_name)
        entries = sorted(directory.iterdir(), key=lambda entry: entry.name)
        files = [entry for entry in entries if entry.is_file()]
        yield from _file_events(files, node_name, active_policy)
        pending.append((directory, True))
        subdirectories = [entry for entry in entries if entry.is_dir()]
        for subdirectory in reversed(subdirectories):
            pending.append((subdirectory, False))


def _file_events(
    files: list[Path],
    node_name: str,
    policy: ClassificationPolicy,
) -> Iterator[ParsingEvent]:
    """Yield events for the files of one directory."""
    for prefix, group in _group_by_prefix(files, policy).items():
        if not any(_is_data_file(path, policy) for path in group):
            for path in group:
                yield _attribute(path, f"{node_name}/{path.name}", policy)
            continue
        group_name = f"{node_name}/{prefix}"
        yield NodeBegin(group_name)
        for path in group:
            file_name = f"{node_name}/{path.name}"
            if _is_data_file(path, policy):
                yield NodeBegin(file_name, is_data_file_node=True)
                yield _attribute(path, f"{file_name}{CONTENTS_ATTRIBUTE_SUFFIX}", policy)
                yield NodeEnd(file_name)
            else:
                yield _attribute(path, file_name, policy)
        yield NodeEnd(group_name)


def _group_by_prefix(files: list[Path], policy: ClassificationPolicy) -> dict[str, list[Path]]:
    groups: dict[str, list[Path]] = {}
    for path in files:
        if path.name.endswith(policy.checksum_suffix):
            continue
        prefix = path.name.split(".", 1)[0]
        groups.setdefault(prefix, []).append(path)
    return groups


def _attribute(path: Path, name: str, policy: ClassificationPolicy) -> Attribute:
    return Attribute(
        name=name,
        open_content=partial(path.open, "rb"),
        checksum=_read_checksum(path, policy),
    )


def _read_checksum(path: Path, policy: ClassificationPolicy) -> str | None:
    """Return the first token of a sibling checksum file, if any.

    Raises:
        DomsIngesterError: If the checksum file exists but cannot be read.
    """
    checksum_path = path.with_name(f"{path.name}{policy.checksum_suffix}")
    if not checksum_path.is_file():
        return None
    try:
        tokens = checksum_path.read_text(encoding="utf-8").split()
    except (OSError, UnicodeDecodeError) as error:
        raise DomsIngesterError(
            f"Failed to read checksum file {checksum_path}: {error}."
        ) from error
    return tokens[0] if tokens else None


def _is_data_file(path: Path, policy: ClassificationPolicy) -> bool:
    return path.name.endswith(policy.data_file_suffixes)


def _node_name(directory: Path, base_path: Path) -> str:
    return directory.relative_to(base_path).as_posix()
