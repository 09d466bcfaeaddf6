"""DOMS ingest CLI entry points.
This module exposes commands for batch ingest and repository cleanup.
It maps argparse commands onto pipeline and store calls.
"""

from __future__ import annotations

import argparse
from dataclasses import replace
import sys
from typing import Any, Sequence

from core.config import DomsConfig
from core.constants import NEWSPAPER_CHECKSUM_SUFFIX, NEWSPAPER_DATA_FILE_SUFFIXES
from core.errors import DomsError
from core.logging_config import configure_logging
from core.types import ClassificationPolicy, IngestOptions
from ingest.pipeline import build_object_store, ingest_directory
from store.cleaner import clean_tree


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="domsingest", description="Ingest newspaper batches into DOMS"
    )
    parser.add_argument("--config", help="YAML config file overriding DOMS_* env vars")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_ingest_command(subparsers)
    _add_clean_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the DOMS ingest CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = _build_config(args.config)
        configure_logging(config.log_level)
        if args.command == "ingest":
            return _run_ingest_command(config, args)
        if args.command == "clean":
            return _run_clean_command(config, args)
    except DomsError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _build_config(config_path: str | None) -> DomsConfig:
    if config_path:
        return DomsConfig.from_file(config_path)
    return DomsConfig.from_env()


def _run_ingest_command(config: DomsConfig, args: argparse.Namespace) -> int:
    """Handle ingest command.

    Args:
        config: Runtime configuration.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    if args.collection:
        config = replace(config, collections=tuple(args.collection))
    policy = ClassificationPolicy(
        data_file_suffixes=tuple(args.data_file_suffix or NEWSPAPER_DATA_FILE_SUFFIXES),
        checksum_suffix=args.checksum_suffix,
    )
    options = IngestOptions(
        batch_dir=args.batch_dir,
        collections=config.collections,
        policy=policy,
        dry_run=args.dry_run,
    )
    root_pid = ingest_directory(options, config)
    print(root_pid)
    return 0


def _run_clean_command(config: DomsConfig, args: argparse.Namespace) -> int:
    """Handle clean command.

    Args:
        config: Runtime configuration.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    object_store = build_object_store(config)
    pids = clean_tree(object_store, args.identifier, purge=not args.list_only)
    for pid in pids:
        print(pid)
    return 0


def _add_ingest_command(subparsers: Any) -> None:
    """Register ingest subcommand."""
    parser = subparsers.add_parser("ingest", help="Ingest a batch directory")
    parser.add_argument("batch_dir", help="Batch root directory")
    parser.add_argument(
        "--collection",
        action="append",
        help="Collection pid for every new object; repeat for several",
    )
    parser.add_argument(
        "--data-file-suffix",
        action="append",
        help=f"Suffix of data files; repeat for several (default {NEWSPAPER_DATA_FILE_SUFFIXES[0]})",
    )
    parser.add_argument(
        "--checksum-suffix",
        default=NEWSPAPER_CHECKSUM_SUFFIX,
        help="Suffix of sibling checksum files",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Ingest into a local in-memory store instead of Fedora",
    )


def _add_clean_command(subparsers: Any) -> None:
    """Register clean subcommand."""
    parser = subparsers.add_parser("clean", help="Purge an ingested object tree")
    parser.add_argument("identifier", help="DC identifier of the root, e.g. path:B400022028241-RT1")
    parser.add_argument(
        "--list-only",
        action="store_true",
        help="Print affected pids without purging",
    )
