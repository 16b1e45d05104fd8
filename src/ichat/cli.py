"""Command-line interface for converting iChat transcripts to JSON."""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from core.app_version import get_app_version
from core.config import AppConfig, load_app_config
from core.logging import configure_logging, get_logger
from core.timestamps import format_duration
from .export import export_messages, to_jsonable, validate_export, write_export
from .exceptions import IChatError
from .parser import load_archive, parse
from ._nska import resolve_archive

LOGGER = get_logger("ichat.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ichat-json",
        description="Parse macOS *.ichat archives into JSON.",
        epilog=(
            "This is a reverse-engineered format; attachment bytes in particular "
            "are best-effort. When attachments are saved, each attachment's \"data\" "
            "property in the JSON is its filename inside the attachments folder."
        ),
    )
    parser.add_argument(
        "input",
        type=Path,
        help="Path to the *.ichat file",
    )
    parser.add_argument(
        "-o", "--output",
        type=Path,
        default=None,
        help="Path to the output JSON file (default: standard output)",
    )
    parser.add_argument(
        "-a", "--attachments",
        type=Path,
        default=None,
        help="Folder where message attachments are stored; attachments are dropped if omitted",
    )
    parser.add_argument(
        "--include-meta",
        action="store_true",
        default=None,
        help="Include read/invitation flags and other message metadata",
    )
    parser.add_argument(
        "--dump-tree",
        action="store_true",
        help="Print the fully resolved archive tree instead of messages",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="YAML configuration file (default: $ICHAT_CONFIG or ~/.config/ichat-archive/config.yml)",
    )
    parser.add_argument(
        "--log-dir",
        type=Path,
        default=None,
        help="Also write a rotating log file into this folder",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "-V", "--version",
        action="version",
        version=f"%(prog)s {get_app_version()}",
    )
    return parser


def _setup_logging(config: AppConfig, args: argparse.Namespace) -> None:
    level = logging.DEBUG if args.verbose else config.logging.level
    configure_logging(
        level=level,
        log_dir=args.log_dir or config.logging.log_dir,
        max_bytes=config.logging.max_mb * 1024 * 1024,
        backup_count=config.logging.backup_count,
    )


def run(args: argparse.Namespace, config: AppConfig) -> int:
    if not args.input.is_file():
        LOGGER.error("Input file not found: %s", args.input)
        return 1

    started = time.monotonic()
    try:
        raw = args.input.read_bytes()
    except OSError as exc:
        LOGGER.error("Cannot read input file %s: %s", args.input, exc.strerror or exc)
        return 1
    archive = load_archive(raw)

    if args.dump_tree:
        tree = to_jsonable(resolve_archive(archive))
        write_export(tree, args.output, indent=config.export.indent)
        return 0

    messages = parse(archive)
    include_meta = config.export.include_meta if args.include_meta is None else args.include_meta
    document = export_messages(messages, args.attachments, include_meta=include_meta)
    if config.export.validate:
        validate_export(document)
    write_export(document, args.output, indent=config.export.indent)

    LOGGER.info(
        "Converted %d messages from %s in %s",
        len(messages),
        args.input.name,
        format_duration(time.monotonic() - started),
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_app_config(args.config)
    except (ValueError, OSError) as exc:
        parser.error(f"invalid configuration: {exc}")
    _setup_logging(config, args)
    if config.source is not None:
        LOGGER.debug("Loaded configuration from %s", config.source)

    try:
        return run(args, config)
    except IChatError as exc:
        LOGGER.error("Failed to convert %s: %s", args.input, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
