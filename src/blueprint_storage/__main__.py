"""
Command line entry point for blueprint_storage.
Usage: python -m blueprint_storage [FILE] [-o OUT.json] [--trace TRACE.txt]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from . import __version__
from .decoder import DecodeError, decode_file
from .diagnostics import TraceWriter, find_strings
from .export import to_json
from .models import Blueprint, BlueprintBook, DecodedSession, LibraryEntry
from .settings import AppSettings, ConfigError
from .utils.logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blueprint_storage",
        description="Decode a Factorio blueprint-storage.dat file.",
    )
    parser.add_argument(
        "file",
        nargs="?",
        type=Path,
        help="Storage file to decode (default: configured blueprint storage path)",
    )
    parser.add_argument("-o", "--output", type=Path, help="Write the decoded session as JSON")
    parser.add_argument("--indent", action="store_true", help="Indent JSON output")
    parser.add_argument("--trace", type=Path, help="Write an annotated decode trace")
    parser.add_argument(
        "--find-strings",
        action="store_true",
        help="List plausible strings inside opaque blueprint payloads",
    )
    parser.add_argument("--profile", default="default", help="Settings profile name")
    parser.add_argument(
        "--settings-file", type=Path, help="Use this INI file instead of the platform settings store"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def describe_entry(entry: LibraryEntry) -> str:
    """One-line summary of a library slot."""
    if entry is None:
        return "(empty)"
    if isinstance(entry, BlueprintBook):
        used = sum(child is not None for child in entry.children)
        return f"{entry.kind} '{entry.label}' ({used}/{len(entry.children)} slots used)"
    if isinstance(entry, Blueprint):
        return f"{entry.kind} '{entry.label}' ({len(entry.payload)} payload bytes)"
    return f"{entry.kind} '{entry.label}'"


def iter_blueprints(entries: Sequence[LibraryEntry]) -> Iterator[Blueprint]:
    """Yield every blueprint, descending into books."""
    for entry in entries:
        if isinstance(entry, Blueprint):
            yield entry
        elif isinstance(entry, BlueprintBook):
            yield from iter_blueprints(entry.children)


def print_summary(session: DecodedSession) -> None:
    print(f"Version {session.version}, saved {session.save_time.isoformat()}")
    for i, entry in enumerate(session.blueprints):
        print(f"{i:>4}: {describe_entry(entry)}")


def print_payload_strings(session: DecodedSession) -> None:
    for blueprint in iter_blueprints(session.blueprints):
        print(f"Strings in '{blueprint.label}':")
        for span in find_strings(blueprint.payload):
            if span.text is not None:
                print(f"  {span.start:>8}: {span.text!r}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main command line entry point."""
    args = build_parser().parse_args(argv)
    logger = logging.getLogger(f"{__name__}.main")

    try:
        settings = AppSettings(args.profile, args.settings_file)
        setup_logging(settings)

        validation = settings.validate()
        for warning in validation.warnings:
            logger.debug(f"Configuration warning: {warning}")
        validation.raise_for_errors()

        path: Path = args.file or settings.blueprint_storage_path
        if not path.is_file():
            raise ConfigError(f"Blueprint storage file not found: {path}")

        trace = TraceWriter(args.trace) if args.trace else None
        logger.info(f"Decoding {path}")
        try:
            session = asyncio.run(decode_file(path, trace, settings.decoder.to_options()))
        finally:
            if trace is not None:
                trace.finish(original_size=path.stat().st_size)
                logger.info(f"Trace written to {args.trace}")

        settings.add_recent_file(path.resolve())
        print_summary(session)

        if args.find_strings:
            print_payload_strings(session)

        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            args.output.write_bytes(to_json(session, indent=args.indent))
            logger.info(f"JSON written to {args.output}")

        return 0

    except DecodeError as e:
        logger.error(f"Decoding failed: {e}")
        return 1
    except ConfigError as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
