"""Command line entry point for gtfs-feedkit.

    python -m gtfs_feedkit static PATH
    python -m gtfs_feedkit realtime PATH_OR_URL_OR_SOURCE

Prints a JSON summary on stdout and exits non-zero when the input is invalid.
"""

import argparse
import asyncio
import csv
import json
import sys
import zipfile
from collections import Counter
from pathlib import Path
from typing import Any

import httpx
import yaml
from pydantic import ValidationError

from gtfs_feedkit.archive import read_archive
from gtfs_feedkit.config import Settings, find_source
from gtfs_feedkit.enums import enum_name
from gtfs_feedkit.errors import GtfsError
from gtfs_feedkit.fetcher import NonRetryableError, create_http_client, fetch_and_decode
from gtfs_feedkit.logging import configure_logging, feed_context, get_logger
from gtfs_feedkit.models import DecodeOptions, FeedSource, OptionsFile
from gtfs_feedkit.realtime.builder import decode_feed_message
from gtfs_feedkit.realtime.models import FeedMessage
from gtfs_feedkit.static.loader import StaticFeedLoader

DESCRIPTION = """Validate static GTFS archives and decode GTFS-realtime buffers"""

EXIT_OK = 0
EXIT_INVALID = 1


def parse_args(args: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(prog="gtfs_feedkit", description=DESCRIPTION)
    subparsers = parser.add_subparsers(dest="command", required=True)

    static_parser = subparsers.add_parser(
        "static",
        help="load and validate a static GTFS zip archive or directory",
    )
    static_parser.add_argument("path", type=Path)

    realtime_parser = subparsers.add_parser(
        "realtime",
        help="decode a GTFS-realtime buffer from a file, URL or named source",
    )
    realtime_parser.add_argument("target")

    return parser.parse_args(args)


def summarize_message(message: FeedMessage) -> dict[str, Any]:
    """Condense a decoded FeedMessage for printing."""
    payloads = Counter(
        type(e.payload).__name__ if e.payload is not None else "none"
        for e in message.entities
    )
    return {
        "gtfs_realtime_version": message.header.gtfs_realtime_version,
        "incrementality": enum_name(message.header.incrementality),
        "timestamp": message.header.timestamp,
        "entity_count": len(message.entities),
        "entities": dict(payloads),
        "deleted": sum(1 for e in message.entities if e.is_deleted),
        "dropped": [
            {"path": d.path, "reason": d.reason, "offset": d.offset}
            for d in message.dropped
        ],
    }


def run_static(path: Path, options: OptionsFile) -> tuple[int, dict[str, Any]]:
    """Load and validate a static archive."""
    tables = read_archive(path)
    result = StaticFeedLoader(options.load).load(tables)
    if result.feed is None:
        return EXIT_INVALID, result.report.to_dict()
    return EXIT_OK, {"valid": True, "counts": result.feed.counts()}


def _resolve_source(target: str, options: OptionsFile) -> FeedSource | None:
    source = find_source(options, target)
    if source is not None:
        return source
    if target.startswith(("http://", "https://")):
        return FeedSource(url=target)  # type: ignore[arg-type]
    return None


async def run_realtime(target: str, options: OptionsFile) -> tuple[int, dict[str, Any]]:
    """Decode a realtime buffer from a named source, a URL, or a local file."""
    decode: DecodeOptions = options.decode
    source = _resolve_source(target, options)
    if source is None:
        message = decode_feed_message(Path(target).read_bytes(), decode)
        return EXIT_OK, summarize_message(message)

    async with create_http_client() as client:
        result, message = await fetch_and_decode(client, source, decode)
    summary = summarize_message(message)
    summary["fetch"] = {
        "status_code": result.status_code,
        "content_length": result.content_length,
        "duration_ms": round(result.duration_ms, 3),
        "content_type": result.content_type,
    }
    return EXIT_OK, summary


def run(args: argparse.Namespace, settings: Settings) -> int:
    """Execute a parsed command and print its summary."""
    logger = get_logger(__name__)
    target = str(args.path) if args.command == "static" else args.target

    try:
        with feed_context(command=args.command, target=target):
            options = settings.load_options()
            if args.command == "static":
                code, summary = run_static(args.path, options)
            else:
                code, summary = asyncio.run(run_realtime(args.target, options))
    except GtfsError as e:
        logger.error(
            "command_failed",
            command=args.command,
            error_type=type(e).__name__,
            error=str(e),
        )
        code, summary = EXIT_INVALID, {"error": type(e).__name__, "message": str(e)}
    except NonRetryableError as e:
        logger.error("fetch_non_retryable", status_code=e.status_code)
        code, summary = EXIT_INVALID, {"error": f"http_{e.status_code}", "message": str(e)}
    except httpx.HTTPError as e:
        logger.error("fetch_failed", error_type=type(e).__name__, error=str(e))
        code, summary = EXIT_INVALID, {"error": type(e).__name__, "message": str(e)}
    except (yaml.YAMLError, ValidationError) as e:
        logger.error("options_invalid", error_type=type(e).__name__, error=str(e))
        code, summary = EXIT_INVALID, {"error": type(e).__name__, "message": str(e)}
    except (OSError, zipfile.BadZipFile, UnicodeDecodeError, csv.Error) as e:
        logger.error("input_unreadable", error_type=type(e).__name__, error=str(e))
        code, summary = EXIT_INVALID, {"error": type(e).__name__, "message": str(e)}

    print(json.dumps(summary, indent=2, default=str))
    return code


def main(argv: list[str] | None = None) -> int:
    """Entry point for the gtfs-feedkit command line."""
    args = parse_args(argv)
    settings = Settings()

    configure_logging(settings.log_level, settings.log_format)
    return run(args, settings)


if __name__ == "__main__":
    sys.exit(main())
