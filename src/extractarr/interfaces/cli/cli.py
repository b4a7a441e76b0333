from __future__ import annotations

import argparse
import asyncio
import json
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any, TextIO

import structlog

from extractarr.domain.entities.extraction import ExtractorRequest
from extractarr.infrastructure.config import AppConfig, load_config
from extractarr.infrastructure.logging.setup import configure_logging, shutdown_logging
from extractarr.interfaces.cli.output import info_to_dict, stream_to_dict
from extractarr.interfaces.composition import build_extraction_service

log = structlog.get_logger(__name__)

EXIT_OK = 0
EXIT_NO_STREAMS = 1


def _parse_args(argv: Iterable[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="extractarr",
        description="Resolve a hoster embed URL into playable stream URLs.",
    )

    parser.add_argument("url", nargs="?", help="Embed or page URL to resolve.")
    parser.add_argument(
        "--referer",
        default=None,
        help="Referer of the page that embedded the URL.",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List registered extractors and their URL patterns, then exit.",
    )

    # Config wiring flags (no business logic)
    parser.add_argument(
        "--config",
        default=None,
        help="Path to YAML config file.",
    )
    parser.add_argument(
        "--dotenv",
        default=None,
        help="Path to .env file.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override log level.",
    )
    parser.add_argument(
        "--log-format",
        default=None,
        choices=["json", "console"],
        help="Override log format.",
    )

    args = parser.parse_args(argv)
    if not args.list and not args.url:
        parser.error("url is required unless --list is given")
    return args


async def run(args: argparse.Namespace, config: AppConfig, out: TextIO) -> int:
    """Execute the command described by *args*; returns the exit code."""
    async with build_extraction_service(config) as service:
        if args.list:
            infos = [info_to_dict(info) for info in service.registry.infos]
            json.dump(infos, out, indent=2)
            out.write("\n")
            return EXIT_OK

        streams = await service.extract(
            ExtractorRequest(url=args.url, referer=args.referer)
        )

    json.dump([stream_to_dict(stream) for stream in streams], out, indent=2)
    out.write("\n")
    if not streams:
        log.warning("no_streams_found", url=args.url)
        return EXIT_NO_STREAMS
    return EXIT_OK


def start(argv: Iterable[str] | None = None) -> int:
    """
    Process entrypoint.

    Loads config exactly once here, then builds the extraction service with it.
    """
    if argv is None:
        argv = sys.argv[1:]

    args = _parse_args(argv)

    config_path = Path(args.config) if args.config else None
    dotenv_path = Path(args.dotenv) if args.dotenv else None

    cli_overrides: dict[str, Any] = {}
    if args.log_level:
        cli_overrides["log_level"] = args.log_level
    if args.log_format:
        cli_overrides["log_format"] = args.log_format

    config = load_config(
        config_path=config_path,
        dotenv_path=dotenv_path,
        cli_overrides=cli_overrides,
    )

    configure_logging(config)
    try:
        return asyncio.run(run(args, config, sys.stdout))
    finally:
        shutdown_logging()


if __name__ == "__main__":
    raise SystemExit(start())
