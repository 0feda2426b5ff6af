"""Run the road status service: ``python -m roadwatch``."""

from __future__ import annotations

import argparse
import logging
import sys

from aiohttp import web

from roadwatch.config import RoadWatchConfig
from roadwatch.exceptions import ConfigurationError
from roadwatch.web import create_app

_logger = logging.getLogger("roadwatch")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="roadwatch",
        description="Serve the current open/closed status of one road.",
    )
    parser.add_argument("--host", default="0.0.0.0", help="Interface to listen on")
    parser.add_argument("--port", type=int, default=8080, help="Port to listen on")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = RoadWatchConfig.from_env()
        app = create_app(config)
    except ConfigurationError as exc:
        print(f"roadwatch: configuration error: {exc}", file=sys.stderr)
        return 2

    _logger.info("Listening on port %d", args.port)
    web.run_app(app, host=args.host, port=args.port, print=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
