"""
Command line entry point.

Usage:
    cosmos-accelerator version
    cosmos-accelerator start [-p PORT] [-s SERVER] [-i MS] [-l LEVEL]
"""

import argparse
import logging
import sys
from typing import Optional, Sequence

import uvicorn
from pydantic import ValidationError

from accelerator import __version__
from accelerator.models import ServerOptions
from accelerator.vars import (
    HEIGHT_CHECK_INTERVAL_MS,
    LOG_LEVEL,
    PROXY_TIMEOUT,
    RPC_SERVER,
    SERVER_PORT,
)

logger = logging.getLogger("uvicorn.error")

LOG_LEVELS = ["trace", "debug", "info", "warning", "error"]


def parse_args(argv: Optional[Sequence[str]] = None):
    parser = argparse.ArgumentParser(
        prog="cosmos-accelerator", description="Cosmos Accelerator"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("version", help="Print the version of the CLI and server")

    start = commands.add_parser("start", help="Start the caching proxy")
    start.add_argument(
        "-p", "--port", default=SERVER_PORT, help="Port to listen on (env: SERVER_PORT)"
    )
    start.add_argument(
        "-s",
        "--server",
        default=RPC_SERVER,
        help="Server to proxy to (env: RPC_SERVER)",
    )
    start.add_argument(
        "-i",
        "--height-check-interval",
        default=HEIGHT_CHECK_INTERVAL_MS,
        help="Interval to check the height of the server in milliseconds",
    )
    start.add_argument(
        "-l", "--log-level", default=LOG_LEVEL, help=f"One of {', '.join(LOG_LEVELS)}"
    )
    return parser.parse_args(argv)


def build_options(args) -> ServerOptions:
    return ServerOptions(
        server=args.server,
        port=args.port,
        height_check_interval_ms=args.height_check_interval,
        proxy_timeout=PROXY_TIMEOUT,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)

    if args.command == "version":
        print(f"Cosmos Accelerator v{__version__}")
        return 0

    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s %(message)s")

    log_level = args.log_level.lower()
    if log_level not in LOG_LEVELS:
        logger.error(f"Invalid log level: {args.log_level}")
        return 1

    try:
        options = build_options(args)
    except ValidationError as e:
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            logger.error(f"Invalid {field}: {error['msg']}")
        return 1

    # Imported late so tracing is only configured for a running server
    from accelerator.server import create_app

    logger.info(f"Cosmos Accelerator v{__version__}")
    try:
        uvicorn.run(
            create_app(options),
            host="0.0.0.0",
            port=options.port,
            log_level=log_level,
        )
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
