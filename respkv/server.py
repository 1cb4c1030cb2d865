#!/usr/bin/env python3
"""
RESP-KV Server Entry Point

This is the main entry point for starting the RESP-KV server.

Usage:
    python -m respkv.server                    # Default settings (127.0.0.1:6379)
    python -m respkv.server --port 6380        # Custom port
    python -m respkv.server --host 0.0.0.0     # Custom host
    python -m respkv.server --mode threaded    # Thread-per-connection server
    python -m respkv.server --strict           # Error replies for bad commands
    python -m respkv.server --debug            # Enable debug logging

Environment Variables:
    RESP_KV_HOST       - Server bind address
    RESP_KV_PORT       - Server port
    RESP_KV_MODE       - asyncio or threaded
    RESP_KV_STRICT     - Error replies for bad commands (true/false)
    RESP_KV_DEBUG      - Enable debug mode (true/false)
    RESP_KV_LOG_LEVEL  - Log level when not in debug mode
"""

import argparse
import asyncio
import logging
import signal
import sys

from .cache.store import KVStore
from .config.settings import settings
from .network.tcp_server import KVServer
from .network.threaded_server import run_threaded_server

MODES = ("asyncio", "threaded")


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="RESP-KV: In-Memory Key-Value Store Server",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help="Host address to bind to",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help="Port number to listen on",
    )

    parser.add_argument(
        "--mode",
        choices=MODES,
        default=settings.MODE if settings.MODE in MODES else "asyncio",
        help="Connection handling model",
    )

    parser.add_argument(
        "--strict",
        action="store_true",
        default=settings.STRICT_ERRORS,
        help="Reply with -ERR to unknown or invalid commands",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def run_asyncio(args: argparse.Namespace, store: KVStore) -> None:
    """Run the asyncio server until a signal or keyboard interrupt."""
    logger = logging.getLogger(__name__)
    server = KVServer(host=args.host, port=args.port, store=store, strict_errors=args.strict)

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)

    async def shutdown(sig: signal.Signals) -> None:
        """Handle shutdown signal."""
        logger.info(f"Received signal {sig.name}, initiating shutdown...")
        await server.stop()

    # Register signal handlers (Unix only)
    if sys.platform != 'win32':
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(
                sig,
                lambda s=sig: asyncio.create_task(shutdown(s))
            )

    try:
        loop.run_until_complete(server.start())
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        loop.run_until_complete(server.stop())
    finally:
        loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()


def main(argv=None) -> None:
    """Main entry point for the server."""
    args = parse_args(argv)

    setup_logging(debug=args.debug)
    logger = logging.getLogger(__name__)

    # Single store for the whole process, shared by every connection
    store = KVStore()

    logger.info("Starting RESP-KV server")
    logger.info(f"  Host: {args.host}")
    logger.info(f"  Port: {args.port}")
    logger.info(f"  Mode: {args.mode}")
    logger.info(f"  Strict errors: {args.strict}")

    try:
        if args.mode == "threaded":
            run_threaded_server(host=args.host, port=args.port, store=store, strict_errors=args.strict)
        else:
            run_asyncio(args, store)
    except Exception as e:
        logger.error(f"Server error: {e}")
        raise
    finally:
        logger.info("Server shutdown complete")


if __name__ == "__main__":
    main()
