"""Command-line interface for idlesync."""

import argparse
import asyncio
import logging
import logging.handlers
import os
import socket
import sys
from pathlib import Path

from pydantic import ValidationError

from idlesync.config import (
    API_HOST,
    API_PORT,
    APP_NAME,
    DEFAULT_IDLE_TIMEOUT,
    SYNC_PORT,
    IdleSyncConfig,
)
from idlesync.display import create_backend
from idlesync.errors import StartupFailure
from idlesync.sync.service import IdleSyncService

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_SYSLOG_SOCKETS = ("/dev/log", "/var/run/syslog")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Synchronize display idle time between computers on a LAN",
    )
    parser.add_argument(
        "-f",
        "--foreground",
        action="store_true",
        help="Stay in the foreground and log to stderr (default: daemonize, log to syslog)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every report sent and received",
    )
    parser.add_argument(
        "-t",
        "--timeout",
        type=int,
        default=DEFAULT_IDLE_TIMEOUT,
        help=f"Idle timeout and report interval in seconds (default: {DEFAULT_IDLE_TIMEOUT})",
    )
    parser.add_argument(
        "-g",
        "--get-idle",
        action="store_true",
        help="Print the current idle time in seconds and exit",
    )
    parser.add_argument(
        "-s",
        "--server",
        default=None,
        help="Hub address; runs this machine as a satellite (default: run as hub)",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=SYNC_PORT,
        help=f"UDP sync port shared by all peers (default: {SYNC_PORT})",
    )
    parser.add_argument(
        "--api-host",
        default=API_HOST,
        help=f"Status API bind address (default: {API_HOST})",
    )
    parser.add_argument(
        "--api-port",
        type=int,
        default=API_PORT,
        help=f"Status API port (default: {API_PORT})",
    )
    parser.add_argument(
        "--no-api",
        action="store_true",
        help="Do not serve the status API",
    )
    return parser


def resolve_hub(host: str) -> str:
    """Turn a host name or dotted quad into an IPv4 address string."""
    try:
        return socket.gethostbyname(host)
    except OSError as e:
        raise StartupFailure(f"Cannot resolve hub address {host!r}: {e}") from e


def config_from_args(args: argparse.Namespace) -> IdleSyncConfig:
    hub = resolve_hub(args.server) if args.server else None
    return IdleSyncConfig.create(
        hub_address=hub,
        idle_timeout=args.timeout,
        verbose=args.verbose,
        foreground=args.foreground,
        sync_port=args.port,
        api_enabled=not args.no_api,
        api_host=args.api_host,
        api_port=args.api_port,
    )


def setup_logging(verbose: bool, foreground: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    if foreground:
        logging.basicConfig(level=level, format=LOG_FORMAT)
        return

    address = next((path for path in _SYSLOG_SOCKETS if Path(path).exists()), ("localhost", 514))
    handler = logging.handlers.SysLogHandler(
        address=address,
        facility=logging.handlers.SysLogHandler.LOG_DAEMON,
    )
    handler.setFormatter(logging.Formatter(f"{APP_NAME}[%(process)d]: %(name)s: %(message)s"))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level)


def daemonize() -> None:
    """Detach from the terminal with the classic double fork."""
    try:
        if os.fork() > 0:
            os._exit(0)
        os.setsid()
        if os.fork() > 0:
            os._exit(0)
    except (AttributeError, OSError) as e:
        raise StartupFailure(f"Daemonizing failed: {e}") from e

    os.chdir("/")
    devnull = os.open(os.devnull, os.O_RDWR)
    for fd in (0, 1, 2):
        os.dup2(devnull, fd)
    os.close(devnull)


def run(config: IdleSyncConfig) -> None:
    """Start the service and block until the process is stopped."""
    service = IdleSyncService(config, create_backend())

    if not config.api_enabled:
        asyncio.run(service.serve_forever())
        return

    import uvicorn

    from idlesync.main import create_app

    uvicorn.run(
        create_app(service),
        host=config.api_host,
        port=config.api_port,
        log_config=None,
        log_level="debug" if config.verbose else "info",
    )


def main(argv: list[str] | None = None) -> None:
    """Entry point for the idlesync CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.get_idle:
        try:
            print(create_backend().idle_seconds())
        except (StartupFailure, OSError) as e:
            print(f"{APP_NAME}: {e}", file=sys.stderr)
            sys.exit(1)
        sys.exit(0)

    try:
        config = config_from_args(args)
    except (StartupFailure, ValidationError) as e:
        parser.error(str(e))

    setup_logging(config.verbose, config.foreground)

    try:
        if not config.foreground:
            daemonize()
        run(config)
    except StartupFailure as e:
        logger.error(f"Startup failed: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        pass
