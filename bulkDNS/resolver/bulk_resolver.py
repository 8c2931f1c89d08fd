"""Bulk DNS resolver: read names or addresses on stdin, resolve concurrently."""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
from importlib.metadata import PackageNotFoundError, version
from typing import BinaryIO, Optional, Sequence, TextIO

from rich.console import Console
from rich.traceback import install as install_rich_traceback

from bulkDNS.logging_config import get_logger
from bulkDNS.resolver.client import AsyncDNSClient, DNSClient, ResolverConfigurationError
from bulkDNS.resolver.config import (
    DEFAULT_ATTEMPTS,
    DEFAULT_CONCURRENCY,
    DEFAULT_TIMEOUT_MS,
    ResolutionMode,
    RunConfig,
)
from bulkDNS.resolver.dispatcher import Dispatcher, RunStats
from bulkDNS.resolver.sink import LineSink
from bulkDNS.resolver.sources import read_queries

install_rich_traceback()
console = Console(stderr=True)
logger = get_logger("cli")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INTERRUPTED = 130

try:
    __version__ = version("bulkdns")
except PackageNotFoundError:
    __version__ = "0.0.0"


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}")
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer: {value!r}")
    return number


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="bulkdns",
        description="A bulk DNS lookup tool. Reads items from stdin and resolves them concurrently.",
    )
    mode = parser.add_mutually_exclusive_group(required=True)
    mode.add_argument("-r", "--reverse", action="store_true",
                      help="Reverse lookup mode (resolve IP to hostname)")
    mode.add_argument("-a", "--address", action="store_true",
                      help="Address lookup mode (resolve hostname to IP)")
    parser.add_argument("-4", "--ipv4", action="store_true",
                        help="Use IPv4 for address lookups (used with -a)")
    parser.add_argument("-6", "--ipv6", action="store_true",
                        help="Use IPv6 for address lookups (used with -a)")
    parser.add_argument("-c", "--concurrency", type=positive_int, default=None,
                        help=f"Number of simultaneous requests (default: {DEFAULT_CONCURRENCY})")
    parser.add_argument("-t", "--timeout", type=positive_int, default=None,
                        help=f"Timeout in milliseconds for each query attempt (default: {DEFAULT_TIMEOUT_MS})")
    parser.add_argument("--attempts", type=positive_int, default=None,
                        help=f"Number of attempts before giving up (default: {DEFAULT_ATTEMPTS}). "
                             "Total timeout is about timeout * attempts * nameservers.")
    parser.add_argument("-u", "--unordered", action="store_true",
                        help="Output results as soon as they are ready instead of in input order")
    parser.add_argument("--config", default=None,
                        help="Path to an optional YAML config file (env: BULKDNS_CONFIG)")
    parser.add_argument("-V", "--version", action="version", version=f"bulkdns {__version__}")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> RunConfig:
    """Merge the optional config file with command-line flags."""
    overrides = dict(
        mode=ResolutionMode.from_flags(reverse=args.reverse, ipv4=args.ipv4, ipv6=args.ipv6),
        concurrency=args.concurrency,
        timeout_ms=args.timeout,
        attempts=args.attempts,
        ordered=False if args.unordered else None,
    )
    if args.config:
        return RunConfig.load(args.config, **overrides)
    env_path = os.getenv("BULKDNS_CONFIG")
    if env_path:
        if os.path.exists(env_path):
            return RunConfig.load(env_path, **overrides)
        logger.warning("BULKDNS_CONFIG path not found, using defaults", extra={"state": "defaults"})
    return RunConfig.build(**overrides)


async def run_bulk(
    config: RunConfig,
    stream_in: BinaryIO,
    stream_out: TextIO,
    client: Optional[DNSClient] = None,
) -> RunStats:
    if client is None:
        client = AsyncDNSClient(timeout_ms=config.timeout_ms, attempts=config.attempts)
    dispatcher = Dispatcher(client, config)
    return await dispatcher.run(read_queries(stream_in), LineSink(stream_out))


async def main_async(config: RunConfig) -> RunStats:
    return await run_bulk(config, sys.stdin.buffer, sys.stdout)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    try:
        config = build_config(args)
    except (FileNotFoundError, ValueError) as exc:
        logger.error(f"Invalid configuration: {exc}", extra={"outcome": "error", "error_type": type(exc).__name__})
        console.print(f"[red]Configuration error:[/red] {exc}", highlight=False)
        return EXIT_FATAL

    try:
        asyncio.run(main_async(config))
    except ResolverConfigurationError as exc:
        logger.error(str(exc), exc_info=True, extra={"outcome": "error", "error_type": type(exc).__name__})
        console.print(f"[red]{exc}[/red]", highlight=False)
        return EXIT_FATAL
    except KeyboardInterrupt:
        logger.info("Interrupted by user", extra={"state": "interrupted"})
        return EXIT_INTERRUPTED
    except BrokenPipeError:
        # Downstream closed (e.g. piped into `head`); silence the flush at exit
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        return EXIT_OK
    return EXIT_OK


def cli() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    cli()
