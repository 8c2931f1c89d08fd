"""DNSBL check: look up an IPv4 address against the zones listed in an rc file.

The rc file holds one directive per line; `-s <zone>` adds a blocklist
zone, anything else is ignored:

    -s zen.spamhaus.org
    -s bl.spamcop.net

Each zone is queried as `<reversed-ip>.<zone>` in A mode, so a listed
address prints `<name>=127.0.0.x` and an unlisted one `<name>:NXDOMAIN`.
"""
from __future__ import annotations

import argparse
import asyncio
import os
import sys
from pathlib import Path
from typing import AsyncIterator, Iterable, Iterator, List, Optional, Sequence, TextIO

from rich.console import Console

from bulkDNS.logging_config import get_logger
from bulkDNS.resolver.bulk_resolver import EXIT_FATAL, EXIT_INTERRUPTED, EXIT_OK, positive_int
from bulkDNS.resolver.client import AsyncDNSClient, DNSClient, ResolverConfigurationError
from bulkDNS.resolver.config import ResolutionMode, RunConfig
from bulkDNS.resolver.dispatcher import Dispatcher, RunStats
from bulkDNS.resolver.models import QueryItem
from bulkDNS.resolver.sink import LineSink

console = Console(stderr=True)
logger = get_logger("rbl")

DEFAULT_RC_FILE = "rblcheckrc"
ZONE_DIRECTIVE = "-s"


class RBLInputError(ValueError):
    """Invalid address or missing rc file."""


def reverse_ipv4(text: str) -> str:
    octets = text.split(".")
    if len(octets) != 4:
        raise RBLInputError("invalid IPv4 address")
    for octet in octets:
        if not octet.isascii() or not octet.isdigit():
            raise RBLInputError(f'error: octet "{octet}" contains non-numeric characters')
        if int(octet, 10) > 255:
            raise RBLInputError(f'error: octet "{octet}" out of range')
    return ".".join(reversed(octets))


def parse_zones(lines: Iterable[str]) -> List[str]:
    zones: List[str] = []
    for line in lines:
        parts = line.split(None, 1)
        if len(parts) == 2 and parts[0] == ZONE_DIRECTIVE:
            zones.append(parts[1].strip())
    return zones


def load_zones(path: str) -> List[str]:
    rc_path = Path(path)
    if not rc_path.is_file():
        raise RBLInputError(f'file "{path}" does not exist')
    return parse_zones(rc_path.read_text(encoding="utf-8").splitlines())


def build_queries(ip: str, zones: Iterable[str]) -> Iterator[str]:
    reversed_ip = reverse_ipv4(ip)
    for zone in zones:
        yield f"{reversed_ip}.{zone}"


async def _items(names: Iterable[str]) -> AsyncIterator[QueryItem]:
    for index, name in enumerate(names):
        yield QueryItem(text=name, index=index)


async def run_rblcheck(
    ip: str,
    zones: Sequence[str],
    config: RunConfig,
    stream_out: Optional[TextIO] = None,
    client: Optional[DNSClient] = None,
) -> RunStats:
    names = list(build_queries(ip, zones))
    if client is None:
        client = AsyncDNSClient(timeout_ms=config.timeout_ms, attempts=config.attempts)
    logger.info("Checking blocklists", extra={"items": len(names), "state": "starting"})
    dispatcher = Dispatcher(client, config)
    return await dispatcher.run(_items(names), LineSink(stream_out))


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="bulkdns-rbl",
        description="Check an IPv4 address against the DNS blocklists listed in an rc file",
    )
    parser.add_argument("ip", nargs="?", help="IPv4 address to check")
    parser.add_argument("--rc", default=os.getenv("BULKDNS_RBLRC", DEFAULT_RC_FILE),
                        help=f"Path to the rc file (default: {DEFAULT_RC_FILE}, env: BULKDNS_RBLRC)")
    parser.add_argument("-c", "--concurrency", type=positive_int, default=None)
    parser.add_argument("-t", "--timeout", type=positive_int, default=None,
                        help="Timeout in milliseconds for each query attempt")
    parser.add_argument("--attempts", type=positive_int, default=None)
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    if not args.ip:
        print("missing parameter")
        return EXIT_FATAL

    try:
        reverse_ipv4(args.ip)
        zones = load_zones(args.rc)
    except RBLInputError as exc:
        print(exc)
        return EXIT_FATAL

    config = RunConfig.build(
        mode=ResolutionMode.FORWARD_V4,
        concurrency=args.concurrency,
        timeout_ms=args.timeout,
        attempts=args.attempts,
    )
    try:
        asyncio.run(run_rblcheck(args.ip, zones, config, sys.stdout))
    except ResolverConfigurationError as exc:
        logger.error(str(exc), exc_info=True, extra={"outcome": "error"})
        console.print(f"[red]{exc}[/red]", highlight=False)
        return EXIT_FATAL
    except KeyboardInterrupt:
        return EXIT_INTERRUPTED
    return EXIT_OK


def cli() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    cli()
