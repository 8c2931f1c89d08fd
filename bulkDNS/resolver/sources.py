"""Query line source (stdin or any binary stream)."""
from __future__ import annotations

import asyncio
import concurrent.futures
import threading
from typing import AsyncIterator, BinaryIO, Optional, Union

from bulkDNS.logging_config import get_logger
from bulkDNS.resolver.models import QueryItem

logger = get_logger("source")

COMMENT_PREFIX = "#"


def parse_line(raw: bytes) -> Optional[str]:
    """Decode and filter one raw line; None when it must be skipped."""
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        logger.debug("Skipping line that is not valid UTF-8", extra={"outcome": "skipped"})
        return None
    text = text.strip()
    if not text or text.startswith(COMMENT_PREFIX):
        return None
    return text


def _pump_lines(
    stream: BinaryIO,
    loop: asyncio.AbstractEventLoop,
    lines: asyncio.Queue,
    stop: threading.Event,
) -> None:
    """Reader thread: hand raw lines to the loop one at a time until EOF."""
    while not stop.is_set():
        raw: Union[bytes, OSError]
        try:
            raw = stream.readline()
        except OSError as exc:
            raw = exc
        try:
            asyncio.run_coroutine_threadsafe(lines.put(raw), loop).result()
        except (RuntimeError, concurrent.futures.CancelledError):
            # loop closed or shutting down
            return
        if not isinstance(raw, bytes) or not raw:
            return


async def read_queries(stream: BinaryIO) -> AsyncIterator[QueryItem]:
    """Yield accepted query lines from a binary stream until EOF.

    Blocking reads happen in a daemon thread that holds at most one line
    ahead, so a reader stuck on an open stdin never delays shutdown.
    """
    loop = asyncio.get_running_loop()
    lines: asyncio.Queue = asyncio.Queue(maxsize=1)
    stop = threading.Event()
    reader = threading.Thread(
        target=_pump_lines,
        args=(stream, loop, lines, stop),
        name="bulkdns-input",
        daemon=True,
    )
    reader.start()

    index = 0
    raw_count = 0
    try:
        while True:
            raw = await lines.get()
            if isinstance(raw, OSError):
                raise raw
            if not raw:
                break
            raw_count += 1
            text = parse_line(raw)
            if text is None:
                continue
            yield QueryItem(text=text, index=index)
            index += 1
    finally:
        stop.set()
        # unblock a pending put so the thread can see the stop flag
        while not lines.empty():
            lines.get_nowait()

    logger.debug(
        "Input exhausted",
        extra={"items": index, "state": "eof", "raw_lines": raw_count}
    )
