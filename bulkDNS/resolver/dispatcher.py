"""Concurrent resolution of query items with bounded parallelism."""
from __future__ import annotations

import asyncio
import ipaddress
import time
from dataclasses import dataclass
from typing import AsyncIterable, List, Optional

from bulkDNS.logging_config import get_logger, reset_current_query, set_current_query
from bulkDNS.resolver import classifier
from bulkDNS.resolver.client import DNSClient
from bulkDNS.resolver.config import ResolutionMode, RunConfig
from bulkDNS.resolver.models import AddressFamily, ItemResult, QueryItem, SubQueryOutcome
from bulkDNS.resolver.sink import LineSink


@dataclass
class RunStats:
    items: int = 0
    succeeded: int = 0
    failed: int = 0
    duration: float = 0.0


class Dispatcher:
    """Resolve a stream of items, at most `concurrency` client calls at a time.

    Two gates of size `concurrency` are used: one around every client
    call, and one around every item between start and emission. The
    second bounds the results held back in ordered mode.
    """

    def __init__(self, client: DNSClient, config: RunConfig) -> None:
        self.client = client
        self.config = config
        self.mode = config.mode
        self.families = config.mode.families
        self._calls: Optional[asyncio.Semaphore] = None
        self.logger = get_logger("dispatcher", context={"mode": config.mode.value})

    def _call_gate(self) -> asyncio.Semaphore:
        if self._calls is None:
            self._calls = asyncio.Semaphore(self.config.concurrency)
        return self._calls

    async def _forward(self, name: str, family: AddressFamily) -> SubQueryOutcome:
        async with self._call_gate():
            return await self.client.forward_lookup(name, family)

    async def _reverse(self, ip: str) -> SubQueryOutcome:
        async with self._call_gate():
            return await self.client.reverse_lookup(ip)

    async def resolve_item(self, item: QueryItem) -> ItemResult:
        """Resolve one item to its single result line."""
        token = set_current_query(item.text)
        try:
            if self.mode is ResolutionMode.REVERSE:
                try:
                    address = ipaddress.ip_address(item.text)
                except ValueError:
                    return classifier.invalid_address(item.text, item.index)
                # zone-scoped IPv6 (fe80::1%eth0) has no PTR name
                if getattr(address, "scope_id", None):
                    return classifier.invalid_address(item.text, item.index)
                outcome = await self._reverse(item.text)
                return classifier.classify_reverse(item.text, outcome, item.index)

            # Sub-queries race independently; classification only sees
            # the outcomes in family order
            outcomes: List[SubQueryOutcome] = await asyncio.gather(
                *(self._forward(item.text, family) for family in self.families)
            )
            return classifier.classify_forward(item.text, self.families, outcomes, item.index)
        finally:
            reset_current_query(token)

    async def _resolve_contained(self, item: QueryItem) -> ItemResult:
        try:
            return await self.resolve_item(item)
        except Exception as exc:
            self.logger.error(
                f"Unexpected error while resolving item: {exc}",
                exc_info=True,
                extra={"query": item.text, "outcome": "error", "error_type": type(exc).__name__}
            )
            return classifier.temporary_error(item.text, item.index)

    def _emit(self, result: ItemResult, sink: LineSink, stats: RunStats) -> None:
        sink.emit(result)
        stats.items += 1
        if result.ok:
            stats.succeeded += 1
        else:
            stats.failed += 1

    async def run(self, items: AsyncIterable[QueryItem], sink: LineSink) -> RunStats:
        """Resolve every item and emit its result according to the ordering mode."""
        stats = RunStats()
        start_time = time.time()
        window = asyncio.Semaphore(self.config.concurrency)
        self._calls = asyncio.Semaphore(self.config.concurrency)

        self.logger.info(
            "Dispatcher starting",
            extra={
                "concurrency": self.config.concurrency,
                "ordered": self.config.ordered,
                "state": "starting",
            }
        )

        try:
            async with asyncio.TaskGroup() as group:
                if self.config.ordered:
                    await self._run_ordered(group, items, sink, stats, window)
                else:
                    await self._run_unordered(group, items, sink, stats, window)
        except ExceptionGroup as eg:
            # Surface the first failure (e.g. a closed output pipe) as-is
            raise eg.exceptions[0]

        stats.duration = round(time.time() - start_time, 3)
        self.logger.info(
            "Dispatcher finished",
            extra={
                "items": stats.items,
                "succeeded": stats.succeeded,
                "failed": stats.failed,
                "duration": stats.duration,
                "state": "finished",
            }
        )
        return stats

    async def _run_ordered(
        self,
        group: asyncio.TaskGroup,
        items: AsyncIterable[QueryItem],
        sink: LineSink,
        stats: RunStats,
        window: asyncio.Semaphore,
    ) -> None:
        pending: asyncio.Queue = asyncio.Queue()

        async def drain() -> None:
            while True:
                task = await pending.get()
                if task is None:
                    return
                self._emit(await task, sink, stats)
                window.release()

        group.create_task(drain())
        try:
            async for item in items:
                await window.acquire()
                pending.put_nowait(group.create_task(self._resolve_contained(item)))
        finally:
            pending.put_nowait(None)

    async def _run_unordered(
        self,
        group: asyncio.TaskGroup,
        items: AsyncIterable[QueryItem],
        sink: LineSink,
        stats: RunStats,
        window: asyncio.Semaphore,
    ) -> None:
        async def finish(item: QueryItem) -> None:
            try:
                self._emit(await self._resolve_contained(item), sink, stats)
            finally:
                window.release()

        async for item in items:
            await window.acquire()
            group.create_task(finish(item))
