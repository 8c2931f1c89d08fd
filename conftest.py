"""Shared fixtures: a deterministic in-memory DNS client."""
from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Tuple, Union

import pytest

from bulkDNS.resolver.models import AddressFamily, FailureCause, SubQueryOutcome

Answer = Union[List[str], FailureCause]


def _outcome(answer: Optional[Answer]) -> SubQueryOutcome:
    if answer is None:
        return SubQueryOutcome.failure(FailureCause.NAME_DOES_NOT_EXIST)
    if isinstance(answer, FailureCause):
        return SubQueryOutcome.failure(answer)
    return SubQueryOutcome.success(answer)


class StubClient:
    """Answers from fixed tables; unknown names are NXDOMAIN."""

    def __init__(
        self,
        forward: Optional[Dict[Tuple[str, AddressFamily], Answer]] = None,
        reverse: Optional[Dict[str, Answer]] = None,
        delays: Optional[Dict[str, float]] = None,
    ) -> None:
        self.forward = forward or {}
        self.reverse = reverse or {}
        self.delays = delays or {}
        self.calls: List[Tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def _wait(self, name: str) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(name, 0))
        finally:
            self.in_flight -= 1

    async def forward_lookup(self, name: str, family: AddressFamily) -> SubQueryOutcome:
        self.calls.append((name, family.value))
        await self._wait(name)
        return _outcome(self.forward.get((name, family)))

    async def reverse_lookup(self, ip: str) -> SubQueryOutcome:
        self.calls.append((ip, "PTR"))
        await self._wait(ip)
        return _outcome(self.reverse.get(ip))


@pytest.fixture
def stub_client():
    return StubClient
