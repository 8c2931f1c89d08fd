"""DNS client used by the dispatcher (dnspython async resolver)."""
from __future__ import annotations

import time
from typing import List, Optional, Protocol

import dns.asyncresolver
import dns.exception
import dns.resolver

from bulkDNS.logging_config import get_logger
from bulkDNS.resolver.models import AddressFamily, FailureCause, SubQueryOutcome

logger = get_logger("client")


class ResolverConfigurationError(RuntimeError):
    """System DNS configuration could not be read."""


class DNSClient(Protocol):
    async def forward_lookup(self, name: str, family: AddressFamily) -> SubQueryOutcome:
        ...

    async def reverse_lookup(self, ip: str) -> SubQueryOutcome:
        ...


def classify_exception(exc: BaseException) -> FailureCause:
    """Collapse a dnspython (or socket) error into a FailureCause."""
    if isinstance(exc, dns.resolver.NXDOMAIN):
        return FailureCause.NAME_DOES_NOT_EXIST
    if isinstance(exc, dns.resolver.NoAnswer):
        return FailureCause.NO_DATA
    # LifetimeTimeout derives from dns.exception.Timeout
    if isinstance(exc, dns.exception.Timeout):
        return FailureCause.TIMEOUT
    if isinstance(exc, dns.resolver.NoNameservers):
        return FailureCause.SERVER_FAILURE
    return FailureCause.OTHER


class AsyncDNSClient:
    """Forward and reverse lookups over system-configured nameservers."""

    def __init__(
        self,
        timeout_ms: int,
        attempts: int,
        resolver: Optional[dns.asyncresolver.Resolver] = None,
    ) -> None:
        if resolver is None:
            try:
                resolver = dns.asyncresolver.Resolver()
            except (dns.resolver.NoResolverConfiguration, OSError) as exc:
                raise ResolverConfigurationError(
                    f"Unable to read system DNS configuration: {exc}"
                ) from exc
        self.resolver = resolver

        # dnspython has no attempt count; bound the whole query by
        # timeout * attempts * nameservers and retry each server per timeout
        timeout = timeout_ms / 1000.0
        server_count = max(1, len(resolver.nameservers))
        resolver.timeout = timeout
        resolver.lifetime = timeout * attempts * server_count
        resolver.retry_servfail = False
        resolver.cache = None

        logger.info(
            "DNS client configured",
            extra={
                "nameservers": [str(ns) for ns in resolver.nameservers],
                "timeout_ms": timeout_ms,
                "attempts": attempts,
            }
        )

    async def forward_lookup(self, name: str, family: AddressFamily) -> SubQueryOutcome:
        start_time = time.time()
        try:
            answers = await self.resolver.resolve(name, family.value)
        except (dns.exception.DNSException, OSError) as exc:
            cause = classify_exception(exc)
            logger.debug(
                f"Forward lookup failed: {exc}",
                extra={
                    "family": family.value,
                    "cause": cause.value,
                    "error_type": type(exc).__name__,
                    "duration": round((time.time() - start_time) * 1000, 2),
                    "outcome": "error",
                }
            )
            return SubQueryOutcome.failure(cause)

        values: List[str] = [rdata.address for rdata in answers]
        logger.debug(
            "Forward lookup completed",
            extra={
                "family": family.value,
                "duration": round((time.time() - start_time) * 1000, 2),
                "outcome": "success",
            }
        )
        return SubQueryOutcome.success(values)

    async def reverse_lookup(self, ip: str) -> SubQueryOutcome:
        start_time = time.time()
        try:
            answers = await self.resolver.resolve_address(ip)
        except (dns.exception.DNSException, OSError) as exc:
            cause = classify_exception(exc)
            logger.debug(
                f"Reverse lookup failed: {exc}",
                extra={
                    "cause": cause.value,
                    "error_type": type(exc).__name__,
                    "duration": round((time.time() - start_time) * 1000, 2),
                    "outcome": "error",
                }
            )
            return SubQueryOutcome.failure(cause)

        names = [rdata.target.to_text(omit_final_dot=True) for rdata in answers]
        logger.debug(
            "Reverse lookup completed",
            extra={
                "duration": round((time.time() - start_time) * 1000, 2),
                "outcome": "success",
            }
        )
        return SubQueryOutcome.success(names)
