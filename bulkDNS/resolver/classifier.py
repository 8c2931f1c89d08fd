"""Reduce sub-query outcomes into one result line per input item.

Priority when no sub-query succeeded:

    NXDOMAIN  >  Temporary error  >  No <type> records found

Any successful sub-query wins outright: its values are reported and the
failures of its siblings are discarded. Classification depends only on
the set of outcomes in family order, never on completion order.
"""
from __future__ import annotations

from typing import List, Sequence

from bulkDNS.resolver.models import AddressFamily, FailureCause, ItemResult, SubQueryOutcome

NXDOMAIN = "NXDOMAIN"
TEMPORARY_ERROR = "Temporary error"
NO_RECORDS = "No records found"
INVALID_ADDRESS = "Invalid IP address format"

TRANSIENT_CAUSES = frozenset({
    FailureCause.TIMEOUT,
    FailureCause.SERVER_FAILURE,
    FailureCause.OTHER,
})


def no_records_message(families: Sequence[AddressFamily]) -> str:
    """Family-specific wording for one family, generic otherwise."""
    if len(families) == 1:
        return f"No {families[0].value} records found"
    return NO_RECORDS


def _failure(query: str, message: str, index: int) -> ItemResult:
    return ItemResult(query=query, ok=False, detail=message, index=index)


def classify_forward(
    query: str,
    families: Sequence[AddressFamily],
    outcomes: Sequence[SubQueryOutcome],
    index: int = 0,
) -> ItemResult:
    """Combine per-family outcomes (same order as `families`)."""
    values: List[str] = []
    for outcome in outcomes:
        if outcome.ok:
            values.extend(outcome.values)
    if values:
        return ItemResult(query=query, ok=True, detail=",".join(values), index=index)

    causes = {outcome.cause for outcome in outcomes if outcome.cause is not None}
    if not causes:
        return _failure(query, NO_RECORDS, index)
    if FailureCause.NAME_DOES_NOT_EXIST in causes:
        return _failure(query, NXDOMAIN, index)
    if causes & TRANSIENT_CAUSES:
        return _failure(query, TEMPORARY_ERROR, index)
    return _failure(query, no_records_message(families), index)


def classify_reverse(query: str, outcome: SubQueryOutcome, index: int = 0) -> ItemResult:
    if outcome.ok:
        # first PTR wins
        return ItemResult(query=query, ok=True, detail=outcome.values[0], index=index)
    if outcome.cause is FailureCause.NAME_DOES_NOT_EXIST:
        return _failure(query, NXDOMAIN, index)
    if outcome.cause in TRANSIENT_CAUSES:
        return _failure(query, TEMPORARY_ERROR, index)
    return _failure(query, NO_RECORDS, index)


def invalid_address(query: str, index: int = 0) -> ItemResult:
    return _failure(query, INVALID_ADDRESS, index)


def temporary_error(query: str, index: int = 0) -> ItemResult:
    return _failure(query, TEMPORARY_ERROR, index)
