"""Data models for the resolution pipeline."""
from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

SUCCESS_SEPARATOR = "="
FAILURE_SEPARATOR = ":"


class AddressFamily(str, Enum):
    """Address record type queried in forward mode."""
    A = "A"
    AAAA = "AAAA"


class FailureCause(str, Enum):
    """Resolver-level failure, as surfaced by a DNS client."""
    NAME_DOES_NOT_EXIST = "NameDoesNotExist"
    NO_DATA = "NoDataOfRequestedType"
    TIMEOUT = "Timeout"
    SERVER_FAILURE = "ServerFailure"
    OTHER = "Other"


class QueryItem(BaseModel):
    """One accepted input line."""
    text: str = Field(min_length=1)
    index: int = Field(default=0, ge=0)

    model_config = ConfigDict(frozen=True)


class SubQueryOutcome(BaseModel):
    """Result of a single forward or reverse client call."""
    values: List[str] = Field(default_factory=list)
    cause: Optional[FailureCause] = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def success(cls, values: List[str]) -> "SubQueryOutcome":
        # An empty answer is NODATA, never a success
        if not values:
            return cls(cause=FailureCause.NO_DATA)
        return cls(values=list(values))

    @classmethod
    def failure(cls, cause: FailureCause) -> "SubQueryOutcome":
        return cls(cause=cause)

    @property
    def ok(self) -> bool:
        return self.cause is None and bool(self.values)


class ItemResult(BaseModel):
    """Final classified result for one QueryItem."""
    query: str
    ok: bool
    detail: str
    index: int = 0

    model_config = ConfigDict(frozen=True)

    @property
    def line(self) -> str:
        separator = SUCCESS_SEPARATOR if self.ok else FAILURE_SEPARATOR
        return f"{self.query}{separator}{self.detail}"
