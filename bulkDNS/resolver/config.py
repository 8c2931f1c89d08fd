"""Run configuration for the bulk resolver."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from bulkDNS.resolver.models import AddressFamily

DEFAULT_CONCURRENCY = 25
DEFAULT_TIMEOUT_MS = 2000
DEFAULT_ATTEMPTS = 2


class ResolutionMode(str, Enum):
    REVERSE = "reverse"
    FORWARD_V4 = "forward_v4"
    FORWARD_V6 = "forward_v6"
    FORWARD_DUAL = "forward_dual"

    @property
    def families(self) -> Tuple[AddressFamily, ...]:
        """Address families queried per item, in output order."""
        if self is ResolutionMode.FORWARD_V4:
            return (AddressFamily.A,)
        if self is ResolutionMode.FORWARD_V6:
            return (AddressFamily.AAAA,)
        if self is ResolutionMode.FORWARD_DUAL:
            return (AddressFamily.A, AddressFamily.AAAA)
        return ()

    @classmethod
    def from_flags(cls, *, reverse: bool, ipv4: bool = False, ipv6: bool = False) -> "ResolutionMode":
        if reverse:
            return cls.REVERSE
        if ipv4 and ipv6:
            return cls.FORWARD_DUAL
        if ipv6:
            return cls.FORWARD_V6
        return cls.FORWARD_V4


class RunConfig(BaseModel):
    mode: ResolutionMode = Field(default=ResolutionMode.FORWARD_V4)
    concurrency: int = Field(default=DEFAULT_CONCURRENCY, ge=1)
    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, ge=1)
    attempts: int = Field(default=DEFAULT_ATTEMPTS, ge=1)
    ordered: bool = Field(default=True)

    model_config = ConfigDict(frozen=True, extra="forbid")

    @classmethod
    def load(cls, path: str, **overrides: Any) -> "RunConfig":
        cfg_path = Path(path)
        if not cfg_path.exists():
            raise FileNotFoundError(f"bulkdns config not found: {cfg_path}")
        try:
            raw = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid bulkdns config: {exc}") from exc
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid bulkdns config: expected a mapping in {cfg_path}")
        return cls.build(raw, **overrides)

    @classmethod
    def build(cls, base: Optional[Dict[str, Any]] = None, **overrides: Any) -> "RunConfig":
        """Merge file values with non-None overrides and validate."""
        merged: Dict[str, Any] = dict(base or {})
        merged.update({k: v for k, v in overrides.items() if v is not None})
        try:
            return cls(**merged)
        except ValidationError as exc:
            raise ValueError(f"Invalid bulkdns config: {exc}") from exc
