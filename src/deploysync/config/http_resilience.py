"""Configuration types for resilient HTTP clients."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    total: int = 0
    backoff_factor: float = 0.0
    allowed_methods: frozenset[str] = frozenset({"POST"})


# ledger errors must surface to the caller unmasked
NO_RETRY = RetryPolicy()


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: float
    per_seconds: float


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = NO_RETRY
    ratelimit: RateLimit | None = None
    default_headers: Mapping[str, str] | None = None
