"""Ledger (JSON-RPC node) configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float_env_var, require_env_vars
from .errors import ConfigurationError
from .http_resilience import NO_RETRY, RateLimit, ResilienceConfig

LEDGER_TIMEOUT_SECONDS = 30.0
LEDGER_MAX_CALLS_PER_SECOND = 10.0


@dataclass(frozen=True, slots=True)
class LedgerConfig:
    """Holds the JSON-RPC endpoint and HTTP behaviour used for ledger reads."""

    rpc_url: str
    resilience: ResilienceConfig


def rate_limit_for(calls_per_second: float) -> RateLimit:
    """Express a calls-per-second budget as a limiter window holding whole calls."""

    if calls_per_second <= 0:
        raise ConfigurationError(
            f"DEPLOYSYNC_RPC_MAX_CALLS_PER_SECOND must be positive, got {calls_per_second}"
        )
    if calls_per_second < 1:
        return RateLimit(max_calls=1, per_seconds=1 / calls_per_second)
    return RateLimit(max_calls=calls_per_second, per_seconds=1.0)


def get_ledger_config(*, resilience: ResilienceConfig | None = None) -> LedgerConfig:
    values = require_env_vars(("DEPLOYSYNC_RPC_URL",))
    rpc_url = values["DEPLOYSYNC_RPC_URL"].strip()
    max_calls = optional_float_env_var(
        "DEPLOYSYNC_RPC_MAX_CALLS_PER_SECOND", LEDGER_MAX_CALLS_PER_SECOND
    )
    timeout = optional_float_env_var("DEPLOYSYNC_RPC_TIMEOUT_SECONDS", LEDGER_TIMEOUT_SECONDS)
    return LedgerConfig(
        rpc_url=rpc_url,
        resilience=resilience
        or ResilienceConfig(
            name="ledger",
            base_url=rpc_url,
            timeout_seconds=timeout,
            retry=NO_RETRY,
            ratelimit=rate_limit_for(max_calls),
            default_headers={"Content-Type": "application/json"},
        ),
    )
