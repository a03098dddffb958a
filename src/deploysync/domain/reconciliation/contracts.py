"""Shared reconciliation contract components.

This module holds:
- the ledger facts rebuilt from event history
- the tagged ``Discrepancy`` variant passed to outcome sinks
- proxy resolution outcomes produced before per-proxy checks
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Final, Literal

ZERO_ADDRESS: Final[str] = "0x0000000000000000000000000000000000000000"
NONE: Final[str] = "none"

IMPLEMENTATION_CHANGED_EVENT: Final[str] = "ImplementationChanged"
PROXY_CREATED_EVENT: Final[str] = "ProxyCreated"


def is_zero_address(address: str | None) -> bool:
    return address is not None and address.lower() == ZERO_ADDRESS


def normalize_optional_address(address: str | None) -> str:
    """Map both an absent address and the zero sentinel to ``"none"``."""

    if not address or is_zero_address(address):
        return NONE
    return address


@dataclass(slots=True, frozen=True)
class ImplementationRegistration:
    """Implementation currently registered under ``alias`` on the provider."""

    alias: str
    address: str


@dataclass(slots=True, frozen=True)
class ProxyInstance:
    """Proxy on the ledger whose implementation resolved to exactly one alias."""

    alias: str
    address: str
    implementation: str


class DiscrepancyKind(StrEnum):
    """Every way the network file can disagree with the ledger."""

    MISMATCHING_VERSION = "mismatching_version"
    MISMATCHING_PACKAGE = "mismatching_package"
    MISMATCHING_PROVIDER = "mismatching_provider"
    MISMATCHING_STDLIB = "mismatching_stdlib"
    UNKNOWN_REMOTE_CONTRACT = "unknown_remote_contract"
    MISMATCHING_CONTRACT_ADDRESS = "mismatching_contract_address"
    MISMATCHING_CONTRACT_BYTECODE = "mismatching_contract_bytecode"
    UNREGISTERED_LOCAL_CONTRACT = "unregistered_local_contract"
    MISSING_REMOTE_PROXY = "missing_remote_proxy"
    MISMATCHING_PROXY_ALIAS = "mismatching_proxy_alias"
    MISMATCHING_PROXY_IMPLEMENTATION = "mismatching_proxy_implementation"
    UNREGISTERED_LOCAL_PROXY = "unregistered_local_proxy"
    MULTIPLE_PROXY_IMPLEMENTATIONS = "multiple_proxy_implementations"
    UNREGISTERED_PROXY_IMPLEMENTATION = "unregistered_proxy_implementation"


@dataclass(slots=True, frozen=True)
class Discrepancy:
    """One detected difference between local and ledger state."""

    kind: DiscrepancyKind
    expected: object
    observed: object
    metadata: Mapping[str, object] = field(default_factory=dict[str, object])

    def get(self, key: str) -> object | None:
        return self.metadata.get(key)


class ProxyResolutionStatus(StrEnum):
    """How a proxy's current implementation matched the registered implementations."""

    RESOLVED = "resolved"
    UNREGISTERED = "unregistered"
    AMBIGUOUS = "ambiguous"


@dataclass(slots=True, frozen=True, kw_only=True)
class ResolvedProxy:
    """Implementation matched exactly one registered alias."""

    instance: ProxyInstance
    status: Literal[ProxyResolutionStatus.RESOLVED] = ProxyResolutionStatus.RESOLVED

    @property
    def address(self) -> str:
        return self.instance.address


@dataclass(slots=True, frozen=True, kw_only=True)
class UnregisteredProxy:
    """Implementation is not registered under any alias."""

    address: str
    implementation: str
    status: Literal[ProxyResolutionStatus.UNREGISTERED] = ProxyResolutionStatus.UNREGISTERED


@dataclass(slots=True, frozen=True, kw_only=True)
class AmbiguousProxy:
    """Implementation is registered under more than one alias."""

    address: str
    implementation: str
    aliases: tuple[str, ...]
    status: Literal[ProxyResolutionStatus.AMBIGUOUS] = ProxyResolutionStatus.AMBIGUOUS

    def __post_init__(self) -> None:
        if len(self.aliases) < 2:  # noqa: PLR2004
            raise ValueError("Ambiguous proxy resolution must include at least two aliases")


type ProxyResolution = ResolvedProxy | UnregisteredProxy | AmbiguousProxy
