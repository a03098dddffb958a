"""Ports for reading deployment state from the ledger.

Every read is a coroutine: ledger nodes are remote and reads may suspend for
network latency. Adapters raise :class:`~deploysync.domain.errors.LedgerReadError`
when a read fails; nothing at this boundary retries.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from deploysync.domain.descriptor import NetworkDescriptor


@dataclass(slots=True, frozen=True)
class ContractHandle:
    """Address of an on-chain contract plus a label used in logs."""

    address: str
    name: str = "contract"


@dataclass(slots=True, frozen=True)
class LogEntry:
    """One decoded event log entry."""

    event: str
    args: Mapping[str, object]
    log_index: int
    block_number: int = 0
    transaction_hash: str | None = field(default=None, compare=False)

    @property
    def position(self) -> tuple[int, int]:
        """Chronological position of the entry in the ledger history."""

        return self.block_number, self.log_index


@runtime_checkable
class LedgerEventSource(Protocol):
    """Anything able to return the full event history of a contract."""

    async def scan_events(self, contract: ContractHandle, event_name: str) -> Sequence[LogEntry]:
        ...


@runtime_checkable
class DeploymentReader(LedgerEventSource, Protocol):
    """Typed reads over an app or library deployment."""

    @property
    def address(self) -> str: ...

    async def version(self) -> str: ...

    async def package_address(self) -> str: ...

    async def current_provider_address(self) -> str: ...

    async def current_stdlib_address(self) -> str: ...

    async def provider_contract(self) -> ContractHandle: ...

    async def factory_contract(self) -> ContractHandle: ...

    async def resolve_proxy_implementation(self, proxy_address: str) -> str: ...

    async def content_hash_of(self, address: str) -> str: ...


type ResolveDeployment = Callable[[NetworkDescriptor], Awaitable[DeploymentReader]]


__all__ = [
    "ContractHandle",
    "DeploymentReader",
    "LedgerEventSource",
    "LogEntry",
    "ResolveDeployment",
]
