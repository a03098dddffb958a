"""Deployment readers backed by JSON-RPC.

``AppDeploymentReader`` reads through an app contract exposing ``package()``,
``version()``, ``getProvider()`` and ``factory()``; the provider (directory)
exposes ``stdlib()``. ``LibDeploymentReader`` reads a library package whose
provider for a given version comes from ``getVersion(string)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from eth_abi.exceptions import DecodingError

from deploysync.domain.errors import DeploymentUnavailableError, LedgerReadError
from deploysync.domain.ports.ledger import ContractHandle, LogEntry
from deploysync.domain.reconciliation.contracts import ZERO_ADDRESS

from .abi import (
    EVENTS,
    bytecode_digest,
    decode_address,
    decode_string,
    encode_call,
    implementation_slot,
    normalize_address,
)

if TYPE_CHECKING:
    from deploysync.domain.descriptor import NetworkDescriptor
    from deploysync.domain.ports.ledger import DeploymentReader, ResolveDeployment

    from .client import EthRpcClient

log = getLogger(__name__)

_EMPTY_CODE = frozenset({"", "0x", "0x0"})


@dataclass(slots=True)
class _RpcDeploymentReader:
    rpc: EthRpcClient
    deployment_address: str

    @property
    def address(self) -> str:
        return self.deployment_address

    async def scan_events(self, contract: ContractHandle, event_name: str) -> list[LogEntry]:
        spec = EVENTS.get(event_name)
        if spec is None:
            raise ValueError(f"Unknown event {event_name}")
        logs = await self.rpc.get_logs(contract.address, [spec.topic])
        entries: list[LogEntry] = []
        for payload in logs:
            try:
                args = spec.decode(payload.topics, payload.data)
            except (DecodingError, ValueError) as exc:
                raise LedgerReadError(f"Cannot decode {event_name} log: {exc}") from exc
            entries.append(
                LogEntry(
                    event=event_name,
                    args=args,
                    log_index=payload.log_index,
                    block_number=payload.block_number,
                    transaction_hash=payload.transaction_hash,
                )
            )
        return entries

    async def resolve_proxy_implementation(self, proxy_address: str) -> str:
        word = await self.rpc.get_storage_at(proxy_address, implementation_slot())
        return normalize_address(word)

    async def content_hash_of(self, address: str) -> str:
        return bytecode_digest(await self.rpc.get_code(address))

    async def _call_address(self, to: str, signature: str, data: str | None = None) -> str:
        result = await self.rpc.call(to, data or encode_call(signature))
        try:
            return decode_address(result)
        except (DecodingError, ValueError) as exc:
            raise LedgerReadError(f"Cannot decode {signature} result from {to}: {exc}") from exc

    async def _call_string(self, to: str, signature: str) -> str:
        result = await self.rpc.call(to, encode_call(signature))
        try:
            return decode_string(result)
        except (DecodingError, ValueError) as exc:
            raise LedgerReadError(f"Cannot decode {signature} result from {to}: {exc}") from exc


@dataclass(slots=True)
class AppDeploymentReader(_RpcDeploymentReader):
    """Reads an app deployment (package, provider, stdlib, proxy factory)."""

    async def version(self) -> str:
        return await self._call_string(self.deployment_address, "version()")

    async def package_address(self) -> str:
        return await self._call_address(self.deployment_address, "package()")

    async def current_provider_address(self) -> str:
        return await self._call_address(self.deployment_address, "getProvider()")

    async def current_stdlib_address(self) -> str:
        provider = await self.current_provider_address()
        return await self._call_address(provider, "stdlib()")

    async def provider_contract(self) -> ContractHandle:
        return ContractHandle(await self.current_provider_address(), "provider")

    async def factory_contract(self) -> ContractHandle:
        return ContractHandle(
            await self._call_address(self.deployment_address, "factory()"), "factory"
        )


@dataclass(slots=True)
class LibDeploymentReader(_RpcDeploymentReader):
    """Reads one released version of a library package."""

    release: str = ""

    async def version(self) -> str:
        return self.release

    async def package_address(self) -> str:
        return self.deployment_address

    async def current_provider_address(self) -> str:
        data = encode_call("getVersion(string)", ("string",), (self.release,))
        return await self._call_address(self.deployment_address, "getVersion(string)", data)

    async def current_stdlib_address(self) -> str:
        return ZERO_ADDRESS

    async def provider_contract(self) -> ContractHandle:
        return ContractHandle(await self.current_provider_address(), "provider")

    async def factory_contract(self) -> ContractHandle:
        raise DeploymentUnavailableError(
            self.deployment_address, "library packages do not create proxies"
        )


def build_deployment_resolver(rpc: EthRpcClient) -> ResolveDeployment:
    """Return a resolver picking the app or library reader for a descriptor."""

    async def resolve_deployment(descriptor: NetworkDescriptor) -> DeploymentReader:
        address = descriptor.deployment_address
        if not address:
            raise DeploymentUnavailableError(None, "network file declares no deployment address")

        code = await rpc.get_code(address)
        if code.lower() in _EMPTY_CODE:
            raise DeploymentUnavailableError(address, "no contract code at address")

        if descriptor.is_library:
            if not descriptor.version:
                raise DeploymentUnavailableError(address, "library network file has no version")
            log.debug("Resolved library package %s version %s", address, descriptor.version)
            return LibDeploymentReader(rpc, address, release=descriptor.version)

        log.debug("Resolved app %s", address)
        return AppDeploymentReader(rpc, address)

    return resolve_deployment
