"""Load and save network descriptors as JSON network files."""

from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING

from pydantic import ValidationError

from deploysync.domain.descriptor import ContractEntry, NetworkDescriptor, ProxyEntry

from .schema import (
    AddressRef,
    ContractPayload,
    NetworkFilePayload,
    ProxyPayload,
    StdlibRef,
)

if TYPE_CHECKING:
    from pathlib import Path

log = getLogger(__name__)


class NetworkFileError(RuntimeError):
    """Base class for network file persistence failures."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path


class NetworkFileNotFoundError(NetworkFileError):
    """Raised when the network file does not exist."""


class NetworkFileFormatError(NetworkFileError):
    """Raised when the network file is not valid JSON or violates the schema."""


def load_network_file(path: Path) -> NetworkDescriptor:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise NetworkFileNotFoundError(f"Network file {path} not found", path=path) from None

    try:
        payload = NetworkFilePayload.model_validate(json.loads(raw))
    except (json.JSONDecodeError, ValidationError) as exc:
        raise NetworkFileFormatError(f"Invalid network file {path}: {exc}", path=path) from exc

    descriptor = descriptor_from_payload(payload)
    log.debug(
        "Loaded %s: %d contract(s), %d proxy(ies)",
        path,
        len(descriptor.contracts),
        len(descriptor.proxies),
    )
    return descriptor


def save_network_file(path: Path, descriptor: NetworkDescriptor) -> None:
    payload = payload_from_descriptor(descriptor)
    data = payload.model_dump(mode="json", by_alias=True, exclude_none=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    log.info("Saved network file %s", path)


def descriptor_from_payload(payload: NetworkFilePayload) -> NetworkDescriptor:
    contracts = {
        alias: ContractEntry(
            address=contract.address,
            content_hash=contract.body_bytecode_hash,
            extras=dict(contract.model_extra or {}),
        )
        for alias, contract in payload.contracts.items()
    }
    proxies = [
        ProxyEntry(
            alias=alias,
            address=proxy.address,
            implementation=proxy.implementation,
            extras=dict(proxy.model_extra or {}),
        )
        for alias, alias_proxies in payload.proxies.items()
        for proxy in alias_proxies
    ]
    return NetworkDescriptor(
        is_library=payload.lib,
        version=payload.version,
        app_address=payload.app.address if payload.app else None,
        package_address=payload.package.address if payload.package else None,
        provider_address=payload.provider.address if payload.provider else None,
        stdlib_address=payload.stdlib.address if payload.stdlib else None,
        stdlib_name=payload.stdlib.name if payload.stdlib else None,
        stdlib_version=payload.stdlib.version if payload.stdlib else None,
        contracts=contracts,
        proxies=proxies,
        extras=dict(payload.model_extra or {}),
    )


def payload_from_descriptor(descriptor: NetworkDescriptor) -> NetworkFilePayload:
    proxies: dict[str, list[ProxyPayload]] = {}
    for proxy in descriptor.proxies:
        proxies.setdefault(proxy.alias, []).append(
            ProxyPayload(address=proxy.address, implementation=proxy.implementation, **proxy.extras)
        )

    stdlib = (
        StdlibRef(
            address=descriptor.stdlib_address,
            name=descriptor.stdlib_name,
            version=descriptor.stdlib_version,
        )
        if descriptor.stdlib_address
        else None
    )
    return NetworkFilePayload(
        lib=descriptor.is_library,
        version=descriptor.version,
        app=_address_ref(descriptor.app_address),
        package=_address_ref(descriptor.package_address),
        provider=_address_ref(descriptor.provider_address),
        stdlib=stdlib,
        contracts={
            alias: ContractPayload(
                address=entry.address,
                bodyBytecodeHash=entry.content_hash,
                **entry.extras,
            )
            for alias, entry in descriptor.contracts.items()
        },
        proxies=proxies,
        **descriptor.extras,
    )


def _address_ref(address: str | None) -> AddressRef | None:
    return AddressRef(address=address) if address else None
