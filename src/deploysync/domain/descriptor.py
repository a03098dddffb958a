"""Local network descriptor: the declared state of one deployment on one network."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from .errors import ContractNotFoundError, ProxyNotFoundError


@dataclass(slots=True, frozen=True, kw_only=True)
class ContractEntry:
    """Implementation contract declared under an alias."""

    address: str
    content_hash: str | None = None
    extras: dict[str, object] = field(default_factory=dict[str, object], compare=False)


@dataclass(slots=True, frozen=True, kw_only=True)
class ProxyEntry:
    """One deployed proxy instance; several proxies may share an alias."""

    alias: str
    address: str
    implementation: str
    extras: dict[str, object] = field(default_factory=dict[str, object], compare=False)


@dataclass(slots=True, kw_only=True)
class NetworkDescriptor:
    """Declarative record of what should exist on the ledger.

    ``is_library`` selects between the app and library check sequences and is
    fixed for the lifetime of the descriptor. ``stdlib_address`` of ``None``
    means the deployment does not link a standard library.
    """

    is_library: bool = False
    version: str | None = None
    app_address: str | None = None
    package_address: str | None = None
    provider_address: str | None = None
    stdlib_address: str | None = None
    stdlib_name: str | None = None
    stdlib_version: str | None = None
    contracts: dict[str, ContractEntry] = field(default_factory=dict[str, ContractEntry])
    proxies: list[ProxyEntry] = field(default_factory=list[ProxyEntry])
    extras: dict[str, object] = field(default_factory=dict[str, object])

    @property
    def deployment_address(self) -> str | None:
        """Address of the contract the ledger state is read from."""

        return self.package_address if self.is_library else self.app_address

    # -- reads -----------------------------------------------------------

    def contract_aliases(self) -> set[str]:
        return set(self.contracts)

    def has_contract(self, alias: str) -> bool:
        return alias in self.contracts

    def contract(self, alias: str) -> ContractEntry:
        try:
            return self.contracts[alias]
        except KeyError:
            raise ContractNotFoundError(alias) from None

    def proxies_list(self) -> list[ProxyEntry]:
        return list(self.proxies)

    def proxy_at(self, address: str) -> ProxyEntry | None:
        for proxy in self.proxies:
            if proxy.address == address:
                return proxy
        return None

    # -- mutations (fetch mode only) ---------------------------------------

    def set_version(self, version: str | None) -> None:
        self.version = version

    def set_package_address(self, address: str | None) -> None:
        self.package_address = address

    def set_provider_address(self, address: str | None) -> None:
        self.provider_address = address

    def set_stdlib_address(self, address: str) -> None:
        if address != self.stdlib_address:
            self.stdlib_name = None
            self.stdlib_version = None
        self.stdlib_address = address

    def unset_stdlib(self) -> None:
        self.stdlib_address = None
        self.stdlib_name = None
        self.stdlib_version = None

    def set_contract(self, alias: str, entry: ContractEntry) -> None:
        self.contracts[alias] = entry

    def set_contract_address(self, alias: str, address: str) -> None:
        self.contracts[alias] = replace(self.contract(alias), address=address)

    def set_contract_content_hash(self, alias: str, content_hash: str) -> None:
        self.contracts[alias] = replace(self.contract(alias), content_hash=content_hash)

    def remove_contract(self, alias: str) -> None:
        if self.contracts.pop(alias, None) is None:
            raise ContractNotFoundError(alias)

    def add_proxy(self, proxy: ProxyEntry) -> None:
        self.proxies.append(proxy)

    def update_proxy(
        self,
        address: str,
        *,
        alias: str | None = None,
        implementation: str | None = None,
    ) -> ProxyEntry:
        for index, proxy in enumerate(self.proxies):
            if proxy.address != address:
                continue
            updated = replace(
                proxy,
                alias=proxy.alias if alias is None else alias,
                implementation=proxy.implementation if implementation is None else implementation,
            )
            self.proxies[index] = updated
            return updated
        raise ProxyNotFoundError(address)

    def remove_proxy(self, address: str) -> None:
        remaining = [proxy for proxy in self.proxies if proxy.address != address]
        if len(remaining) == len(self.proxies):
            raise ProxyNotFoundError(address)
        self.proxies = remaining
