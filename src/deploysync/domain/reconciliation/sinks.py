"""Outcome sinks consuming discrepancies detected by the engine.

``Fetcher`` converges the network descriptor onto ledger state as each
discrepancy arrives. ``Comparator`` only records what differs and renders a
report once checking ends.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

from rich.console import Console
from rich.table import Table

from deploysync.domain.descriptor import ContractEntry, ProxyEntry

from .contracts import NONE, Discrepancy, DiscrepancyKind

if TYPE_CHECKING:
    from deploysync.domain.descriptor import NetworkDescriptor

log = getLogger(__name__)


@runtime_checkable
class OutcomeSink(Protocol):
    """Receives every discrepancy of a run followed by one end-of-run signal."""

    def on_discrepancy(self, discrepancy: Discrepancy) -> None: ...

    def on_end_checking(self) -> None: ...


DESCRIPTIONS: Final[dict[DiscrepancyKind, str]] = {
    DiscrepancyKind.MISMATCHING_VERSION: "Version does not match",
    DiscrepancyKind.MISMATCHING_PACKAGE: "Package address does not match",
    DiscrepancyKind.MISMATCHING_PROVIDER: "Provider address does not match",
    DiscrepancyKind.MISMATCHING_STDLIB: "Stdlib address does not match",
    DiscrepancyKind.UNKNOWN_REMOTE_CONTRACT: "Missing registered contract {alias} at {address}",
    DiscrepancyKind.MISMATCHING_CONTRACT_ADDRESS: "Address for contract {alias} does not match",
    DiscrepancyKind.MISMATCHING_CONTRACT_BYTECODE: (
        "Bytecode at {address} for contract {alias} does not match"
    ),
    DiscrepancyKind.UNREGISTERED_LOCAL_CONTRACT: "Contract {alias} at {address} is not registered",
    DiscrepancyKind.MISSING_REMOTE_PROXY: (
        "Missing registered proxy of {alias} at {address} pointing to {implementation}"
    ),
    DiscrepancyKind.MISMATCHING_PROXY_ALIAS: (
        "Alias of proxy at {address} pointing to {implementation} does not match"
    ),
    DiscrepancyKind.MISMATCHING_PROXY_IMPLEMENTATION: (
        "Pointed implementation of {alias} proxy at {address} does not match"
    ),
    DiscrepancyKind.UNREGISTERED_LOCAL_PROXY: (
        "Proxy of {alias} at {address} pointing to {implementation} is not registered"
    ),
    DiscrepancyKind.MULTIPLE_PROXY_IMPLEMENTATIONS: (
        "The same implementation address {implementation} was registered "
        "under many aliases ({aliases})"
    ),
    DiscrepancyKind.UNREGISTERED_PROXY_IMPLEMENTATION: (
        "Proxy at {address} is pointing to {implementation} "
        "but given implementation is not registered in project"
    ),
}


def describe(discrepancy: Discrepancy) -> str:
    """Render the human-readable description of ``discrepancy``."""

    values = dict(discrepancy.metadata)
    aliases = values.get("aliases")
    if isinstance(aliases, tuple | list):
        values["aliases"] = ", ".join(str(alias) for alias in aliases)
    try:
        return DESCRIPTIONS[discrepancy.kind].format_map(values)
    except KeyError:
        return DESCRIPTIONS[discrepancy.kind]


@dataclass(slots=True)
class CollectingSink:
    """Sink that keeps the discrepancy sequence in arrival order."""

    discrepancies: list[Discrepancy] = field(default_factory=list[Discrepancy])
    finished: bool = False

    def on_discrepancy(self, discrepancy: Discrepancy) -> None:
        self.discrepancies.append(discrepancy)

    def on_end_checking(self) -> None:
        self.finished = True

    def kinds(self) -> list[DiscrepancyKind]:
        return [discrepancy.kind for discrepancy in self.discrepancies]


class Fetcher:
    """Write ledger-observed values back into the network descriptor."""

    def __init__(self, descriptor: NetworkDescriptor) -> None:
        self.descriptor = descriptor
        self.applied = 0
        self._handlers: dict[DiscrepancyKind, Callable[[Discrepancy], None]] = {
            DiscrepancyKind.MISMATCHING_VERSION: self._on_mismatching_version,
            DiscrepancyKind.MISMATCHING_PACKAGE: self._on_mismatching_package,
            DiscrepancyKind.MISMATCHING_PROVIDER: self._on_mismatching_provider,
            DiscrepancyKind.MISMATCHING_STDLIB: self._on_mismatching_stdlib,
            DiscrepancyKind.UNKNOWN_REMOTE_CONTRACT: self._on_unknown_remote_contract,
            DiscrepancyKind.MISMATCHING_CONTRACT_ADDRESS: self._on_mismatching_contract_address,
            DiscrepancyKind.MISMATCHING_CONTRACT_BYTECODE: self._on_mismatching_contract_bytecode,
            DiscrepancyKind.UNREGISTERED_LOCAL_CONTRACT: self._on_unregistered_local_contract,
            DiscrepancyKind.MISSING_REMOTE_PROXY: self._on_missing_remote_proxy,
            DiscrepancyKind.MISMATCHING_PROXY_ALIAS: self._on_mismatching_proxy_alias,
            DiscrepancyKind.MISMATCHING_PROXY_IMPLEMENTATION: (
                self._on_mismatching_proxy_implementation
            ),
            DiscrepancyKind.UNREGISTERED_LOCAL_PROXY: self._on_unregistered_local_proxy,
            DiscrepancyKind.MULTIPLE_PROXY_IMPLEMENTATIONS: self._on_integrity_warning,
            DiscrepancyKind.UNREGISTERED_PROXY_IMPLEMENTATION: self._on_integrity_warning,
        }

    def on_discrepancy(self, discrepancy: Discrepancy) -> None:
        self._handlers[discrepancy.kind](discrepancy)

    def on_end_checking(self) -> None:
        log.info("Network file updated with %d change(s) from the ledger", self.applied)

    def _applied(self, message: str, *args: object) -> None:
        self.applied += 1
        log.info(message, *args)

    def _on_mismatching_version(self, discrepancy: Discrepancy) -> None:
        self.descriptor.set_version(str(discrepancy.observed))
        self._applied("Updating version to %s", discrepancy.observed)

    def _on_mismatching_package(self, discrepancy: Discrepancy) -> None:
        self.descriptor.set_package_address(str(discrepancy.observed))
        self._applied("Updating package address to %s", discrepancy.observed)

    def _on_mismatching_provider(self, discrepancy: Discrepancy) -> None:
        observed = None if discrepancy.observed == NONE else str(discrepancy.observed)
        self.descriptor.set_provider_address(observed)
        self._applied("Updating provider address to %s", discrepancy.observed)

    def _on_mismatching_stdlib(self, discrepancy: Discrepancy) -> None:
        if discrepancy.observed == NONE:
            self.descriptor.unset_stdlib()
            self._applied("Removing stdlib")
            return
        self.descriptor.set_stdlib_address(str(discrepancy.observed))
        self._applied("Updating stdlib address to %s", discrepancy.observed)

    def _on_unknown_remote_contract(self, discrepancy: Discrepancy) -> None:
        alias = str(discrepancy.get("alias"))
        address = str(discrepancy.get("address"))
        content_hash = discrepancy.get("content_hash")
        self.descriptor.set_contract(
            alias,
            ContractEntry(
                address=address,
                content_hash=None if content_hash is None else str(content_hash),
            ),
        )
        self._applied("Adding contract %s at %s", alias, address)

    def _on_mismatching_contract_address(self, discrepancy: Discrepancy) -> None:
        alias = str(discrepancy.get("alias"))
        self.descriptor.set_contract_address(alias, str(discrepancy.observed))
        self._applied("Updating address of contract %s to %s", alias, discrepancy.observed)

    def _on_mismatching_contract_bytecode(self, discrepancy: Discrepancy) -> None:
        alias = str(discrepancy.get("alias"))
        self.descriptor.set_contract_content_hash(alias, str(discrepancy.observed))
        self._applied("Updating bytecode hash of contract %s", alias)

    def _on_unregistered_local_contract(self, discrepancy: Discrepancy) -> None:
        alias = str(discrepancy.get("alias"))
        self.descriptor.remove_contract(alias)
        self._applied("Removing unregistered contract %s", alias)

    def _on_missing_remote_proxy(self, discrepancy: Discrepancy) -> None:
        proxy = ProxyEntry(
            alias=str(discrepancy.get("alias")),
            address=str(discrepancy.get("address")),
            implementation=str(discrepancy.get("implementation")),
        )
        self.descriptor.add_proxy(proxy)
        self._applied("Adding %s proxy at %s", proxy.alias, proxy.address)

    def _on_mismatching_proxy_alias(self, discrepancy: Discrepancy) -> None:
        address = str(discrepancy.get("address"))
        self.descriptor.update_proxy(address, alias=str(discrepancy.observed))
        self._applied("Updating alias of proxy at %s to %s", address, discrepancy.observed)

    def _on_mismatching_proxy_implementation(self, discrepancy: Discrepancy) -> None:
        address = str(discrepancy.get("address"))
        self.descriptor.update_proxy(address, implementation=str(discrepancy.observed))
        self._applied(
            "Updating implementation of proxy at %s to %s", address, discrepancy.observed
        )

    def _on_unregistered_local_proxy(self, discrepancy: Discrepancy) -> None:
        address = str(discrepancy.get("address"))
        self.descriptor.remove_proxy(address)
        self._applied("Removing unregistered proxy at %s", address)

    def _on_integrity_warning(self, discrepancy: Discrepancy) -> None:
        # ledger-side condition; nothing in the network file can represent it
        log.warning(describe(discrepancy))


@dataclass(slots=True, frozen=True)
class ComparisonReport:
    description: str
    expected: str
    observed: str


class Comparator:
    """Accumulate discrepancies without touching the descriptor."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)
        self.reports: list[ComparisonReport] = []
        self.passed: bool | None = None

    def on_discrepancy(self, discrepancy: Discrepancy) -> None:
        self.reports.append(
            ComparisonReport(
                description=describe(discrepancy),
                expected=str(discrepancy.expected),
                observed=str(discrepancy.observed),
            )
        )

    def on_end_checking(self) -> None:
        self.passed = not self.reports
        if self.passed:
            log.info("No mismatches were found")
            self.console.print("No mismatches were found", style="green")
            return

        log.info("Found %d mismatch(es) between network file and ledger", len(self.reports))
        table = Table(title="Status mismatches")
        table.add_column("Description", style="cyan")
        table.add_column("Expected", style="magenta")
        table.add_column("Observed", style="yellow")
        for report in self.reports:
            table.add_row(report.description, report.expected, report.observed)
        self.console.print(table)
