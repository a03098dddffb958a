"""Orchestrator for status reconciliation.

The engine walks the deployment structure (version, package, provider,
stdlib, implementations, proxies), compares each fact against the network
descriptor and hands every difference to an outcome sink. It never decides
what a difference means; ``fetch_status`` and ``compare_status`` differ only
in the sink they bind.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from deploysync.domain.errors import (
    DeploymentUnavailableError,
    LedgerReadError,
    ReconciliationAbortedError,
)

from .contracts import (
    IMPLEMENTATION_CHANGED_EVENT,
    NONE,
    PROXY_CREATED_EVENT,
    AmbiguousProxy,
    Discrepancy,
    DiscrepancyKind,
    ResolvedProxy,
    normalize_optional_address,
)
from .deduplicate import current_implementations, proxy_addresses, resolve_proxy
from .scan import scan_events
from .sinks import Comparator, Fetcher

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from deploysync.domain.descriptor import NetworkDescriptor
    from deploysync.domain.ports.ledger import DeploymentReader, ResolveDeployment

    from .contracts import ImplementationRegistration, ProxyInstance, ProxyResolution
    from .sinks import OutcomeSink

log = getLogger(__name__)


@dataclass(slots=True)
class ReconciliationEngine:
    """Compare one network descriptor against the ledger and report to ``sink``."""

    sink: OutcomeSink
    descriptor: NetworkDescriptor
    resolve_deployment: ResolveDeployment

    async def run(self) -> None:
        """Run every applicable check, then signal the end of the run.

        Raises ``DeploymentUnavailableError`` when the deployment cannot be
        resolved and ``ReconciliationAbortedError`` when a later ledger read
        fails. In both cases no further sink hooks are invoked.
        """

        deployment = await self._resolve()
        log.info("Comparing status of project %s ...", deployment.address)
        try:
            if self.descriptor.is_library:
                await self._check_lib(deployment)
            else:
                await self._check_app(deployment)
        except LedgerReadError as exc:
            raise ReconciliationAbortedError(deployment.address, exc) from exc
        self.sink.on_end_checking()

    async def _resolve(self) -> DeploymentReader:
        try:
            return await self.resolve_deployment(self.descriptor)
        except DeploymentUnavailableError:
            raise
        except LedgerReadError as exc:
            raise DeploymentUnavailableError(
                self.descriptor.deployment_address, str(exc)
            ) from exc

    async def _check_app(self, deployment: DeploymentReader) -> None:
        await self.check_version(deployment)
        await self.check_package(deployment)
        await self.check_provider(deployment)
        await self.check_stdlib(deployment)
        registrations = await self.check_implementations(deployment)
        await self.check_proxies(deployment, registrations)

    async def _check_lib(self, deployment: DeploymentReader) -> None:
        await self.check_provider(deployment)
        await self.check_implementations(deployment)

    # -- scalar checks -----------------------------------------------------

    async def check_version(self, deployment: DeploymentReader) -> None:
        observed = await deployment.version()
        expected = self.descriptor.version
        if observed != expected:
            self._report(DiscrepancyKind.MISMATCHING_VERSION, expected, observed)

    async def check_package(self, deployment: DeploymentReader) -> None:
        observed = await deployment.package_address()
        expected = self.descriptor.package_address
        if observed != expected:
            self._report(DiscrepancyKind.MISMATCHING_PACKAGE, expected, observed)

    async def check_provider(self, deployment: DeploymentReader) -> None:
        observed = normalize_optional_address(await deployment.current_provider_address())
        expected = normalize_optional_address(self.descriptor.provider_address)
        if observed != expected:
            self._report(DiscrepancyKind.MISMATCHING_PROVIDER, expected, observed)

    async def check_stdlib(self, deployment: DeploymentReader) -> None:
        observed = normalize_optional_address(await deployment.current_stdlib_address())
        expected = normalize_optional_address(self.descriptor.stdlib_address)
        if observed != expected:
            self._report(DiscrepancyKind.MISMATCHING_STDLIB, expected, observed)

    # -- implementations ---------------------------------------------------

    async def check_implementations(
        self, deployment: DeploymentReader
    ) -> list[ImplementationRegistration]:
        """Check registered implementations and return the rebuilt registration set."""

        registrations = await self.fetch_on_chain_implementations(deployment)
        for registration in registrations:
            await self._check_remote_implementation(deployment, registration)
        self._check_unregistered_local_implementations(registrations)
        return registrations

    async def fetch_on_chain_implementations(
        self, deployment: DeploymentReader
    ) -> list[ImplementationRegistration]:
        provider = await deployment.provider_contract()
        events = await scan_events(deployment, provider, IMPLEMENTATION_CHANGED_EVENT)
        return current_implementations(events)

    async def _check_remote_implementation(
        self,
        deployment: DeploymentReader,
        registration: ImplementationRegistration,
    ) -> None:
        alias, address = registration.alias, registration.address
        if not self.descriptor.has_contract(alias):
            content_hash = await deployment.content_hash_of(address)
            self._report(
                DiscrepancyKind.UNKNOWN_REMOTE_CONTRACT,
                NONE,
                "one",
                {"alias": alias, "address": address, "content_hash": content_hash},
            )
            return

        local = self.descriptor.contract(alias)
        if address != local.address:
            self._report(
                DiscrepancyKind.MISMATCHING_CONTRACT_ADDRESS,
                local.address,
                address,
                {"alias": alias, "address": address},
            )

        observed_hash = await deployment.content_hash_of(address)
        if observed_hash != local.content_hash:
            self._report(
                DiscrepancyKind.MISMATCHING_CONTRACT_BYTECODE,
                local.content_hash,
                observed_hash,
                {"alias": alias, "address": address, "content_hash": observed_hash},
            )

    def _check_unregistered_local_implementations(
        self, registrations: Sequence[ImplementationRegistration]
    ) -> None:
        found_aliases = {registration.alias for registration in registrations}
        local_only = [
            (alias, self.descriptor.contract(alias).address)
            for alias in sorted(self.descriptor.contract_aliases())
            if alias not in found_aliases
        ]
        for alias, address in local_only:
            self._report(
                DiscrepancyKind.UNREGISTERED_LOCAL_CONTRACT,
                "one",
                NONE,
                {"alias": alias, "address": address},
            )

    # -- proxies -----------------------------------------------------------

    async def check_proxies(
        self,
        deployment: DeploymentReader,
        registrations: Sequence[ImplementationRegistration] | None = None,
    ) -> None:
        if registrations is None:
            registrations = await self.fetch_on_chain_implementations(deployment)

        resolutions = await self.fetch_on_chain_proxies(deployment, registrations)
        for resolution in resolutions:
            if isinstance(resolution, ResolvedProxy):
                self._check_remote_proxy(resolution.instance)
            elif isinstance(resolution, AmbiguousProxy):
                self._report(
                    DiscrepancyKind.MULTIPLE_PROXY_IMPLEMENTATIONS,
                    "one",
                    len(resolution.aliases),
                    {
                        "address": resolution.address,
                        "implementation": resolution.implementation,
                        "aliases": resolution.aliases,
                    },
                )
            else:
                self._report(
                    DiscrepancyKind.UNREGISTERED_PROXY_IMPLEMENTATION,
                    "one",
                    NONE,
                    {"address": resolution.address, "implementation": resolution.implementation},
                )
        self._check_unregistered_local_proxies(resolutions)

    async def fetch_on_chain_proxies(
        self,
        deployment: DeploymentReader,
        registrations: Sequence[ImplementationRegistration],
    ) -> list[ProxyResolution]:
        """Resolve every created proxy's current implementation concurrently.

        All lookups are joined before matching, so each resolution is judged
        against the complete, fixed registration set. The first failed lookup
        cancels the ones still pending and is raised on its own.
        """

        factory = await deployment.factory_contract()
        events = await scan_events(deployment, factory, PROXY_CREATED_EVENT)
        addresses = proxy_addresses(events)
        try:
            async with asyncio.TaskGroup() as group:
                lookups = [
                    group.create_task(deployment.resolve_proxy_implementation(address))
                    for address in addresses
                ]
        except ExceptionGroup as failures:
            raise failures.exceptions[0] from None
        return [
            resolve_proxy(address, lookup.result(), registrations)
            for address, lookup in zip(addresses, lookups, strict=True)
        ]

    def _check_remote_proxy(self, instance: ProxyInstance) -> None:
        metadata = {
            "alias": instance.alias,
            "address": instance.address,
            "implementation": instance.implementation,
        }
        local = self.descriptor.proxy_at(instance.address)
        if local is None:
            self._report(DiscrepancyKind.MISSING_REMOTE_PROXY, NONE, "one", metadata)
            return

        if instance.alias != local.alias:
            self._report(
                DiscrepancyKind.MISMATCHING_PROXY_ALIAS, local.alias, instance.alias, metadata
            )
        if instance.implementation != local.implementation:
            self._report(
                DiscrepancyKind.MISMATCHING_PROXY_IMPLEMENTATION,
                local.implementation,
                instance.implementation,
                metadata,
            )

    def _check_unregistered_local_proxies(self, resolutions: Sequence[ProxyResolution]) -> None:
        # every discovered proxy already got exactly one report above
        found_addresses = {resolution.address for resolution in resolutions}
        local_only = [
            proxy
            for proxy in self.descriptor.proxies_list()
            if proxy.address not in found_addresses
        ]
        for proxy in local_only:
            self._report(
                DiscrepancyKind.UNREGISTERED_LOCAL_PROXY,
                "one",
                NONE,
                {
                    "alias": proxy.alias,
                    "address": proxy.address,
                    "implementation": proxy.implementation,
                },
            )

    def _report(
        self,
        kind: DiscrepancyKind,
        expected: object,
        observed: object,
        metadata: Mapping[str, object] | None = None,
    ) -> None:
        self.sink.on_discrepancy(
            Discrepancy(kind=kind, expected=expected, observed=observed, metadata=metadata or {})
        )


async def fetch_status(
    descriptor: NetworkDescriptor,
    resolve_deployment: ResolveDeployment,
) -> Fetcher:
    """Pull ledger state into ``descriptor``; returns the sink used."""

    fetcher = Fetcher(descriptor)
    await ReconciliationEngine(fetcher, descriptor, resolve_deployment).run()
    return fetcher


async def compare_status(
    descriptor: NetworkDescriptor,
    resolve_deployment: ResolveDeployment,
    comparator: Comparator | None = None,
) -> Comparator:
    """Report differences between ``descriptor`` and the ledger without mutating either."""

    active_comparator = comparator or Comparator()
    await ReconciliationEngine(active_comparator, descriptor, resolve_deployment).run()
    return active_comparator
