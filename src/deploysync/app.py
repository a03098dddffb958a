"""Application orchestration entry points."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from logging import getLogger
from typing import TYPE_CHECKING

from deploysync.adapters.http_resilience import ResilientClient
from deploysync.adapters.jsonrpc import EthRpcClient, build_deployment_resolver
from deploysync.adapters.network_file import load_network_file, save_network_file
from deploysync.config import get_ledger_config, get_storage_config
from deploysync.domain.reconciliation import compare_status, fetch_status

if TYPE_CHECKING:
    from pathlib import Path

    from deploysync.config import LedgerConfig, ResilienceConfig
    from deploysync.domain.ports.ledger import ResolveDeployment
    from deploysync.domain.reconciliation import Comparator, Fetcher

ClientFactory = Callable[["ResilienceConfig"], ResilientClient]

log = getLogger(__name__)


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


def pull_status(
    network: str,
    *,
    project_dir: Path | None = None,
    ledger: LedgerConfig | None = None,
    client_factory: ClientFactory | None = None,
) -> Fetcher:
    """Overwrite the network file for ``network`` with the state found on the ledger."""

    path = get_storage_config(project_dir=project_dir).network_file_path(network)
    descriptor = load_network_file(path)
    log.info("Pulling status of %s from the ledger into %s", network, path)

    async def run(resolve: ResolveDeployment) -> Fetcher:
        return await fetch_status(descriptor, resolve)

    fetcher = asyncio.run(_with_resolver(run, ledger=ledger, client_factory=client_factory))
    save_network_file(path, descriptor)
    return fetcher


def compare_network_status(
    network: str,
    *,
    project_dir: Path | None = None,
    ledger: LedgerConfig | None = None,
    client_factory: ClientFactory | None = None,
    comparator: Comparator | None = None,
) -> bool:
    """Compare the network file for ``network`` against the ledger; ``True`` if they match."""

    path = get_storage_config(project_dir=project_dir).network_file_path(network)
    descriptor = load_network_file(path)
    log.info("Comparing %s against the ledger", path)

    async def run(resolve: ResolveDeployment) -> Comparator:
        return await compare_status(descriptor, resolve, comparator)

    result = asyncio.run(_with_resolver(run, ledger=ledger, client_factory=client_factory))
    return bool(result.passed)


async def _with_resolver[T](
    func: Callable[[ResolveDeployment], Awaitable[T]],
    *,
    ledger: LedgerConfig | None,
    client_factory: ClientFactory | None,
) -> T:
    config = ledger or get_ledger_config()
    factory = client_factory or _default_client_factory
    async with factory(config.resilience) as http:
        rpc = EthRpcClient(http, url=config.rpc_url)
        return await func(build_deployment_resolver(rpc))
