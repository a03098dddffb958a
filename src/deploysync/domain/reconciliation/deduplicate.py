"""Rebuild current registrations from append-only event history.

Responsibilities of this module:
- collapse ``ImplementationChanged`` history into one entry per alias
- drop aliases whose latest registration is the zero address
- classify a proxy's current implementation against those registrations
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .contracts import (
    AmbiguousProxy,
    ImplementationRegistration,
    ProxyInstance,
    ResolvedProxy,
    UnregisteredProxy,
    is_zero_address,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from deploysync.domain.ports.ledger import LogEntry

    from .contracts import ProxyResolution


def current_implementations(events: Iterable[LogEntry]) -> list[ImplementationRegistration]:
    """Keep the last chronological registration per alias, minus deregistrations.

    ``events`` must already be in emission order. The result lists aliases in
    the order of their latest registration.
    """

    latest_by_alias: dict[str, str] = {}
    for event in events:
        alias = str(event.args["contractName"])
        latest_by_alias.pop(alias, None)
        latest_by_alias[alias] = str(event.args["implementation"])

    return [
        ImplementationRegistration(alias=alias, address=address)
        for alias, address in latest_by_alias.items()
        if not is_zero_address(address)
    ]


def proxy_addresses(events: Iterable[LogEntry]) -> list[str]:
    """Return every proxy address ever created, once each, in creation order."""

    seen: dict[str, None] = {}
    for event in events:
        seen.setdefault(str(event.args["proxy"]), None)
    return list(seen)


def resolve_proxy(
    address: str,
    implementation: str,
    registrations: Sequence[ImplementationRegistration],
) -> ProxyResolution:
    """Match ``implementation`` against registered implementations by address.

    Matching policy:
    - no registration at that address -> ``UnregisteredProxy``
    - exactly one -> ``ResolvedProxy``
    - several aliases sharing the address -> ``AmbiguousProxy``
    """

    aliases = tuple(
        registration.alias
        for registration in registrations
        if registration.address == implementation
    )
    if not aliases:
        return UnregisteredProxy(address=address, implementation=implementation)
    if len(aliases) > 1:
        return AmbiguousProxy(address=address, implementation=implementation, aliases=aliases)
    return ResolvedProxy(
        instance=ProxyInstance(alias=aliases[0], address=address, implementation=implementation)
    )
