"""Event history scanning.

The scanner knows nothing about deployments: it returns every entry of one
event type emitted by one contract, oldest first. Filtering and deduplication
belong to the callers.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from deploysync.domain.ports.ledger import ContractHandle, LedgerEventSource, LogEntry

log = getLogger(__name__)


async def scan_events(
    ledger: LedgerEventSource,
    contract: ContractHandle,
    event_name: str,
) -> list[LogEntry]:
    """Return all ``event_name`` logs of ``contract`` in emission order."""

    entries = await ledger.scan_events(contract, event_name)
    ordered = sorted(entries, key=lambda entry: entry.position)
    log.debug(
        "Scanned %d %s events on %s at %s",
        len(ordered),
        event_name,
        contract.name,
        contract.address,
    )
    return ordered
