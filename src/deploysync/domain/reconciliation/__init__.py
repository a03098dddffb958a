"""Status reconciliation between a network descriptor and the ledger.

Layered flow of one run:
1) resolve the deployment reader for the descriptor
2) compare scalar facts (version, package, provider, stdlib)
3) rebuild current implementation registrations from event history
4) resolve every created proxy's implementation concurrently and classify it
5) hand each discrepancy to an outcome sink (fetch or compare)
"""

from __future__ import annotations

from .contracts import (
    NONE,
    ZERO_ADDRESS,
    Discrepancy,
    DiscrepancyKind,
    ImplementationRegistration,
    ProxyInstance,
)
from .engine import ReconciliationEngine, compare_status, fetch_status
from .sinks import CollectingSink, Comparator, Fetcher, OutcomeSink

__all__ = [
    "NONE",
    "ZERO_ADDRESS",
    "CollectingSink",
    "Comparator",
    "Discrepancy",
    "DiscrepancyKind",
    "Fetcher",
    "ImplementationRegistration",
    "OutcomeSink",
    "ProxyInstance",
    "ReconciliationEngine",
    "compare_status",
    "fetch_status",
]
