"""Domain port definitions for adapters."""

from __future__ import annotations

from .ledger import (
    ContractHandle,
    DeploymentReader,
    LedgerEventSource,
    LogEntry,
    ResolveDeployment,
)

__all__ = [
    "ContractHandle",
    "DeploymentReader",
    "LedgerEventSource",
    "LogEntry",
    "ResolveDeployment",
]
