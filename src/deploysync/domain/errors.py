"""Domain error definitions.

Discrepancies between the network file and the ledger are *not* errors; they are
reported through an outcome sink. The exceptions below cover conditions that
abort a run or signal misuse of the descriptor API.
"""

from __future__ import annotations


class DeploySyncError(RuntimeError):
    """Base class for deploysync runtime failures."""


class LedgerReadError(DeploySyncError):
    """Raised by ledger adapters when a read against the node fails."""


class DeploymentUnavailableError(DeploySyncError):
    """Raised when the deployment contract cannot be resolved at its address."""

    def __init__(self, address: str | None, reason: str | None = None) -> None:
        self.address = address
        message = f"Cannot fetch project contract from address {address}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ReconciliationAbortedError(DeploySyncError):
    """Raised when a ledger read fails midway through a status check."""

    def __init__(self, address: str | None, cause: BaseException) -> None:
        self.address = address
        super().__init__(f"Status check of deployment at {address} aborted: {cause}")


class ContractNotFoundError(KeyError):
    """Raised when a contract alias is not declared in the network descriptor."""

    def __init__(self, alias: str) -> None:
        self.alias = alias
        super().__init__(alias)

    def __str__(self) -> str:
        return f"Contract {self.alias} not found in network file"


class ProxyNotFoundError(KeyError):
    """Raised when no proxy is declared at the given address."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(address)

    def __str__(self) -> str:
        return f"Proxy at {self.address} not found in network file"
