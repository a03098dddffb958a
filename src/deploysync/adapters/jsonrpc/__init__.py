"""Public interface for the JSON-RPC ledger adapter."""

from __future__ import annotations

from .abi import EVENTS, EventInput, EventSpec, bytecode_digest, implementation_slot
from .client import EthRpcClient, LedgerRPCError
from .reader import AppDeploymentReader, LibDeploymentReader, build_deployment_resolver
from .schema import LogPayload, RpcResponse

__all__ = [
    "EVENTS",
    "AppDeploymentReader",
    "EthRpcClient",
    "EventInput",
    "EventSpec",
    "LedgerRPCError",
    "LibDeploymentReader",
    "LogPayload",
    "RpcResponse",
    "build_deployment_resolver",
    "bytecode_digest",
    "implementation_slot",
]
