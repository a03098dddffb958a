"""JSON-RPC client for Ethereum-compatible ledger nodes."""

from __future__ import annotations

import itertools
import re
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, cast

import httpx
from pydantic import ValidationError

from deploysync.domain.errors import LedgerReadError

from .schema import LogPayload, RpcResponse

if TYPE_CHECKING:
    from deploysync.adapters.http_resilience import ResilientClient

log = getLogger(__name__)

_HEX = re.compile(r"0x[0-9a-fA-F]*")


class LedgerRPCError(LedgerReadError):
    """Raised when the node rejects a request or cannot be reached."""

    def __init__(self, message: str, *, method: str, code: int | None = None) -> None:
        super().__init__(f"{method}: {message}")
        self.method = method
        self.code = code


@dataclass(slots=True)
class EthRpcClient:
    """Read-only subset of the Ethereum JSON-RPC API."""

    http: ResilientClient
    url: str = ""
    _ids: itertools.count[int] = field(default_factory=lambda: itertools.count(1))

    async def call(self, to: str, data: str, *, block: str = "latest") -> str:
        result = await self._request("eth_call", [{"to": to, "data": data}, block])
        return self._hex_result("eth_call", result)

    async def get_code(self, address: str, *, block: str = "latest") -> str:
        result = await self._request("eth_getCode", [address, block])
        return self._hex_result("eth_getCode", result)

    async def get_storage_at(self, address: str, slot: str, *, block: str = "latest") -> str:
        result = await self._request("eth_getStorageAt", [address, slot, block])
        return self._hex_result("eth_getStorageAt", result)

    async def block_number(self) -> int:
        result = self._hex_result(
            "eth_blockNumber", await self._request("eth_blockNumber", []), quantity=True
        )
        return int(result, 16)

    async def get_logs(
        self,
        address: str,
        topics: list[str | None],
        *,
        from_block: str = "0x0",
        to_block: str = "latest",
    ) -> list[LogPayload]:
        params = [
            {"address": address, "topics": topics, "fromBlock": from_block, "toBlock": to_block}
        ]
        result = await self._request("eth_getLogs", params)
        if not isinstance(result, list):
            raise LedgerRPCError("unexpected result payload", method="eth_getLogs")
        try:
            logs = [LogPayload.model_validate(item) for item in cast(list[object], result)]
        except ValidationError as exc:
            raise LedgerRPCError(f"invalid log payload: {exc}", method="eth_getLogs") from exc
        return [entry for entry in logs if not entry.removed]

    async def _request(self, method: str, params: list[object]) -> object:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = await self.http.post(self.url, json=payload)
            response.raise_for_status()
            body = RpcResponse.model_validate(response.json())
        except httpx.HTTPError as exc:
            log.error(f"Ledger request {method} failed: {exc}")
            raise LedgerRPCError(str(exc), method=method) from exc
        except (ValueError, ValidationError) as exc:
            raise LedgerRPCError(f"malformed response: {exc}", method=method) from exc

        if body.error is not None:
            log.error(f"Ledger RPC error {body.error.code}: {body.error.message}")
            raise LedgerRPCError(body.error.message, method=method, code=body.error.code)
        return body.result

    @staticmethod
    def _hex_result(method: str, result: object, *, quantity: bool = False) -> str:
        if not isinstance(result, str) or _HEX.fullmatch(result) is None:
            raise LedgerRPCError(f"unexpected result {result!r}", method=method)
        # quantities drop leading zeros; data must hold whole bytes
        if quantity and len(result) == 2:  # noqa: PLR2004
            raise LedgerRPCError("empty quantity", method=method)
        if not quantity and len(result) % 2:
            raise LedgerRPCError(f"odd-length hex data {result!r}", method=method)
        return result
