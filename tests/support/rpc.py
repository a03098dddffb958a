"""A scripted JSON-RPC node served through ``httpx.MockTransport``."""

from __future__ import annotations

import json
from collections.abc import Callable  # noqa: TC003
from dataclasses import dataclass, field

import httpx
from eth_abi import encode

from deploysync.adapters.http_resilience import ResilienceConfig, ResilientClient
from deploysync.adapters.jsonrpc.abi import EVENTS, encode_call, implementation_slot

RPC_URL = "http://ledger.test/rpc"


def word(address: str) -> str:
    """Left-pad an address into a 32-byte hex word."""

    return "0x" + address[2:].rjust(64, "0")


def encoded(types: list[str], values: list[object]) -> str:
    return "0x" + encode(types, values).hex()


@dataclass
class FakeNode:
    """Answers ``eth_*`` requests from plain dictionaries."""

    calls: dict[tuple[str, str], str] = field(default_factory=dict[tuple[str, str], str])
    code: dict[str, str] = field(default_factory=dict[str, str])
    storage: dict[tuple[str, str], str] = field(default_factory=dict[tuple[str, str], str])
    logs: list[dict[str, object]] = field(default_factory=list[dict[str, object]])
    errors: dict[str, tuple[int, str]] = field(default_factory=dict[str, tuple[int, str]])
    requests: list[dict[str, object]] = field(default_factory=list[dict[str, object]])

    # -- scripting ------------------------------------------------------------

    def returns_address(self, to: str, signature: str, address: str) -> None:
        self.calls[(to, encode_call(signature))] = encoded(["address"], [address])

    def returns_string(self, to: str, signature: str, value: str) -> None:
        self.calls[(to, encode_call(signature))] = encoded(["string"], [value])

    def returns_for(self, to: str, data: str, result: str) -> None:
        self.calls[(to, data)] = result

    def set_implementation(self, proxy: str, implementation: str) -> None:
        self.storage[(proxy, implementation_slot())] = word(implementation)

    def emit_implementation_changed(
        self, provider: str, alias: str, implementation: str, *, block: int, index: int = 0
    ) -> None:
        self.logs.append(
            {
                "address": provider,
                "topics": [EVENTS["ImplementationChanged"].topic, word(implementation)],
                "data": encoded(["string"], [alias]),
                "blockNumber": hex(block),
                "logIndex": hex(index),
                "transactionHash": "0x" + "ab" * 32,
            }
        )

    def emit_proxy_created(self, factory: str, proxy: str, *, block: int, index: int = 0) -> None:
        self.logs.append(
            {
                "address": factory,
                "topics": [EVENTS["ProxyCreated"].topic],
                "data": encoded(["address"], [proxy]),
                "blockNumber": hex(block),
                "logIndex": hex(index),
            }
        )

    # -- transport ------------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        self.requests.append(body)
        method = body["method"]
        params = body["params"]
        if method in self.errors:
            code, message = self.errors[method]
            return httpx.Response(
                200,
                json={
                    "jsonrpc": "2.0",
                    "id": body["id"],
                    "error": {"code": code, "message": message},
                },
            )
        return httpx.Response(
            200, json={"jsonrpc": "2.0", "id": body["id"], "result": self._result(method, params)}
        )

    def _result(self, method: str, params: list[object]) -> object:
        match method:
            case "eth_call":
                call = params[0]
                assert isinstance(call, dict)
                return self.calls.get((call["to"], call["data"]), "0x")
            case "eth_getCode":
                return self.code.get(str(params[0]), "0x")
            case "eth_getStorageAt":
                return self.storage.get((str(params[0]), str(params[1])), "0x" + "0" * 64)
            case "eth_blockNumber":
                return "0x10"
            case "eth_getLogs":
                query = params[0]
                assert isinstance(query, dict)
                topic = query["topics"][0]
                return [
                    entry
                    for entry in self.logs
                    if entry["address"] == query["address"]
                    and entry["topics"][0] == topic  # type: ignore[index]
                ]
            case _:
                raise AssertionError(f"unexpected method {method}")


def make_client_factory(
    handler: Callable[[httpx.Request], httpx.Response],
) -> Callable[[ResilienceConfig], ResilientClient]:
    async def async_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    def factory(resilience: ResilienceConfig) -> ResilientClient:
        client = ResilientClient(resilience)
        transport = httpx.MockTransport(async_handler)
        client._client = httpx.AsyncClient(transport=transport)  # noqa: SLF001  # type: ignore[reportPrivateUsage]
        return client

    return factory
