"""Minimal ABI helpers for the contracts read during a status check."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from eth_abi import decode, encode
from web3 import Web3

SWARM_METADATA: Final[re.Pattern[str]] = re.compile(r"a165627a7a72305820[0-9a-f]{64}0029$")
IMPLEMENTATION_SLOT_LABEL: Final[str] = "org.zeppelinos.proxy.implementation"


def keccak_hex(*, text: str | None = None, data: bytes | None = None) -> str:
    if text is not None:
        digest = Web3.keccak(text=text)
    elif data is not None:
        digest = Web3.keccak(data)
    else:
        raise ValueError("keccak_hex requires text or data")
    return "0x" + bytes(digest).hex()


def selector(signature: str) -> str:
    """Return the 4-byte function selector for ``signature`` as hex."""

    return keccak_hex(text=signature)[:10]


def strip_0x(value: str) -> str:
    return value[2:] if value[:2].lower() == "0x" else value


def hex_to_bytes(value: str) -> bytes:
    return bytes.fromhex(strip_0x(value))


def normalize_address(value: str) -> str:
    """Lower-case a 0x-prefixed address, or take the trailing 20 bytes of a word."""

    body = strip_0x(value).lower()
    if len(body) < 40:  # noqa: PLR2004
        body = body.rjust(40, "0")
    return "0x" + body[-40:]


def encode_call(
    signature: str,
    arg_types: tuple[str, ...] = (),
    args: tuple[object, ...] = (),
) -> str:
    payload = encode(list(arg_types), list(args)) if arg_types else b""
    return selector(signature) + payload.hex()


def decode_address(data: str) -> str:
    (address,) = decode(["address"], hex_to_bytes(data))
    return normalize_address(str(address))


def decode_string(data: str) -> str:
    (value,) = decode(["string"], hex_to_bytes(data))
    return str(value)


def implementation_slot() -> str:
    return keccak_hex(text=IMPLEMENTATION_SLOT_LABEL)


def bytecode_digest(code: str) -> str:
    """Fingerprint runtime code, ignoring the compiler's trailing Swarm metadata."""

    body = SWARM_METADATA.sub("", strip_0x(code).lower())
    return keccak_hex(data=bytes.fromhex(body))


@dataclass(slots=True, frozen=True)
class EventInput:
    name: str
    type: str
    indexed: bool = False


@dataclass(slots=True, frozen=True)
class EventSpec:
    """Event ABI fragment able to decode raw log topics and data."""

    name: str
    inputs: tuple[EventInput, ...]

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(item.type for item in self.inputs)})"

    @property
    def topic(self) -> str:
        return keccak_hex(text=self.signature)

    def decode(self, topics: list[str], data: str) -> dict[str, object]:
        indexed = [item for item in self.inputs if item.indexed]
        unindexed = [item for item in self.inputs if not item.indexed]
        if len(topics) < len(indexed) + 1:
            raise ValueError(f"Log for {self.signature} is missing indexed topics")

        args: dict[str, object] = {}
        for item, topic in zip(indexed, topics[1:], strict=False):
            if item.type == "address":
                args[item.name] = normalize_address(topic)
            else:
                # dynamic indexed values are only available as their hash
                args[item.name] = topic.lower()

        if unindexed:
            values = decode([item.type for item in unindexed], hex_to_bytes(data))
            for item, value in zip(unindexed, values, strict=True):
                args[item.name] = normalize_address(str(value)) if item.type == "address" else value
        return args


EVENTS: Final[dict[str, EventSpec]] = {
    "ImplementationChanged": EventSpec(
        name="ImplementationChanged",
        inputs=(
            EventInput("contractName", "string"),
            EventInput("implementation", "address", indexed=True),
        ),
    ),
    "ProxyCreated": EventSpec(
        name="ProxyCreated",
        inputs=(EventInput("proxy", "address"),),
    ),
}
