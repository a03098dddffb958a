"""Pydantic models describing Ethereum JSON-RPC payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _parse_quantity(value: int | str | None) -> int:
    if value is None:
        return 0
    if isinstance(value, int):
        return value
    return int(value, 16) if value.lower().startswith("0x") else int(value)


class RpcBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RpcErrorPayload(RpcBaseModel):
    code: int
    message: str
    data: object | None = None


class RpcResponse(RpcBaseModel):
    jsonrpc: str = "2.0"
    id: int | str | None = None
    result: object | None = None
    error: RpcErrorPayload | None = None


class LogPayload(RpcBaseModel):
    address: str
    topics: list[str]
    data: str = "0x"
    block_number: int = Field(default=0, alias="blockNumber")
    log_index: int = Field(default=0, alias="logIndex")
    transaction_hash: str | None = Field(default=None, alias="transactionHash")
    removed: bool = False

    @field_validator("block_number", "log_index", mode="before")
    @classmethod
    def _parse_int(cls, value: int | str | None) -> int:
        return _parse_quantity(value)
