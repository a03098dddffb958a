"""Pydantic models describing ``zos.<network>.json`` network files."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class NetworkFileBaseModel(BaseModel):
    # unknown keys are kept so saving never drops data written by other tools
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class AddressRef(NetworkFileBaseModel):
    address: str


class StdlibRef(NetworkFileBaseModel):
    address: str
    name: str | None = None
    version: str | None = None


class ContractPayload(NetworkFileBaseModel):
    address: str
    body_bytecode_hash: str | None = Field(default=None, alias="bodyBytecodeHash")


class ProxyPayload(NetworkFileBaseModel):
    address: str
    implementation: str


class NetworkFilePayload(NetworkFileBaseModel):
    lib: bool = False
    version: str | None = None
    app: AddressRef | None = None
    package: AddressRef | None = None
    provider: AddressRef | None = None
    stdlib: StdlibRef | None = None
    contracts: dict[str, ContractPayload] = Field(default_factory=dict[str, ContractPayload])
    proxies: dict[str, list[ProxyPayload]] = Field(default_factory=dict[str, list[ProxyPayload]])
