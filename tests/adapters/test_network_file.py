from __future__ import annotations

import json
from pathlib import Path  # noqa: TC003

import pytest

from deploysync.adapters.network_file import (
    NetworkFileFormatError,
    NetworkFileNotFoundError,
    load_network_file,
    save_network_file,
)
from deploysync.domain.descriptor import ContractEntry, ProxyEntry
from tests.support.ledger import APP, PACKAGE, PROVIDER, STDLIB, addr


@pytest.fixture
def network_file_data() -> dict[str, object]:
    return {
        "contracts": {
            "Token": {
                "address": addr("a"),
                "constructorCode": "0x6080",
                "bodyBytecodeHash": "0xh-token",
                "storage": [],
            }
        },
        "proxies": {
            "Token": [
                {"address": addr("c"), "version": "1.0.0", "implementation": addr("a")},
                {"address": addr("d"), "version": "1.0.0", "implementation": addr("a")},
            ]
        },
        "app": {"address": APP},
        "package": {"address": PACKAGE},
        "provider": {"address": PROVIDER},
        "stdlib": {"address": STDLIB, "name": "openzeppelin-zos", "version": "1.9.0"},
        "version": "1.0.0",
        "zosversion": "2",
    }


def _write(path: Path, data: object) -> Path:
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_load_network_file_builds_descriptor(
    tmp_path: Path, network_file_data: dict[str, object]
) -> None:
    descriptor = load_network_file(_write(tmp_path / "zos.dev.json", network_file_data))

    assert descriptor.is_library is False
    assert descriptor.version == "1.0.0"
    assert descriptor.deployment_address == APP
    assert descriptor.provider_address == PROVIDER
    assert descriptor.stdlib_name == "openzeppelin-zos"
    assert descriptor.contract("Token") == ContractEntry(
        address=addr("a"), content_hash="0xh-token"
    )
    assert descriptor.proxies_list() == [
        ProxyEntry(alias="Token", address=addr("c"), implementation=addr("a")),
        ProxyEntry(alias="Token", address=addr("d"), implementation=addr("a")),
    ]
    assert descriptor.extras == {"zosversion": "2"}


def test_save_keeps_fields_the_checker_does_not_own(
    tmp_path: Path, network_file_data: dict[str, object]
) -> None:
    path = _write(tmp_path / "zos.dev.json", network_file_data)
    descriptor = load_network_file(path)

    descriptor.set_contract_content_hash("Token", "0xh-new")
    descriptor.update_proxy(addr("d"), implementation=addr("b"))
    save_network_file(path, descriptor)

    saved = json.loads(path.read_text(encoding="utf-8"))
    assert saved["zosversion"] == "2"
    assert saved["contracts"]["Token"] == {
        "address": addr("a"),
        "bodyBytecodeHash": "0xh-new",
        "constructorCode": "0x6080",
        "storage": [],
    }
    assert saved["proxies"]["Token"][1] == {
        "address": addr("d"),
        "implementation": addr("b"),
        "version": "1.0.0",
    }


def test_save_drops_unset_stdlib(tmp_path: Path, network_file_data: dict[str, object]) -> None:
    path = _write(tmp_path / "zos.dev.json", network_file_data)
    descriptor = load_network_file(path)

    descriptor.unset_stdlib()
    save_network_file(path, descriptor)

    assert "stdlib" not in json.loads(path.read_text(encoding="utf-8"))
    assert load_network_file(path).stdlib_address is None


def test_library_file_reads_package_as_deployment(tmp_path: Path) -> None:
    path = _write(
        tmp_path / "zos.dev.json",
        {"lib": True, "version": "2.0.0", "package": {"address": PACKAGE}, "contracts": {}},
    )

    descriptor = load_network_file(path)

    assert descriptor.is_library is True
    assert descriptor.deployment_address == PACKAGE
    assert descriptor.proxies == []


def test_missing_network_file(tmp_path: Path) -> None:
    path = tmp_path / "zos.nowhere.json"

    with pytest.raises(NetworkFileNotFoundError) as excinfo:
        load_network_file(path)

    assert excinfo.value.path == path


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps({"contracts": {"Token": {"bodyBytecodeHash": "0x1"}}}),
        json.dumps({"proxies": {"Token": {"address": "0x1"}}}),
    ],
)
def test_invalid_network_file(tmp_path: Path, content: str) -> None:
    path = tmp_path / "zos.dev.json"
    path.write_text(content, encoding="utf-8")

    with pytest.raises(NetworkFileFormatError):
        load_network_file(path)
