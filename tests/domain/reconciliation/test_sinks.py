from __future__ import annotations

import logging
from io import StringIO

import pytest
from rich.console import Console

from deploysync.domain.descriptor import ContractEntry, NetworkDescriptor, ProxyEntry
from deploysync.domain.reconciliation import (
    NONE,
    Comparator,
    Discrepancy,
    DiscrepancyKind,
    Fetcher,
    OutcomeSink,
)
from deploysync.domain.reconciliation.sinks import DESCRIPTIONS, CollectingSink, describe
from tests.support.ledger import STDLIB, addr


@pytest.fixture
def descriptor() -> NetworkDescriptor:
    return NetworkDescriptor(
        app_address=addr("1"),
        version="1.0.0",
        package_address=addr("2"),
        provider_address=addr("3"),
        stdlib_address=STDLIB,
        stdlib_name="openzeppelin-zos",
        stdlib_version="1.9.0",
        contracts={"Token": ContractEntry(address=addr("a"), content_hash="h1")},
        proxies=[ProxyEntry(alias="Token", address=addr("c"), implementation=addr("a"))],
    )


def test_every_kind_has_a_description() -> None:
    assert set(DESCRIPTIONS) == set(DiscrepancyKind)


def test_sinks_satisfy_outcome_sink_protocol(descriptor: NetworkDescriptor) -> None:
    assert isinstance(Fetcher(descriptor), OutcomeSink)
    assert isinstance(Comparator(console=Console(file=StringIO())), OutcomeSink)
    assert isinstance(CollectingSink(), OutcomeSink)


def test_describe_formats_metadata() -> None:
    discrepancy = Discrepancy(
        kind=DiscrepancyKind.MULTIPLE_PROXY_IMPLEMENTATIONS,
        expected="one",
        observed=2,
        metadata={"implementation": addr("a"), "aliases": ("Token", "TokenV2")},
    )

    assert describe(discrepancy) == (
        f"The same implementation address {addr('a')} was registered "
        "under many aliases (Token, TokenV2)"
    )


def test_describe_falls_back_to_template_without_metadata() -> None:
    discrepancy = Discrepancy(
        kind=DiscrepancyKind.UNREGISTERED_LOCAL_CONTRACT, expected="one", observed=NONE
    )

    assert describe(discrepancy) == DESCRIPTIONS[DiscrepancyKind.UNREGISTERED_LOCAL_CONTRACT]


def test_fetcher_updates_scalar_fields(descriptor: NetworkDescriptor) -> None:
    fetcher = Fetcher(descriptor)

    fetcher.on_discrepancy(Discrepancy(DiscrepancyKind.MISMATCHING_VERSION, "1.0.0", "1.1.0"))
    fetcher.on_discrepancy(Discrepancy(DiscrepancyKind.MISMATCHING_PACKAGE, addr("2"), addr("6")))
    fetcher.on_discrepancy(Discrepancy(DiscrepancyKind.MISMATCHING_PROVIDER, addr("3"), addr("7")))

    assert descriptor.version == "1.1.0"
    assert descriptor.package_address == addr("6")
    assert descriptor.provider_address == addr("7")
    assert fetcher.applied == 3


def test_fetcher_unsets_stdlib_when_ledger_has_none(descriptor: NetworkDescriptor) -> None:
    Fetcher(descriptor).on_discrepancy(
        Discrepancy(DiscrepancyKind.MISMATCHING_STDLIB, STDLIB, NONE)
    )

    assert descriptor.stdlib_address is None
    assert descriptor.stdlib_name is None
    assert descriptor.stdlib_version is None


def test_fetcher_replaces_stdlib_address(descriptor: NetworkDescriptor) -> None:
    Fetcher(descriptor).on_discrepancy(
        Discrepancy(DiscrepancyKind.MISMATCHING_STDLIB, STDLIB, addr("8"))
    )

    assert descriptor.stdlib_address == addr("8")
    assert descriptor.stdlib_name is None


def test_fetcher_converges_contracts(descriptor: NetworkDescriptor) -> None:
    fetcher = Fetcher(descriptor)

    fetcher.on_discrepancy(
        Discrepancy(
            DiscrepancyKind.UNKNOWN_REMOTE_CONTRACT,
            NONE,
            "one",
            {"alias": "Vault", "address": addr("b"), "content_hash": "h2"},
        )
    )
    fetcher.on_discrepancy(
        Discrepancy(
            DiscrepancyKind.MISMATCHING_CONTRACT_ADDRESS,
            addr("a"),
            addr("e"),
            {"alias": "Token", "address": addr("e")},
        )
    )
    fetcher.on_discrepancy(
        Discrepancy(
            DiscrepancyKind.MISMATCHING_CONTRACT_BYTECODE,
            "h1",
            "h3",
            {"alias": "Token", "address": addr("e"), "content_hash": "h3"},
        )
    )

    assert descriptor.contract("Vault") == ContractEntry(address=addr("b"), content_hash="h2")
    assert descriptor.contract("Token") == ContractEntry(address=addr("e"), content_hash="h3")

    fetcher.on_discrepancy(
        Discrepancy(
            DiscrepancyKind.UNREGISTERED_LOCAL_CONTRACT,
            "one",
            NONE,
            {"alias": "Vault", "address": addr("b")},
        )
    )

    assert descriptor.contract_aliases() == {"Token"}


def test_fetcher_converges_proxies(descriptor: NetworkDescriptor) -> None:
    fetcher = Fetcher(descriptor)
    metadata = {"alias": "Vault", "address": addr("c"), "implementation": addr("b")}

    fetcher.on_discrepancy(
        Discrepancy(DiscrepancyKind.MISMATCHING_PROXY_ALIAS, "Token", "Vault", metadata)
    )
    fetcher.on_discrepancy(
        Discrepancy(
            DiscrepancyKind.MISMATCHING_PROXY_IMPLEMENTATION, addr("a"), addr("b"), metadata
        )
    )
    fetcher.on_discrepancy(
        Discrepancy(
            DiscrepancyKind.MISSING_REMOTE_PROXY,
            NONE,
            "one",
            {"alias": "Token", "address": addr("d"), "implementation": addr("a")},
        )
    )

    assert descriptor.proxies_list() == [
        ProxyEntry(alias="Vault", address=addr("c"), implementation=addr("b")),
        ProxyEntry(alias="Token", address=addr("d"), implementation=addr("a")),
    ]

    fetcher.on_discrepancy(
        Discrepancy(DiscrepancyKind.UNREGISTERED_LOCAL_PROXY, "one", NONE, metadata)
    )

    assert [proxy.address for proxy in descriptor.proxies_list()] == [addr("d")]


def test_fetcher_only_warns_on_ledger_integrity_conditions(
    descriptor: NetworkDescriptor,
    caplog: pytest.LogCaptureFixture,
) -> None:
    fetcher = Fetcher(descriptor)
    before = descriptor.proxies_list()

    with caplog.at_level(logging.WARNING):
        fetcher.on_discrepancy(
            Discrepancy(
                DiscrepancyKind.UNREGISTERED_PROXY_IMPLEMENTATION,
                "one",
                NONE,
                {"address": addr("c"), "implementation": addr("9")},
            )
        )

    assert descriptor.proxies_list() == before
    assert fetcher.applied == 0
    assert "is not registered in project" in caplog.text


def test_comparator_reports_accumulated_mismatches() -> None:
    output = StringIO()
    comparator = Comparator(console=Console(file=output, width=200))

    comparator.on_discrepancy(Discrepancy(DiscrepancyKind.MISMATCHING_VERSION, "1.0.0", "1.1.0"))
    comparator.on_discrepancy(
        Discrepancy(
            DiscrepancyKind.UNREGISTERED_LOCAL_CONTRACT,
            "one",
            NONE,
            {"alias": "Token", "address": addr("a")},
        )
    )
    comparator.on_end_checking()

    assert comparator.passed is False
    assert [report.description for report in comparator.reports] == [
        "Version does not match",
        f"Contract Token at {addr('a')} is not registered",
    ]
    rendered = output.getvalue()
    assert "Version does not match" in rendered
    assert "1.1.0" in rendered


def test_comparator_passes_without_mismatches() -> None:
    output = StringIO()
    comparator = Comparator(console=Console(file=output))

    assert comparator.passed is None
    comparator.on_end_checking()

    assert comparator.passed is True
    assert "No mismatches were found" in output.getvalue()
