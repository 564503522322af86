"""Tests for import record derivation and processing order."""

from __future__ import annotations

from datetime import date

import pytest

from lotledger.domain import (
    Amount,
    TransactionKind,
    domain_build_import_record,
    domain_sort_import_records,
)


def _build_record(kind: TransactionKind, settlement_date: date, shares: int = 10, **overrides):
    arguments = {
        "account_id": "ACC-1",
        "reference": "REF-1",
        "kind": kind,
        "settlement_date": settlement_date,
        "symbol": "ACME",
        "isin": "SE0000000001",
        "shares": Amount.from_int(shares),
        "fees": Amount.from_int(5),
        "currency": "SEK",
        "price_per_share": Amount.from_int(120),
    }
    arguments.update(overrides)
    return domain_build_import_record(**arguments)


def test_domain_build_import_record_purchase_derives_value_and_total() -> None:
    """Purchase value is price times shares and total subtracts the fee."""

    record = _build_record(TransactionKind.PURCHASE, date(2024, 1, 5), shares=4)

    assert record.transaction.share_value == Amount.from_int(480)
    assert record.transaction.total_amount == Amount.from_int(475)
    assert record.lot.quantity == Amount.from_int(4)
    assert record.lot.cost_basis_per_share == Amount.from_int(120)
    assert record.lot.created_date == date(2024, 1, 5)
    assert record.lot.lot_id is None
    assert record.transaction.transaction_id is None


def test_domain_build_import_record_normalizes_signed_outflow_quantity() -> None:
    """Negative broker quantities are stored as magnitudes."""

    record = _build_record(TransactionKind.TRANSFER_OUT, date(2024, 1, 5), shares=-7)

    assert record.transaction.shares == Amount.from_int(7)
    assert record.lot.quantity == Amount.from_int(7)


def test_domain_build_import_record_inventory_movement_has_no_cash_value() -> None:
    """Transfers and splits carry basis but zero value and total."""

    record = _build_record(
        TransactionKind.TRANSFER_IN,
        date(2024, 1, 5),
        shares=4,
        price_per_share=None,
        aggregate_basis=Amount.from_int(1000),
    )

    assert record.lot.cost_basis_per_share == Amount.from_int(250)
    assert record.transaction.price_per_share == Amount.from_int(250)
    assert record.transaction.share_value.is_zero()
    assert record.transaction.total_amount.is_zero()


def test_domain_build_import_record_cash_total_overrides_derived_total() -> None:
    """Dividend totals reported by the broker replace the derived total."""

    record = _build_record(
        TransactionKind.DIVIDEND,
        date(2024, 3, 1),
        fees=Amount.zero(),
        cash_total=Amount.from_decimal("12.34"),
    )

    assert record.transaction.total_amount == Amount(123400)


def test_domain_build_import_record_blank_optional_identifiers_become_none() -> None:
    """Blank ISIN and reference map to None."""

    record = _build_record(TransactionKind.PURCHASE, date(2024, 1, 5), isin="  ", reference="")

    assert record.lot.isin is None
    assert record.transaction.reference is None
    assert record.lot.security_key == "ACME"


def test_domain_build_import_record_rejects_conflicting_price_inputs() -> None:
    """Per-share price and aggregate basis are mutually exclusive."""

    with pytest.raises(ValueError):
        _build_record(TransactionKind.TRANSFER_IN, date(2024, 1, 5), aggregate_basis=Amount.from_int(10))


def test_domain_build_import_record_rejects_blank_symbol() -> None:
    with pytest.raises(ValueError):
        _build_record(TransactionKind.PURCHASE, date(2024, 1, 5), symbol=" ")


def test_domain_sort_import_records_orders_by_date_with_inflows_first() -> None:
    """Records sort by settlement date; on ties inflows precede other kinds."""

    sale = _build_record(TransactionKind.SALE, date(2024, 1, 5), reference="sale")
    dividend = _build_record(TransactionKind.DIVIDEND, date(2024, 1, 5), reference="dividend")
    purchase = _build_record(TransactionKind.PURCHASE, date(2024, 1, 5), reference="purchase")
    split_in = _build_record(
        TransactionKind.SPLIT_IN,
        date(2024, 1, 5),
        reference="split-in",
        price_per_share=None,
        aggregate_basis=Amount.from_int(100),
    )
    early_sale = _build_record(TransactionKind.SALE, date(2024, 1, 4), reference="early-sale")

    ordered = domain_sort_import_records([sale, dividend, purchase, split_in, early_sale])

    assert [record.transaction.reference for record in ordered] == [
        "early-sale",
        "purchase",
        "split-in",
        "sale",
        "dividend",
    ]


def test_domain_transaction_kind_classification() -> None:
    assert TransactionKind.SPLIT_IN.is_inflow
    assert TransactionKind.SPLIT_OUT.is_outflow
    assert TransactionKind.TRANSFER_OUT.is_inventory_movement
    assert not TransactionKind.SALE.is_inventory_movement
    assert TransactionKind.QUALIFIED_DIVIDEND.is_cash_only
    assert not TransactionKind.DIVIDEND.is_inflow
    assert not TransactionKind.DIVIDEND.is_outflow
