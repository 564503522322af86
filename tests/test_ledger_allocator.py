"""Tests for highest-cost-basis-first allocation primitives."""

from __future__ import annotations

from datetime import date

import pytest

from lotledger.domain import Amount, AssetLot, Transaction, TransactionKind
from lotledger.ledger import (
    AllocationShortfallError,
    ledger_allocate_outflow,
    ledger_build_outflow_transactions,
    ledger_compute_split_basis,
    ledger_sort_lots_for_outflow,
)


def _lot(lot_id: str, basis: int, quantity: int, created: date = date(2024, 1, 1)) -> AssetLot:
    return AssetLot(
        account_id="ACC-1",
        symbol="ACME",
        isin=None,
        quantity=Amount.from_int(quantity),
        cost_basis_per_share=Amount.from_int(basis),
        cost_basis_currency="USD",
        created_date=created,
        lot_id=lot_id,
    )


def _outflow(kind: TransactionKind, shares: int, price: int, fee: int) -> Transaction:
    share_value = Amount.from_int(price * shares)
    return Transaction(
        account_id="ACC-1",
        reference="REF-9",
        kind=kind,
        settlement_date=date(2024, 6, 1),
        symbol="ACME",
        shares=Amount.from_int(shares),
        price_per_share=Amount.from_int(price),
        share_value=share_value,
        fees=Amount.from_int(fee),
        total_amount=share_value - Amount.from_int(fee),
        currency="USD",
    )


def test_ledger_allocate_outflow_draws_from_highest_basis_first() -> None:
    """With bases [50, 30, 70] a small sale draws only from the 70 lot."""

    lots = [_lot("L-50", 50, 10), _lot("L-30", 30, 10), _lot("L-70", 70, 10)]

    allocations = ledger_allocate_outflow(lots, Amount.from_int(4), "ACME")

    assert len(allocations) == 1
    assert allocations[0].lot.lot_id == "L-70"
    assert allocations[0].drawn == Amount.from_int(4)
    assert allocations[0].remaining == Amount.from_int(6)


def test_ledger_allocate_outflow_spans_lots_in_basis_order() -> None:
    """A sale larger than one lot continues into the next-highest basis."""

    lots = [_lot("L-60", 60, 5), _lot("L-80", 80, 5)]

    allocations = ledger_allocate_outflow(lots, Amount.from_int(8), "ACME")

    assert [(allocation.lot.lot_id, allocation.drawn) for allocation in allocations] == [
        ("L-80", Amount.from_int(5)),
        ("L-60", Amount.from_int(3)),
    ]
    assert allocations[0].allocation_updated_lot().quantity.is_zero()
    assert allocations[1].allocation_updated_lot().quantity == Amount.from_int(2)


def test_ledger_allocate_outflow_skips_closed_lots_and_stops_when_satisfied() -> None:
    lots = [_lot("L-90", 90, 0), _lot("L-70", 70, 5), _lot("L-10", 10, 5)]

    allocations = ledger_allocate_outflow(lots, Amount.from_int(5), "ACME")

    assert [allocation.lot.lot_id for allocation in allocations] == ["L-70"]


def test_ledger_allocate_outflow_raises_shortfall_without_plan() -> None:
    """Requesting more than the open lots hold raises with the available total."""

    with pytest.raises(AllocationShortfallError) as error_info:
        ledger_allocate_outflow([_lot("L-1", 100, 3)], Amount.from_int(5), "ACME")

    assert error_info.value.security_key == "ACME"
    assert error_info.value.requested == Amount.from_int(5)
    assert error_info.value.available == Amount.from_int(3)


def test_ledger_allocate_outflow_rejects_negative_request() -> None:
    with pytest.raises(ValueError):
        ledger_allocate_outflow([_lot("L-1", 100, 3)], Amount.from_int(-1), "ACME")


def test_ledger_sort_lots_for_outflow_breaks_ties_by_date_then_id() -> None:
    """Equal bases keep the oldest lot first, then the lower lot id."""

    lots = [
        _lot("B", 50, 1, date(2024, 2, 1)),
        _lot("C", 50, 1, date(2024, 1, 1)),
        _lot("A", 50, 1, date(2024, 2, 1)),
    ]

    assert [lot.lot_id for lot in ledger_sort_lots_for_outflow(lots)] == ["C", "A", "B"]


def test_ledger_build_outflow_transactions_attributes_fee_to_first_allocation() -> None:
    """A split sale carries the whole fee once; net totals sum to value minus fee."""

    lots = [_lot("L-80", 80, 5), _lot("L-60", 60, 5)]
    source = _outflow(TransactionKind.SALE, shares=8, price=100, fee=10)
    allocations = ledger_allocate_outflow(lots, source.shares, "ACME")

    transactions = ledger_build_outflow_transactions(source, allocations)

    assert [transaction.fees for transaction in transactions] == [Amount.from_int(10), Amount.zero()]
    assert [transaction.lot_id for transaction in transactions] == ["L-80", "L-60"]
    assert [transaction.share_value for transaction in transactions] == [Amount.from_int(500), Amount.from_int(300)]
    net_total = sum((transaction.total_amount for transaction in transactions), Amount.zero())
    assert net_total == Amount.from_int(100 * 8 - 10)


def test_ledger_build_outflow_transactions_zeroes_inventory_movements() -> None:
    lots = [_lot("L-80", 80, 5)]
    source = _outflow(TransactionKind.TRANSFER_OUT, shares=2, price=0, fee=3)
    allocations = ledger_allocate_outflow(lots, source.shares, "ACME")

    (transaction,) = ledger_build_outflow_transactions(source, allocations)

    assert transaction.shares == Amount.from_int(2)
    assert transaction.share_value.is_zero()
    assert transaction.fees.is_zero()
    assert transaction.total_amount.is_zero()


def test_ledger_build_outflow_transactions_rejects_inflow_source() -> None:
    source = _outflow(TransactionKind.PURCHASE, shares=1, price=1, fee=0)

    with pytest.raises(ValueError):
        ledger_build_outflow_transactions(source, ())


def test_ledger_compute_split_basis_spreads_total_basis() -> None:
    """Basis of pre-split lots is spread over the new share count."""

    lots = [_lot("L-1", 100, 10), _lot("L-2", 40, 5)]

    assert ledger_compute_split_basis(lots, Amount.from_int(30)) == Amount(400000)
    assert ledger_compute_split_basis([], Amount.from_int(30)).is_zero()
    with pytest.raises(ZeroDivisionError):
        ledger_compute_split_basis(lots, Amount.zero())
