"""Derivation rules for ledger entities built from normalized import data."""

from __future__ import annotations

from datetime import date

from .amount import AMOUNT_ZERO, Amount
from .models import AssetLot, LedgerImportRecord, Transaction, TransactionKind


def domain_derive_share_value(price_per_share: Amount, shares: Amount) -> Amount:
    """Return gross share value `round4(price * shares)`."""

    return price_per_share * shares


def domain_build_import_record(  # pylint: disable=too-many-arguments
    account_id: str,
    reference: str | None,
    kind: TransactionKind,
    settlement_date: date,
    symbol: str,
    isin: str | None,
    shares: Amount,
    fees: Amount,
    currency: str,
    price_per_share: Amount | None = None,
    aggregate_basis: Amount | None = None,
    cash_total: Amount | None = None,
) -> LedgerImportRecord:
    """Build a consistent `{lot, transaction}` pair for one normalized row.

    Outflow quantities may arrive signed from broker exports; the record keeps
    the magnitude. Inflow transfers and splits may supply an aggregate basis
    instead of a per-share price.

    Args:
        account_id: Internal account identifier.
        reference: External transaction id, None when absent.
        kind: Ledger event kind.
        settlement_date: Settlement date of the event.
        symbol: Security symbol.
        isin: Optional security ISIN.
        shares: Share quantity, signed or unsigned.
        fees: Fee amount.
        currency: Currency code.
        price_per_share: Per-share price or basis.
        aggregate_basis: Total basis to spread over `shares`.
        cash_total: Explicit net cash total reported by the broker (dividends).

    Returns:
        LedgerImportRecord: Derived lot template and transaction.

    Raises:
        ValueError: Raised when required inputs are blank or conflicting.
        ZeroDivisionError: Raised when an aggregate basis is spread over zero shares.
    """

    if not account_id.strip():
        raise ValueError("account_id must not be blank")
    if not symbol.strip():
        raise ValueError("symbol must not be blank")
    if not currency.strip():
        raise ValueError("currency must not be blank")
    if price_per_share is not None and aggregate_basis is not None:
        raise ValueError("price_per_share and aggregate_basis are mutually exclusive")

    share_quantity = abs(shares)
    if aggregate_basis is not None:
        resolved_price = aggregate_basis / share_quantity
    else:
        resolved_price = price_per_share if price_per_share is not None else AMOUNT_ZERO

    share_value = domain_derive_share_value(resolved_price, share_quantity)
    total_amount = share_value - fees
    if kind.is_inventory_movement:
        share_value = AMOUNT_ZERO
        total_amount = AMOUNT_ZERO
    elif cash_total is not None:
        total_amount = cash_total

    normalized_isin = isin.strip() if isin is not None and isin.strip() else None
    lot = AssetLot(
        account_id=account_id,
        symbol=symbol.strip(),
        isin=normalized_isin,
        quantity=share_quantity,
        cost_basis_per_share=resolved_price,
        cost_basis_currency=currency,
        created_date=settlement_date,
    )
    transaction = Transaction(
        account_id=account_id,
        reference=reference.strip() if reference is not None and reference.strip() else None,
        kind=kind,
        settlement_date=settlement_date,
        symbol=symbol.strip(),
        shares=share_quantity,
        price_per_share=resolved_price,
        share_value=share_value,
        fees=fees,
        total_amount=total_amount,
        currency=currency,
    )
    return LedgerImportRecord(lot=lot, transaction=transaction)


def domain_sort_import_records(records: list[LedgerImportRecord]) -> list[LedgerImportRecord]:
    """Order records by settlement date with inflows first on equal dates.

    Args:
        records: Normalized import records in source order.

    Returns:
        list[LedgerImportRecord]: Stable processing order.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return sorted(
        records,
        key=lambda record: (
            record.transaction.settlement_date,
            0 if record.transaction.kind.is_inflow else 1,
        ),
    )
