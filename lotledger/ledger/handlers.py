"""Per-kind transaction handlers applied inside one ledger unit of work."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable

from lotledger.db import LedgerUnitOfWorkPort
from lotledger.domain import AMOUNT_ZERO, LedgerImportRecord, Transaction, TransactionKind

from .allocator import ledger_allocate_outflow, ledger_build_outflow_transactions, ledger_compute_split_basis
from .interfaces import LedgerRecordOutcome, SplitWithoutPositionError

_LOGGER = logging.getLogger(__name__)

LedgerHandler = Callable[[LedgerUnitOfWorkPort, LedgerImportRecord], LedgerRecordOutcome]


def _ledger_without_cash_values(transaction: Transaction) -> Transaction:
    """Zero share value and total for inventory-movement transactions."""

    return replace(transaction, share_value=AMOUNT_ZERO, total_amount=AMOUNT_ZERO)


def ledger_handle_inflow(unit_of_work: LedgerUnitOfWorkPort, record: LedgerImportRecord) -> LedgerRecordOutcome:
    """Create a lot for a Purchase or TransferIn and link its transaction.

    Args:
        unit_of_work: Active ledger unit of work.
        record: Normalized import record.

    Returns:
        LedgerRecordOutcome: Created lot and transaction identifiers.

    Raises:
        ValueError: Raised when the record kind is not Purchase or TransferIn.
    """

    kind = record.transaction.kind
    if kind not in (TransactionKind.PURCHASE, TransactionKind.TRANSFER_IN):
        raise ValueError(f"unsupported inflow kind={kind.value}")

    lot_id = unit_of_work.db_lot_create(record.lot)
    transaction = replace(record.transaction, lot_id=lot_id)
    if kind.is_inventory_movement:
        transaction = _ledger_without_cash_values(transaction)
    transaction_id = unit_of_work.db_transaction_create(transaction)
    return LedgerRecordOutcome(transaction_ids=(transaction_id,), created_lot_ids=(lot_id,))


def ledger_handle_split_in(unit_of_work: LedgerUnitOfWorkPort, record: LedgerImportRecord) -> LedgerRecordOutcome:
    """Create the post-split lot at the basis carried by pre-split lots.

    Split legs are matched by symbol because the post-split shares may arrive
    under a new ISIN.

    Args:
        unit_of_work: Active ledger unit of work.
        record: Normalized SplitIn import record.

    Returns:
        LedgerRecordOutcome: Created lot and transaction identifiers.

    Raises:
        SplitWithoutPositionError: Raised when no open lots precede the split.
        ZeroDivisionError: Raised when the split delivers zero shares.
    """

    lot_template = record.lot
    lots_before = unit_of_work.db_lot_list_open(
        account_id=lot_template.account_id,
        symbol=lot_template.symbol,
        isin=None,
        before_date=record.transaction.settlement_date,
    )
    if not lots_before:
        raise SplitWithoutPositionError(symbol=lot_template.symbol, settlement_date=record.transaction.settlement_date)
    split_basis = ledger_compute_split_basis(lots_before, lot_template.quantity)
    _LOGGER.debug(
        "split-in basis for %s recomputed from %d lots: %s",
        lot_template.security_key,
        len(lots_before),
        split_basis,
    )

    lot_id = unit_of_work.db_lot_create(replace(lot_template, cost_basis_per_share=split_basis))
    transaction = _ledger_without_cash_values(
        replace(record.transaction, lot_id=lot_id, price_per_share=split_basis)
    )
    transaction_id = unit_of_work.db_transaction_create(transaction)
    return LedgerRecordOutcome(transaction_ids=(transaction_id,), created_lot_ids=(lot_id,))


def ledger_handle_allocated_outflow(
    unit_of_work: LedgerUnitOfWorkPort,
    record: LedgerImportRecord,
) -> LedgerRecordOutcome:
    """Draw a Sale or TransferOut from open lots, highest basis first.

    Args:
        unit_of_work: Active ledger unit of work.
        record: Normalized outflow import record.

    Returns:
        LedgerRecordOutcome: Created transactions and updated lots.

    Raises:
        AllocationShortfallError: Raised when open lots hold fewer shares than requested.
        ValueError: Raised when the record kind is not Sale or TransferOut.
    """

    source = record.transaction
    if source.kind not in (TransactionKind.SALE, TransactionKind.TRANSFER_OUT):
        raise ValueError(f"unsupported allocated outflow kind={source.kind.value}")

    open_lots = unit_of_work.db_lot_list_open(
        account_id=source.account_id,
        symbol=record.lot.symbol,
        isin=record.lot.isin,
    )
    allocations = ledger_allocate_outflow(open_lots, source.shares, record.lot.security_key)
    transactions = ledger_build_outflow_transactions(source, allocations)

    transaction_ids: list[int] = []
    updated_lot_ids: list[str] = []
    for allocation, transaction in zip(allocations, transactions):
        updated_lot = allocation.allocation_updated_lot()
        unit_of_work.db_lot_update_quantity(updated_lot.lot_id, updated_lot.quantity)
        unit_of_work.db_lot_history_append(updated_lot, source.settlement_date)
        transaction_ids.append(unit_of_work.db_transaction_create(transaction))
        updated_lot_ids.append(updated_lot.lot_id)

    return LedgerRecordOutcome(transaction_ids=tuple(transaction_ids), updated_lot_ids=tuple(updated_lot_ids))


def ledger_handle_split_out(unit_of_work: LedgerUnitOfWorkPort, record: LedgerImportRecord) -> LedgerRecordOutcome:
    """Close every open pre-split lot of the symbol.

    A symbol without open lots before the settlement date is left untouched.

    Args:
        unit_of_work: Active ledger unit of work.
        record: Normalized SplitOut import record.

    Returns:
        LedgerRecordOutcome: Created transactions and updated lots.

    Raises:
        LedgerPersistenceError: Raised when a storage operation fails.
    """

    source = record.transaction
    lots_before = unit_of_work.db_lot_list_open(
        account_id=source.account_id,
        symbol=record.lot.symbol,
        isin=None,
        before_date=source.settlement_date,
    )

    transaction_ids: list[int] = []
    updated_lot_ids: list[str] = []
    for lot in lots_before:
        closed_lot = lot.with_quantity(AMOUNT_ZERO)
        unit_of_work.db_lot_update_quantity(closed_lot.lot_id, closed_lot.quantity)
        unit_of_work.db_lot_history_append(closed_lot, source.settlement_date)
        transaction = replace(
            source,
            lot_id=lot.lot_id,
            shares=lot.quantity,
            price_per_share=lot.cost_basis_per_share,
            share_value=AMOUNT_ZERO,
            fees=AMOUNT_ZERO,
            total_amount=AMOUNT_ZERO,
        )
        transaction_ids.append(unit_of_work.db_transaction_create(transaction))
        updated_lot_ids.append(lot.lot_id)

    return LedgerRecordOutcome(transaction_ids=tuple(transaction_ids), updated_lot_ids=tuple(updated_lot_ids))


def ledger_handle_cash_event(unit_of_work: LedgerUnitOfWorkPort, record: LedgerImportRecord) -> LedgerRecordOutcome:
    """Persist a dividend as a cash-only transaction without lot interaction."""

    transaction = replace(record.transaction, lot_id=None)
    transaction_id = unit_of_work.db_transaction_create(transaction)
    return LedgerRecordOutcome(transaction_ids=(transaction_id,))


LEDGER_HANDLERS: dict[TransactionKind, LedgerHandler] = {
    TransactionKind.PURCHASE: ledger_handle_inflow,
    TransactionKind.TRANSFER_IN: ledger_handle_inflow,
    TransactionKind.SPLIT_IN: ledger_handle_split_in,
    TransactionKind.SALE: ledger_handle_allocated_outflow,
    TransactionKind.TRANSFER_OUT: ledger_handle_allocated_outflow,
    TransactionKind.SPLIT_OUT: ledger_handle_split_out,
    TransactionKind.DIVIDEND: ledger_handle_cash_event,
    TransactionKind.QUALIFIED_DIVIDEND: ledger_handle_cash_event,
}
