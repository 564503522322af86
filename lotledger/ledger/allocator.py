"""Highest-cost-basis-first lot allocation primitives."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Sequence

from lotledger.domain import AMOUNT_ZERO, Amount, AssetLot, Transaction, domain_derive_share_value

from .interfaces import AllocationShortfallError

LEDGER_ALLOCATION_POLICY = "highest_cost_basis_first"


@dataclass(frozen=True)
class LotAllocation:
    """Shares drawn from one lot to satisfy part of an outflow.

    Attributes:
        lot: Lot state before the draw.
        drawn: Quantity taken from the lot.
    """

    lot: AssetLot
    drawn: Amount

    @property
    def remaining(self) -> Amount:
        return self.lot.quantity - self.drawn

    def allocation_updated_lot(self) -> AssetLot:
        """Return the lot state after the draw."""

        return self.lot.with_quantity(self.remaining)


def ledger_sort_lots_for_outflow(lots: Iterable[AssetLot]) -> list[AssetLot]:
    """Order lots by cost basis descending, then creation date and lot id.

    Args:
        lots: Candidate lots of one security.

    Returns:
        list[AssetLot]: Lots in allocation order.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return sorted(
        lots,
        key=lambda lot: (-lot.cost_basis_per_share.mantissa, lot.created_date, lot.lot_id or ""),
    )


def ledger_allocate_outflow(lots: Iterable[AssetLot], requested: Amount, security_key: str) -> tuple[LotAllocation, ...]:
    """Plan which lots satisfy an outflow of `requested` shares.

    Nothing is mutated: the returned plan is applied by the caller, so a
    shortfall leaves no partial state behind.

    Args:
        lots: Open lots of the security, any order.
        requested: Non-negative outflow quantity.
        security_key: ISIN or symbol for error reporting.

    Returns:
        tuple[LotAllocation, ...]: One allocation per lot touched, in draw order.

    Raises:
        ValueError: Raised when requested quantity or a lot quantity is negative.
        AllocationShortfallError: Raised when open lots hold fewer shares than requested.
    """

    if requested.is_negative():
        raise ValueError(f"requested outflow must not be negative, got {requested}")

    ordered_lots = ledger_sort_lots_for_outflow(lots)
    shares_remaining = requested
    allocations: list[LotAllocation] = []

    for lot in ordered_lots:
        if lot.quantity.is_negative():
            raise ValueError(f"lot {lot.lot_id} has negative quantity {lot.quantity}")
        if lot.quantity.is_zero():
            continue
        if shares_remaining.is_zero():
            break

        drawn = min(lot.quantity, shares_remaining)
        shares_remaining -= drawn
        allocations.append(LotAllocation(lot=lot, drawn=drawn))

    if not shares_remaining.is_zero():
        available = sum((lot.quantity for lot in ordered_lots), AMOUNT_ZERO)
        raise AllocationShortfallError(security_key=security_key, requested=requested, available=available)

    return tuple(allocations)


def ledger_build_outflow_transactions(
    source: Transaction,
    allocations: Sequence[LotAllocation],
) -> list[Transaction]:
    """Derive one transaction per allocation from the originating outflow.

    Economic sales put the whole source fee on the first allocation. Inventory
    movements carry zero value, fee and total on every allocation.

    Args:
        source: Outflow transaction from the import record.
        allocations: Allocation plan for the outflow.

    Returns:
        list[Transaction]: Per-lot transactions in allocation order.

    Raises:
        ValueError: Raised when source kind is not an outflow.
    """

    if not source.kind.is_outflow:
        raise ValueError(f"transaction kind={source.kind.value} is not an outflow")

    transactions: list[Transaction] = []
    for index, allocation in enumerate(allocations):
        if source.kind.is_inventory_movement:
            share_value = AMOUNT_ZERO
            fees = AMOUNT_ZERO
            total_amount = AMOUNT_ZERO
        else:
            share_value = domain_derive_share_value(source.price_per_share, allocation.drawn)
            fees = source.fees if index == 0 else AMOUNT_ZERO
            total_amount = share_value - fees

        transactions.append(
            replace(
                source,
                lot_id=allocation.lot.lot_id,
                shares=allocation.drawn,
                share_value=share_value,
                fees=fees,
                total_amount=total_amount,
                transaction_id=None,
            )
        )
    return transactions


def ledger_compute_split_basis(lots_before: Iterable[AssetLot], new_shares: Amount) -> Amount:
    """Spread the basis of pre-split lots over the post-split share count.

    Args:
        lots_before: Open lots of the security created before the split date.
        new_shares: Share quantity received by the split.

    Returns:
        Amount: Per-share basis quantized to scale 4.

    Raises:
        ZeroDivisionError: Raised when `new_shares` is zero.
    """

    total_basis = sum(
        (lot.cost_basis_per_share * lot.quantity for lot in lots_before),
        AMOUNT_ZERO,
    )
    return total_basis / new_shares
