"""Typed domain models shared across runtime layers.

Lots and transactions are frozen dataclasses. State changes produce new
instances through `dataclasses.replace` so the allocator can plan against
immutable values before anything is written.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from enum import Enum

from .amount import Amount


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for service health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str


class TransactionKind(str, Enum):
    """Closed set of ledger event kinds."""

    PURCHASE = "PURCHASE"
    SALE = "SALE"
    TRANSFER_IN = "TRANSFER_IN"
    TRANSFER_OUT = "TRANSFER_OUT"
    SPLIT_IN = "SPLIT_IN"
    SPLIT_OUT = "SPLIT_OUT"
    DIVIDEND = "DIVIDEND"
    QUALIFIED_DIVIDEND = "QUALIFIED_DIVIDEND"

    @property
    def is_inflow(self) -> bool:
        """Whether the kind creates a new lot."""

        return self in _INFLOW_KINDS

    @property
    def is_outflow(self) -> bool:
        """Whether the kind reduces lot quantities."""

        return self in _OUTFLOW_KINDS

    @property
    def is_inventory_movement(self) -> bool:
        """Whether the kind moves basis without moving cash."""

        return self in _INVENTORY_MOVEMENT_KINDS

    @property
    def is_cash_only(self) -> bool:
        return self in (TransactionKind.DIVIDEND, TransactionKind.QUALIFIED_DIVIDEND)


_INFLOW_KINDS = frozenset({TransactionKind.PURCHASE, TransactionKind.TRANSFER_IN, TransactionKind.SPLIT_IN})
_OUTFLOW_KINDS = frozenset({TransactionKind.SALE, TransactionKind.TRANSFER_OUT, TransactionKind.SPLIT_OUT})
_INVENTORY_MOVEMENT_KINDS = frozenset(
    {
        TransactionKind.TRANSFER_IN,
        TransactionKind.TRANSFER_OUT,
        TransactionKind.SPLIT_IN,
        TransactionKind.SPLIT_OUT,
    }
)


@dataclass(frozen=True)
class AssetLot:
    """One dated, cost-tagged quantity of a security.

    Attributes:
        account_id: Internal account identifier owning the lot.
        symbol: Security symbol or broker security name.
        isin: Optional security ISIN.
        quantity: Remaining share quantity; zero means closed.
        cost_basis_per_share: Per-share cost basis fixed at creation.
        cost_basis_currency: Currency of the cost basis.
        created_date: Settlement date of the originating inflow event.
        lot_id: Persistent lot identity, None before the lot is stored.
    """

    account_id: str
    symbol: str
    isin: str | None
    quantity: Amount
    cost_basis_per_share: Amount
    cost_basis_currency: str
    created_date: date
    lot_id: str | None = None

    @property
    def security_key(self) -> str:
        """Return the identifier used for lot identity and lookups."""

        return self.isin or self.symbol

    @property
    def is_closed(self) -> bool:
        return self.quantity.is_zero()

    def with_quantity(self, quantity: Amount) -> AssetLot:
        """Return a copy of the lot holding a new quantity.

        Args:
            quantity: New share quantity.

        Returns:
            AssetLot: Updated lot copy.

        Raises:
            ValueError: Raised when quantity is negative or larger than the current quantity.
        """

        if quantity.is_negative():
            raise ValueError(f"lot quantity must not be negative, got {quantity}")
        if quantity > self.quantity:
            raise ValueError(f"lot quantity must not increase, got {quantity} > {self.quantity}")
        return replace(self, quantity=quantity)


@dataclass(frozen=True)
class Transaction:
    """Immutable ledger event record.

    Attributes:
        account_id: Internal account identifier.
        reference: External source transaction id, None when the source has none.
        kind: Ledger event kind.
        settlement_date: Date the event affects ledger state.
        symbol: Security symbol.
        shares: Non-negative share quantity.
        price_per_share: Price per share, or per-share basis for inventory movements.
        share_value: Gross value `round4(price_per_share * shares)`.
        fees: Fee amount attributed to this record.
        total_amount: Net amount.
        currency: Currency code of monetary values.
        lot_id: Consumed or created lot identity, None for cash-only events.
        transaction_id: Persistent identifier, None before the record is stored.
    """

    account_id: str
    reference: str | None
    kind: TransactionKind
    settlement_date: date
    symbol: str
    shares: Amount
    price_per_share: Amount
    share_value: Amount
    fees: Amount
    total_amount: Amount
    currency: str
    lot_id: str | None = None
    transaction_id: int | None = None


@dataclass(frozen=True)
class LedgerImportRecord:
    """Normalized `{lot, transaction}` pair handed to the ledger engine.

    Attributes:
        lot: Lot template (quantity and basis of the event, no identity yet).
        transaction: Transaction derived from the same source row.
    """

    lot: AssetLot
    transaction: Transaction


@dataclass(frozen=True)
class AssetLotHistoryRecord:
    """Write-once snapshot of a lot after a quantity mutation.

    Attributes:
        history_id: Persistent row identifier.
        lot: Lot state captured by the snapshot.
        as_of_date: Settlement date of the mutating transaction.
    """

    history_id: int
    lot: AssetLot
    as_of_date: date
