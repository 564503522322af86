"""Typed interfaces for ledger-layer computations."""

from dataclasses import dataclass
from datetime import date
from typing import Iterable, Protocol

from lotledger.domain import Amount, LedgerImportRecord


class AllocationShortfallError(RuntimeError):
    """Raised when an outflow requests more shares than the open lots hold.

    Attributes:
        security_key: ISIN or symbol of the security.
        requested: Requested outflow quantity.
        available: Total quantity of open lots.
    """

    def __init__(self, security_key: str, requested: Amount, available: Amount):
        super().__init__(
            f"allocation shortfall for {security_key}: requested={requested} available={available}"
        )
        self.security_key = security_key
        self.requested = requested
        self.available = available


class SplitWithoutPositionError(RuntimeError):
    """Raised when a split delivers shares but no pre-split lots carry a basis.

    Attributes:
        symbol: Security symbol of the split.
        settlement_date: Settlement date of the split.
    """

    def __init__(self, symbol: str, settlement_date: date):
        super().__init__(f"split-in for {symbol} on {settlement_date.isoformat()} has no open pre-split lots")
        self.symbol = symbol
        self.settlement_date = settlement_date


@dataclass(frozen=True)
class LedgerRecordOutcome:
    """Write counters produced by one handler invocation.

    Attributes:
        transaction_ids: Identifiers of transactions created for the record.
        created_lot_ids: Identities of lots created for the record.
        updated_lot_ids: Identities of lots whose quantity changed.
    """

    transaction_ids: tuple[int, ...] = ()
    created_lot_ids: tuple[str, ...] = ()
    updated_lot_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class LedgerProcessResult:
    """Summary of one processed batch.

    Attributes:
        record_count: Number of import records processed.
        transaction_count: Number of transactions created.
        lot_created_count: Number of lots created.
        lot_updated_count: Number of lot quantity updates (each paired with one history row).
    """

    record_count: int
    transaction_count: int
    lot_created_count: int
    lot_updated_count: int


class LedgerPort(Protocol):
    """Port definition for the lot accounting engine."""

    def ledger_policy_name(self) -> str:
        """Return policy label for the active lot selection strategy.

        Returns:
            str: Ledger policy identifier.

        Raises:
            RuntimeError: Raised when policy metadata is unavailable.
        """

    def ledger_process_record(self, record: LedgerImportRecord) -> LedgerRecordOutcome:
        """Apply one import record inside its own unit of work.

        Args:
            record: Normalized import record.

        Returns:
            LedgerRecordOutcome: Write counters for the record.

        Raises:
            AllocationShortfallError: Raised when an outflow exceeds open lots.
            SplitWithoutPositionError: Raised when a split-in finds no pre-split lots.
            LedgerPersistenceError: Raised when a storage operation fails.
        """

    def ledger_process_transactions(self, records: Iterable[LedgerImportRecord]) -> LedgerProcessResult:
        """Apply normalized import records in the supplied order.

        Args:
            records: Records already ordered by settlement date.

        Returns:
            LedgerProcessResult: Batch write counters.

        Raises:
            AllocationShortfallError: Raised when an outflow exceeds open lots.
            SplitWithoutPositionError: Raised when a split-in finds no pre-split lots.
            LedgerPersistenceError: Raised when a storage operation fails.
        """


def ledger_summarize_outcomes(outcomes: Iterable[LedgerRecordOutcome]) -> LedgerProcessResult:
    """Fold per-record outcomes into batch counters."""

    record_count = 0
    transaction_count = 0
    lot_created_count = 0
    lot_updated_count = 0
    for outcome in outcomes:
        record_count += 1
        transaction_count += len(outcome.transaction_ids)
        lot_created_count += len(outcome.created_lot_ids)
        lot_updated_count += len(outcome.updated_lot_ids)
    return LedgerProcessResult(
        record_count=record_count,
        transaction_count=transaction_count,
        lot_created_count=lot_created_count,
        lot_updated_count=lot_updated_count,
    )
