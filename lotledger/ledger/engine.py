"""Lot accounting engine dispatching import records to per-kind handlers."""

from __future__ import annotations

import logging
from typing import Iterable

from lotledger.db import LedgerPersistenceError, LotLedgerRepositoryPort
from lotledger.domain import LedgerImportRecord

from .allocator import LEDGER_ALLOCATION_POLICY
from .handlers import LEDGER_HANDLERS
from .interfaces import (
    AllocationShortfallError,
    LedgerPort,
    LedgerProcessResult,
    LedgerRecordOutcome,
    SplitWithoutPositionError,
    ledger_summarize_outcomes,
)

_LOGGER = logging.getLogger(__name__)


class LotLedgerEngine(LedgerPort):
    """Apply normalized import records to the lot ledger one unit of work at a time."""

    def __init__(self, repository: LotLedgerRepositoryPort):
        """Initialize engine dependencies.

        Args:
            repository: DB-layer repository providing ledger units of work.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when repository is invalid.
        """

        if repository is None:
            raise ValueError("repository must not be None")
        self._repository = repository

    def ledger_policy_name(self) -> str:
        """Return the fixed lot selection policy label.

        Returns:
            str: Policy identifier.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        return LEDGER_ALLOCATION_POLICY

    def ledger_process_record(self, record: LedgerImportRecord) -> LedgerRecordOutcome:
        """Apply one import record atomically.

        Args:
            record: Normalized import record.

        Returns:
            LedgerRecordOutcome: Write counters for the record.

        Raises:
            AllocationShortfallError: Raised when an outflow exceeds open lots.
            SplitWithoutPositionError: Raised when a split-in finds no pre-split lots.
            LedgerPersistenceError: Raised when a storage operation fails.
            LookupError: Raised when a planned lot is missing from storage.
            ValueError: Raised when record contents violate handler contracts.
        """

        if record is None:
            raise ValueError("record must not be None")

        kind = record.transaction.kind
        handler = LEDGER_HANDLERS[kind]
        try:
            with self._repository.db_ledger_unit_of_work() as unit_of_work:
                outcome = handler(unit_of_work, record)
        except (
            AllocationShortfallError,
            SplitWithoutPositionError,
            LedgerPersistenceError,
            LookupError,
            ValueError,
            ArithmeticError,
        ) as error:
            _LOGGER.error(
                "ledger record rolled back (%s %s on %s reference=%s): %s",
                kind.value,
                record.lot.security_key,
                record.transaction.settlement_date.isoformat(),
                record.transaction.reference,
                error,
            )
            raise

        _LOGGER.debug(
            "applied %s %s on %s: transactions=%d created_lots=%d updated_lots=%d",
            kind.value,
            record.lot.security_key,
            record.transaction.settlement_date.isoformat(),
            len(outcome.transaction_ids),
            len(outcome.created_lot_ids),
            len(outcome.updated_lot_ids),
        )
        return outcome

    def ledger_process_transactions(self, records: Iterable[LedgerImportRecord]) -> LedgerProcessResult:
        """Apply import records in the supplied order, stopping at the first failure.

        Records applied before a failure stay committed.

        Args:
            records: Records ordered by settlement date, inflows first on ties.

        Returns:
            LedgerProcessResult: Batch write counters.

        Raises:
            AllocationShortfallError: Raised when an outflow exceeds open lots.
            SplitWithoutPositionError: Raised when a split-in finds no pre-split lots.
            LedgerPersistenceError: Raised when a storage operation fails.
            ValueError: Raised when record contents violate handler contracts.
            ZeroDivisionError: Raised when a split delivers zero shares.
        """

        outcomes = [self.ledger_process_record(record) for record in records]
        result = ledger_summarize_outcomes(outcomes)
        _LOGGER.info(
            "ledger batch applied: records=%d transactions=%d created_lots=%d updated_lots=%d",
            result.record_count,
            result.transaction_count,
            result.lot_created_count,
            result.lot_updated_count,
        )
        return result
