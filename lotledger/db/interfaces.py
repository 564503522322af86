"""Typed interfaces for database-layer services.

All SQL and ORM access must remain in the db package and its submodules.
"""

from contextlib import AbstractContextManager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Protocol
from uuid import UUID

from lotledger.domain import Amount, AssetLot, AssetLotHistoryRecord, HealthStatus, Transaction


class LedgerPersistenceError(RuntimeError):
    """Raised when a storage-layer operation fails inside the ledger database boundary."""


class ImportRunAlreadyActiveError(RuntimeError):
    """Raised when an import is rejected because another run for the account is active."""


class DatabaseHealthPort(Protocol):
    """Port definition for database connectivity verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.

        Raises:
            RuntimeError: Raised when connection metadata is unavailable.
        """

    def db_check_health(self) -> HealthStatus:
        """Check database connectivity and return deterministic health payload.

        Returns:
            HealthStatus: Database health status payload.

        Raises:
            ConnectionError: Raised when database cannot be reached.
        """


class LedgerUnitOfWorkPort(Protocol):
    """Transaction-scoped ledger writes and reads used by handlers.

    Every call shares one database transaction; the owning repository commits
    or rolls back when the scope exits.
    """

    def db_lot_list_open(
        self,
        account_id: str,
        symbol: str,
        isin: str | None,
        before_date: date | None = None,
    ) -> list[AssetLot]:
        """List open lots of one security ordered by cost basis descending.

        Args:
            account_id: Internal account identifier.
            symbol: Security symbol, used when `isin` is None.
            isin: Optional ISIN; selects lots by ISIN when present.
            before_date: Optional exclusive upper bound on lot creation date.

        Returns:
            list[AssetLot]: Lots with quantity above zero.

        Raises:
            LedgerPersistenceError: Raised when the read fails.
        """

    def db_lot_create(self, lot: AssetLot) -> str:
        """Insert one lot and return its derived identity.

        Args:
            lot: Lot to insert; `lot_id` is ignored.

        Returns:
            str: Derived lot identity.

        Raises:
            LedgerPersistenceError: Raised when the insert fails.
        """

    def db_lot_update_quantity(self, lot_id: str, quantity: Amount) -> None:
        """Set the remaining quantity of one lot.

        Args:
            lot_id: Lot identity.
            quantity: New non-negative quantity.

        Returns:
            None: Update is persisted as a side effect.

        Raises:
            LookupError: Raised when the lot does not exist.
            LedgerPersistenceError: Raised when the update fails.
        """

    def db_lot_history_append(self, lot: AssetLot, as_of_date: date) -> int:
        """Append one write-once lot snapshot.

        Args:
            lot: Lot state after mutation.
            as_of_date: Settlement date of the mutating transaction.

        Returns:
            int: History row identifier.

        Raises:
            LedgerPersistenceError: Raised when the insert fails.
        """

    def db_transaction_create(self, transaction: Transaction) -> int:
        """Insert one ledger transaction.

        Args:
            transaction: Transaction to insert; `transaction_id` is ignored.

        Returns:
            int: Persistent transaction identifier.

        Raises:
            LedgerPersistenceError: Raised when the insert fails.
        """


class LotLedgerRepositoryPort(Protocol):
    """Port definition for scoped ledger units of work."""

    def db_ledger_unit_of_work(self) -> AbstractContextManager[LedgerUnitOfWorkPort]:
        """Open one transactional scope for a single import record.

        Returns:
            AbstractContextManager[LedgerUnitOfWorkPort]: Scope committing on success and rolling back on error.

        Raises:
            LedgerPersistenceError: Raised when the scope cannot be opened or committed.
        """


class LotLedgerReadRepositoryPort(Protocol):
    """Port definition for read-only ledger queries used by API surfaces."""

    def db_lot_list(
        self,
        account_id: str,
        limit: int,
        offset: int,
        symbol: str | None = None,
        open_only: bool = False,
    ) -> list[AssetLot]:
        """List lots of one account.

        Args:
            account_id: Internal account identifier.
            limit: Max rows to return.
            offset: Rows to skip.
            symbol: Optional symbol filter.
            open_only: Whether closed lots are excluded.

        Returns:
            list[AssetLot]: Lots ordered by creation date and lot id.

        Raises:
            ValueError: Raised when pagination arguments are invalid.
            LedgerPersistenceError: Raised when the read fails.
        """

    def db_lot_get_by_id(self, lot_id: str) -> AssetLot | None:
        """Fetch one lot by identity."""

    def db_lot_history_list(self, lot_id: str) -> list[AssetLotHistoryRecord]:
        """List history snapshots of one lot in append order."""

    def db_transaction_list(
        self,
        account_id: str,
        limit: int,
        offset: int,
        settlement_date_from: date | None = None,
        settlement_date_to: date | None = None,
    ) -> list[Transaction]:
        """List transactions of one account inside an inclusive settlement-date range.

        Args:
            account_id: Internal account identifier.
            limit: Max rows to return.
            offset: Rows to skip.
            settlement_date_from: Optional inclusive lower bound.
            settlement_date_to: Optional inclusive upper bound.

        Returns:
            list[Transaction]: Transactions ordered by settlement date and id.

        Raises:
            ValueError: Raised when pagination arguments are invalid.
            LedgerPersistenceError: Raised when the read fails.
        """


@dataclass(frozen=True)
class ImportRunState:
    """Runtime lifecycle and outcome state for one import run.

    Attributes:
        status: Run status (`started`, `success`, `failed`).
        started_at_utc: Run start timestamp in UTC.
        ended_at_utc: Optional run end timestamp in UTC.
        record_count: Number of records processed by the ledger engine.
        skipped_count: Number of source rows skipped as unhandled kinds.
        error_code: Optional deterministic error code.
        error_message: Optional human-readable error message.
        diagnostics: Optional structured diagnostics payload.
    """

    status: str
    started_at_utc: datetime
    ended_at_utc: datetime | None
    record_count: int
    skipped_count: int
    error_code: str | None
    error_message: str | None
    diagnostics: list[dict[str, Any]] | None


@dataclass(frozen=True)
class ImportRunRecord:
    """Persistence model for one import run row.

    Attributes:
        import_run_id: Unique run identifier.
        account_id: Internal account context identifier.
        source: Broker export source (`nordnet`, `etrade`).
        file_name: Imported file name.
        state: Runtime lifecycle and outcome state values.
    """

    import_run_id: UUID
    account_id: str
    source: str
    file_name: str
    state: ImportRunState


class ImportRunRepositoryPort(Protocol):
    """Port definition for import run lifecycle persistence and reads."""

    def db_import_run_create_started(self, account_id: str, source: str, file_name: str) -> ImportRunRecord:
        """Create a new started import run unless one is already active.

        Args:
            account_id: Internal account identifier.
            source: Broker export source.
            file_name: Imported file name.

        Returns:
            ImportRunRecord: Newly created run row with `started` status.

        Raises:
            ImportRunAlreadyActiveError: Raised when another started run exists for the account.
            ValueError: Raised when an input value is invalid.
        """

    def db_import_run_finalize(  # pylint: disable=too-many-arguments
        self,
        import_run_id: UUID,
        status: str,
        record_count: int,
        skipped_count: int,
        error_code: str | None,
        error_message: str | None,
        diagnostics: list[dict[str, Any]] | None,
    ) -> ImportRunRecord:
        """Finalize a started import run to success or failed.

        Raises:
            LookupError: Raised when the run id is not found.
            ValueError: Raised when status or payload values are invalid.
        """

    def db_import_run_get_by_id(self, import_run_id: UUID) -> ImportRunRecord | None:
        """Fetch one import run by primary key."""

    def db_import_run_list(self, limit: int, offset: int) -> list[ImportRunRecord]:
        """List import runs ordered by latest start timestamp and id.

        Raises:
            ValueError: Raised when pagination arguments are invalid.
        """
