"""Database service for asset lots, lot history and ledger transactions."""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from typing import Any, Iterator

from sqlalchemy import Connection, Engine, text
from sqlalchemy.exc import SQLAlchemyError

from lotledger.domain import Amount, AssetLot, AssetLotHistoryRecord, Transaction, TransactionKind

from .interfaces import (
    LedgerPersistenceError,
    LedgerUnitOfWorkPort,
    LotLedgerReadRepositoryPort,
    LotLedgerRepositoryPort,
)

_LOT_SELECT_COLUMNS = (
    "SELECT lot_id, account_id, symbol, isin, quantity, cost_basis_per_share, cost_basis_currency, created_date "
    "FROM asset_lot "
)

_TRANSACTION_SELECT_COLUMNS = (
    "SELECT transaction_id, account_id, reference, kind, settlement_date, symbol, lot_id, shares, "
    "price_per_share, share_value, fees, total_amount, currency "
    "FROM ledger_transaction "
)


def _db_parse_date(value: Any) -> date:
    """Normalize a driver date value (date object or ISO text) to `date`."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def _db_map_lot(row: Any) -> AssetLot:
    return AssetLot(
        lot_id=row["lot_id"],
        account_id=row["account_id"],
        symbol=row["symbol"],
        isin=row["isin"],
        quantity=Amount(int(row["quantity"])),
        cost_basis_per_share=Amount(int(row["cost_basis_per_share"])),
        cost_basis_currency=row["cost_basis_currency"],
        created_date=_db_parse_date(row["created_date"]),
    )


def _db_map_transaction(row: Any) -> Transaction:
    return Transaction(
        transaction_id=int(row["transaction_id"]),
        account_id=row["account_id"],
        reference=row["reference"],
        kind=TransactionKind(row["kind"]),
        settlement_date=_db_parse_date(row["settlement_date"]),
        symbol=row["symbol"],
        lot_id=row["lot_id"],
        shares=Amount(int(row["shares"])),
        price_per_share=Amount(int(row["price_per_share"])),
        share_value=Amount(int(row["share_value"])),
        fees=Amount(int(row["fees"])),
        total_amount=Amount(int(row["total_amount"])),
        currency=row["currency"],
    )


def _db_validate_pagination(limit: int, offset: int) -> None:
    if limit < 1:
        raise ValueError("limit must be >= 1")
    if offset < 0:
        raise ValueError("offset must be >= 0")


def db_derive_lot_id(security_key: str, created_date: date, sequence: int) -> str:
    """Build the deterministic lot identity `KEY-YYYYMMDD-NNNNNN`.

    Args:
        security_key: ISIN or symbol of the security.
        created_date: Lot creation date.
        sequence: One-based per-security sequence number.

    Returns:
        str: Lot identity.

    Raises:
        ValueError: Raised when inputs are blank or out of range.
    """

    if not security_key.strip():
        raise ValueError("security_key must not be blank")
    if sequence < 1:
        raise ValueError("sequence must be >= 1")
    return f"{security_key.strip()}-{created_date:%Y%m%d}-{sequence:06d}"


class SQLAlchemyLedgerUnitOfWork(LedgerUnitOfWorkPort):
    """Ledger reads and writes bound to one open database transaction."""

    def __init__(self, connection: Connection):
        """Initialize the unit of work.

        Args:
            connection: Connection with an active transaction.

        Raises:
            ValueError: Raised when connection is None.
        """

        if connection is None:
            raise ValueError("connection must not be None")
        self._connection = connection

    def db_lot_list_open(
        self,
        account_id: str,
        symbol: str,
        isin: str | None,
        before_date: date | None = None,
    ) -> list[AssetLot]:
        """List open lots of one security, highest cost basis first."""

        query = _LOT_SELECT_COLUMNS + "WHERE account_id = :account_id AND quantity > 0 "
        parameters: dict[str, object] = {"account_id": account_id}
        if isin:
            query += "AND isin = :isin "
            parameters["isin"] = isin
        else:
            query += "AND symbol = :symbol "
            parameters["symbol"] = symbol
        if before_date is not None:
            query += "AND created_date < :before_date "
            parameters["before_date"] = before_date.isoformat()
        query += "ORDER BY cost_basis_per_share DESC, created_date ASC, lot_id ASC"

        try:
            rows = self._connection.execute(text(query), parameters).mappings().all()
        except SQLAlchemyError as error:
            raise LedgerPersistenceError("open lot read failed") from error
        return [_db_map_lot(row) for row in rows]

    def db_lot_create(self, lot: AssetLot) -> str:
        """Insert one lot under a derived per-security sequence identity."""

        if lot.quantity.is_negative():
            raise ValueError("lot quantity must not be negative")

        try:
            existing_count = self._connection.execute(
                text("SELECT COUNT(*) FROM asset_lot WHERE security_key = :security_key"),
                {"security_key": lot.security_key},
            ).scalar_one()
            lot_id = db_derive_lot_id(lot.security_key, lot.created_date, int(existing_count) + 1)
            self._connection.execute(
                text(
                    "INSERT INTO asset_lot ("
                    "lot_id, account_id, security_key, symbol, isin, quantity, cost_basis_per_share, "
                    "cost_basis_currency, created_date"
                    ") VALUES ("
                    ":lot_id, :account_id, :security_key, :symbol, :isin, :quantity, :cost_basis_per_share, "
                    ":cost_basis_currency, :created_date"
                    ")"
                ),
                {
                    "lot_id": lot_id,
                    "account_id": lot.account_id,
                    "security_key": lot.security_key,
                    "symbol": lot.symbol,
                    "isin": lot.isin,
                    "quantity": lot.quantity.mantissa,
                    "cost_basis_per_share": lot.cost_basis_per_share.mantissa,
                    "cost_basis_currency": lot.cost_basis_currency,
                    "created_date": lot.created_date.isoformat(),
                },
            )
        except SQLAlchemyError as error:
            raise LedgerPersistenceError(f"asset lot insert failed for {lot.security_key}") from error
        return lot_id

    def db_lot_update_quantity(self, lot_id: str, quantity: Amount) -> None:
        """Set the remaining quantity of one lot."""

        if quantity.is_negative():
            raise ValueError("lot quantity must not be negative")

        try:
            result = self._connection.execute(
                text("UPDATE asset_lot SET quantity = :quantity WHERE lot_id = :lot_id"),
                {"quantity": quantity.mantissa, "lot_id": lot_id},
            )
        except SQLAlchemyError as error:
            raise LedgerPersistenceError(f"asset lot update failed for {lot_id}") from error
        if result.rowcount == 0:
            raise LookupError(f"asset lot not found: {lot_id}")

    def db_lot_history_append(self, lot: AssetLot, as_of_date: date) -> int:
        """Append one lot snapshot row."""

        try:
            history_id = self._connection.execute(
                text(
                    "INSERT INTO asset_lot_history ("
                    "lot_id, account_id, symbol, isin, quantity, cost_basis_per_share, cost_basis_currency, "
                    "created_date, as_of_date"
                    ") VALUES ("
                    ":lot_id, :account_id, :symbol, :isin, :quantity, :cost_basis_per_share, :cost_basis_currency, "
                    ":created_date, :as_of_date"
                    ") RETURNING history_id"
                ),
                {
                    "lot_id": lot.lot_id,
                    "account_id": lot.account_id,
                    "symbol": lot.symbol,
                    "isin": lot.isin,
                    "quantity": lot.quantity.mantissa,
                    "cost_basis_per_share": lot.cost_basis_per_share.mantissa,
                    "cost_basis_currency": lot.cost_basis_currency,
                    "created_date": lot.created_date.isoformat(),
                    "as_of_date": as_of_date.isoformat(),
                },
            ).scalar_one()
        except SQLAlchemyError as error:
            raise LedgerPersistenceError(f"asset lot history insert failed for {lot.lot_id}") from error
        return int(history_id)

    def db_transaction_create(self, transaction: Transaction) -> int:
        """Insert one ledger transaction."""

        if transaction.shares.is_negative():
            raise ValueError("transaction shares must not be negative")

        try:
            transaction_id = self._connection.execute(
                text(
                    "INSERT INTO ledger_transaction ("
                    "account_id, reference, kind, settlement_date, symbol, lot_id, shares, price_per_share, "
                    "share_value, fees, total_amount, currency"
                    ") VALUES ("
                    ":account_id, :reference, :kind, :settlement_date, :symbol, :lot_id, :shares, :price_per_share, "
                    ":share_value, :fees, :total_amount, :currency"
                    ") RETURNING transaction_id"
                ),
                {
                    "account_id": transaction.account_id,
                    "reference": transaction.reference,
                    "kind": transaction.kind.value,
                    "settlement_date": transaction.settlement_date.isoformat(),
                    "symbol": transaction.symbol,
                    "lot_id": transaction.lot_id,
                    "shares": transaction.shares.mantissa,
                    "price_per_share": transaction.price_per_share.mantissa,
                    "share_value": transaction.share_value.mantissa,
                    "fees": transaction.fees.mantissa,
                    "total_amount": transaction.total_amount.mantissa,
                    "currency": transaction.currency,
                },
            ).scalar_one()
        except SQLAlchemyError as error:
            raise LedgerPersistenceError(
                f"ledger transaction insert failed for {transaction.kind.value} {transaction.symbol}"
            ) from error
        return int(transaction_id)


class SQLAlchemyLotLedgerService(LotLedgerRepositoryPort, LotLedgerReadRepositoryPort):
    """SQLAlchemy implementation of ledger units of work and ledger reads."""

    def __init__(self, engine: Engine):
        """Initialize lot ledger database service.

        Args:
            engine: SQLAlchemy engine used for persistence and reads.

        Returns:
            None: Initializer does not return values.

        Raises:
            ValueError: Raised when engine is invalid.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    @contextmanager
    def db_ledger_unit_of_work(self) -> Iterator[SQLAlchemyLedgerUnitOfWork]:
        """Open one transaction; commit on normal exit, roll back on any exception.

        Yields:
            SQLAlchemyLedgerUnitOfWork: Unit of work bound to the open transaction.

        Raises:
            LedgerPersistenceError: Raised when begin or commit fails.
        """

        try:
            with self._engine.begin() as connection:
                yield SQLAlchemyLedgerUnitOfWork(connection=connection)
        except SQLAlchemyError as error:
            raise LedgerPersistenceError("ledger unit of work failed") from error

    def db_lot_list(
        self,
        account_id: str,
        limit: int,
        offset: int,
        symbol: str | None = None,
        open_only: bool = False,
    ) -> list[AssetLot]:
        """List lots of one account ordered by creation date and lot id."""

        _db_validate_pagination(limit, offset)
        query = _LOT_SELECT_COLUMNS + "WHERE account_id = :account_id "
        parameters: dict[str, object] = {"account_id": account_id, "limit": limit, "offset": offset}
        if symbol is not None:
            query += "AND symbol = :symbol "
            parameters["symbol"] = symbol
        if open_only:
            query += "AND quantity > 0 "
        query += "ORDER BY created_date ASC, lot_id ASC LIMIT :limit OFFSET :offset"

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(text(query), parameters).mappings().all()
        except SQLAlchemyError as error:
            raise LedgerPersistenceError("asset lot list read failed") from error
        return [_db_map_lot(row) for row in rows]

    def db_lot_get_by_id(self, lot_id: str) -> AssetLot | None:
        """Fetch one lot by identity, None when absent."""

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(_LOT_SELECT_COLUMNS + "WHERE lot_id = :lot_id"),
                    {"lot_id": lot_id},
                ).mappings().first()
        except SQLAlchemyError as error:
            raise LedgerPersistenceError("asset lot read failed") from error
        return None if row is None else _db_map_lot(row)

    def db_lot_history_list(self, lot_id: str) -> list[AssetLotHistoryRecord]:
        """List snapshots of one lot in append order."""

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(
                        "SELECT history_id, lot_id, account_id, symbol, isin, quantity, cost_basis_per_share, "
                        "cost_basis_currency, created_date, as_of_date "
                        "FROM asset_lot_history WHERE lot_id = :lot_id ORDER BY history_id ASC"
                    ),
                    {"lot_id": lot_id},
                ).mappings().all()
        except SQLAlchemyError as error:
            raise LedgerPersistenceError("asset lot history read failed") from error
        return [
            AssetLotHistoryRecord(
                history_id=int(row["history_id"]),
                lot=_db_map_lot(row),
                as_of_date=_db_parse_date(row["as_of_date"]),
            )
            for row in rows
        ]

    def db_transaction_list(
        self,
        account_id: str,
        limit: int,
        offset: int,
        settlement_date_from: date | None = None,
        settlement_date_to: date | None = None,
    ) -> list[Transaction]:
        """List transactions inside an inclusive settlement-date range."""

        _db_validate_pagination(limit, offset)
        query = _TRANSACTION_SELECT_COLUMNS + "WHERE account_id = :account_id "
        parameters: dict[str, object] = {"account_id": account_id, "limit": limit, "offset": offset}
        if settlement_date_from is not None:
            query += "AND settlement_date >= :settlement_date_from "
            parameters["settlement_date_from"] = settlement_date_from.isoformat()
        if settlement_date_to is not None:
            query += "AND settlement_date <= :settlement_date_to "
            parameters["settlement_date_to"] = settlement_date_to.isoformat()
        query += "ORDER BY settlement_date ASC, transaction_id ASC LIMIT :limit OFFSET :offset"

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(text(query), parameters).mappings().all()
        except SQLAlchemyError as error:
            raise LedgerPersistenceError("ledger transaction list read failed") from error
        return [_db_map_transaction(row) for row in rows]
