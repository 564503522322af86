"""Integration tests for SQLAlchemy ledger and import run services on migrated SQLite."""

from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import Engine, inspect, text

from lotledger.db import (
    ImportRunAlreadyActiveError,
    LedgerPersistenceError,
    SQLAlchemyDatabaseHealthService,
    SQLAlchemyImportRunService,
    SQLAlchemyLotLedgerService,
    db_create_engine,
    db_derive_lot_id,
)
from lotledger.domain import Amount, AssetLot, Transaction, TransactionKind, domain_build_import_record
from lotledger.ledger import AllocationShortfallError, LotLedgerEngine

_REPOSITORY_ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture(name="engine")
def _engine_fixture(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Engine:
    """Create a SQLite database file migrated to head.

    Returns:
        Engine: Engine bound to the migrated database.
    """

    database_url = f"sqlite:///{tmp_path / 'ledger.db'}"
    monkeypatch.setenv("DATABASE_URL", database_url)

    alembic_config = Config(str(_REPOSITORY_ROOT / "alembic.ini"))
    alembic_config.set_main_option("script_location", str(_REPOSITORY_ROOT / "alembic"))
    command.upgrade(alembic_config, "head")

    engine = db_create_engine(database_url)
    yield engine
    engine.dispose()


def _lot(quantity: str = "10", basis: str = "100", created: date = date(2024, 1, 5), isin: str | None = "SE0000000001"):
    return AssetLot(
        account_id="ACC-1",
        symbol="ACME",
        isin=isin,
        quantity=Amount.from_decimal(quantity),
        cost_basis_per_share=Amount.from_decimal(basis),
        cost_basis_currency="SEK",
        created_date=created,
    )


def _record(kind: TransactionKind, settlement_date: date, shares: str, price: str, fee: str = "0"):
    return domain_build_import_record(
        account_id="ACC-1",
        reference=f"{kind.value}-{settlement_date.isoformat()}",
        kind=kind,
        settlement_date=settlement_date,
        symbol="ACME",
        isin="SE0000000001",
        shares=Amount.from_decimal(shares),
        fees=Amount.from_decimal(fee),
        currency="SEK",
        price_per_share=Amount.from_decimal(price),
    )


def test_db_migrations_create_ledger_tables(engine: Engine) -> None:
    table_names = set(inspect(engine).get_table_names())

    assert {"asset_lot", "asset_lot_history", "ledger_transaction", "import_run", "alembic_version"} <= table_names


def test_db_derive_lot_id_formats_sequence() -> None:
    assert db_derive_lot_id("SE0000000001", date(2024, 1, 5), 7) == "SE0000000001-20240105-000007"
    with pytest.raises(ValueError):
        db_derive_lot_id("SE0000000001", date(2024, 1, 5), 0)


def test_db_lot_create_numbers_lots_per_security(engine: Engine) -> None:
    """Lot identities count every lot of the security, closed ones included."""

    service = SQLAlchemyLotLedgerService(engine=engine)

    with service.db_ledger_unit_of_work() as unit_of_work:
        first_lot_id = unit_of_work.db_lot_create(_lot())
        unit_of_work.db_lot_update_quantity(first_lot_id, Amount.zero())
        second_lot_id = unit_of_work.db_lot_create(_lot(created=date(2024, 2, 1)))
        other_lot_id = unit_of_work.db_lot_create(_lot(isin=None))

    assert first_lot_id == "SE0000000001-20240105-000001"
    assert second_lot_id == "SE0000000001-20240201-000002"
    assert other_lot_id == "ACME-20240105-000001"

    stored_lot = service.db_lot_get_by_id(second_lot_id)
    assert stored_lot is not None
    assert stored_lot.quantity == Amount.from_int(10)
    assert stored_lot.cost_basis_per_share == Amount.from_int(100)
    assert stored_lot.created_date == date(2024, 2, 1)
    assert service.db_lot_get_by_id("missing") is None


def test_db_lot_list_open_filters_and_orders_by_basis(engine: Engine) -> None:
    service = SQLAlchemyLotLedgerService(engine=engine)

    with service.db_ledger_unit_of_work() as unit_of_work:
        low_lot_id = unit_of_work.db_lot_create(_lot(basis="30", created=date(2024, 1, 1)))
        high_lot_id = unit_of_work.db_lot_create(_lot(basis="70", created=date(2024, 1, 2)))
        unit_of_work.db_lot_create(_lot(basis="90", created=date(2024, 3, 1)))
        closed_lot_id = unit_of_work.db_lot_create(_lot(basis="99", created=date(2024, 1, 1)))
        unit_of_work.db_lot_update_quantity(closed_lot_id, Amount.zero())

    with service.db_ledger_unit_of_work() as unit_of_work:
        open_lots = unit_of_work.db_lot_list_open("ACC-1", "ACME", "SE0000000001", before_date=date(2024, 3, 1))
        by_symbol = unit_of_work.db_lot_list_open("ACC-1", "ACME", None)
        other_symbol = unit_of_work.db_lot_list_open("ACC-1", "OTHER", None)

    high_basis = Amount.from_int(70)
    low_basis = Amount.from_int(30)
    assert [lot.lot_id for lot in open_lots] == [high_lot_id, low_lot_id]
    assert [lot.cost_basis_per_share for lot in by_symbol] == [Amount.from_int(90), high_basis, low_basis]
    assert other_symbol == []


def test_db_unit_of_work_rolls_back_on_error(engine: Engine) -> None:
    """An exception inside the scope discards every write of the scope."""

    service = SQLAlchemyLotLedgerService(engine=engine)

    with pytest.raises(RuntimeError, match="boom"):
        with service.db_ledger_unit_of_work() as unit_of_work:
            unit_of_work.db_lot_create(_lot())
            raise RuntimeError("boom")

    assert service.db_lot_list(account_id="ACC-1", limit=10, offset=0) == []


def test_db_unit_of_work_wraps_constraint_violations(engine: Engine) -> None:
    service = SQLAlchemyLotLedgerService(engine=engine)
    orphan = Transaction(
        account_id="ACC-1",
        reference=None,
        kind=TransactionKind.SALE,
        settlement_date=date(2024, 1, 5),
        symbol="ACME",
        shares=Amount.from_int(1),
        price_per_share=Amount.from_int(1),
        share_value=Amount.from_int(1),
        fees=Amount.zero(),
        total_amount=Amount.from_int(1),
        currency="SEK",
        lot_id="missing-lot",
    )

    with pytest.raises(LedgerPersistenceError):
        with service.db_ledger_unit_of_work() as unit_of_work:
            unit_of_work.db_transaction_create(orphan)


def test_db_lot_update_quantity_rejects_unknown_lot(engine: Engine) -> None:
    service = SQLAlchemyLotLedgerService(engine=engine)

    with pytest.raises(LookupError):
        with service.db_ledger_unit_of_work() as unit_of_work:
            unit_of_work.db_lot_update_quantity("missing-lot", Amount.zero())


def test_db_engine_round_trip_with_history_and_transactions(engine: Engine) -> None:
    """Engine writes through SQLite and reads back amounts, history and ranges."""

    service = SQLAlchemyLotLedgerService(engine=engine)
    ledger = LotLedgerEngine(repository=service)

    result = ledger.ledger_process_transactions(
        [
            _record(TransactionKind.PURCHASE, date(2024, 1, 5), "10", "100"),
            _record(TransactionKind.SALE, date(2024, 3, 1), "4", "120", fee="5"),
        ]
    )

    assert result.transaction_count == 2
    (lot,) = service.db_lot_list(account_id="ACC-1", limit=10, offset=0)
    assert lot.quantity == Amount.from_int(6)
    history = service.db_lot_history_list(lot.lot_id)
    assert [(row.lot.quantity, row.as_of_date) for row in history] == [(Amount.from_int(6), date(2024, 3, 1))]

    transactions = service.db_transaction_list(account_id="ACC-1", limit=10, offset=0)
    assert [item.kind for item in transactions] == [TransactionKind.PURCHASE, TransactionKind.SALE]
    sale = transactions[1]
    assert sale.lot_id == lot.lot_id
    assert sale.share_value == Amount.from_decimal("480")
    assert sale.total_amount == Amount.from_decimal("475")
    assert sale.reference == "SALE-2024-03-01"

    march_only = service.db_transaction_list(
        account_id="ACC-1",
        limit=10,
        offset=0,
        settlement_date_from=date(2024, 2, 1),
        settlement_date_to=date(2024, 3, 31),
    )
    assert [item.kind for item in march_only] == [TransactionKind.SALE]
    assert service.db_lot_list(account_id="ACC-1", limit=10, offset=0, open_only=True, symbol="OTHER") == []


def test_db_engine_shortfall_leaves_no_partial_writes(engine: Engine) -> None:
    service = SQLAlchemyLotLedgerService(engine=engine)
    ledger = LotLedgerEngine(repository=service)

    with pytest.raises(AllocationShortfallError):
        ledger.ledger_process_transactions(
            [
                _record(TransactionKind.PURCHASE, date(2024, 1, 5), "3", "100"),
                _record(TransactionKind.SALE, date(2024, 3, 1), "5", "120"),
            ]
        )

    (lot,) = service.db_lot_list(account_id="ACC-1", limit=10, offset=0)
    assert lot.quantity == Amount.from_int(3)
    assert service.db_lot_history_list(lot.lot_id) == []
    assert len(service.db_transaction_list(account_id="ACC-1", limit=10, offset=0)) == 1


def test_db_read_pagination_is_validated(engine: Engine) -> None:
    service = SQLAlchemyLotLedgerService(engine=engine)

    with pytest.raises(ValueError):
        service.db_lot_list(account_id="ACC-1", limit=0, offset=0)
    with pytest.raises(ValueError):
        service.db_transaction_list(account_id="ACC-1", limit=1, offset=-1)


def test_db_import_run_lifecycle_and_single_active_run(engine: Engine) -> None:
    """A started run blocks a second start until it is finalized."""

    service = SQLAlchemyImportRunService(engine=engine)

    started = service.db_import_run_create_started(account_id="ACC-1", source="nordnet", file_name="export.csv")
    assert started.state.status == "started"
    assert started.state.ended_at_utc is None

    with pytest.raises(ImportRunAlreadyActiveError):
        service.db_import_run_create_started(account_id="ACC-1", source="etrade", file_name="other.csv")

    finalized = service.db_import_run_finalize(
        import_run_id=started.import_run_id,
        status="failed",
        record_count=0,
        skipped_count=2,
        error_code="IMPORT_ALLOCATION_SHORTFALL",
        error_message="allocation shortfall",
        diagnostics=[{"stage": "run", "status": "failed"}],
    )
    assert finalized.state.status == "failed"
    assert finalized.state.ended_at_utc is not None
    assert finalized.state.skipped_count == 2
    assert finalized.state.diagnostics == [{"stage": "run", "status": "failed"}]

    second = service.db_import_run_create_started(account_id="ACC-1", source="etrade", file_name="other.csv")
    listed = service.db_import_run_list(limit=10, offset=0)
    assert {run.import_run_id for run in listed} == {started.import_run_id, second.import_run_id}
    assert service.db_import_run_get_by_id(second.import_run_id) == second


def test_db_import_run_finalize_validates_inputs(engine: Engine) -> None:
    service = SQLAlchemyImportRunService(engine=engine)
    started = service.db_import_run_create_started(account_id="ACC-1", source="nordnet", file_name="export.csv")

    with pytest.raises(ValueError):
        service.db_import_run_finalize(started.import_run_id, "done", 0, 0, None, None, None)
    with pytest.raises(ValueError):
        service.db_import_run_create_started(account_id=" ", source="nordnet", file_name="export.csv")


def test_db_health_service_reports_schema_reachable(engine: Engine) -> None:
    health = SQLAlchemyDatabaseHealthService(engine=engine).db_check_health()

    assert health.status == "ok"
    assert "asset_lot rows=0" in health.detail


def test_db_health_service_raises_connection_error_without_schema(tmp_path: Path) -> None:
    bare_engine = db_create_engine(f"sqlite:///{tmp_path / 'bare.db'}")
    try:
        with pytest.raises(ConnectionError):
            SQLAlchemyDatabaseHealthService(engine=bare_engine).db_check_health()
    finally:
        bare_engine.dispose()


def test_db_sqlite_foreign_keys_are_enforced(engine: Engine) -> None:
    with engine.connect() as connection:
        assert connection.execute(text("PRAGMA foreign_keys")).scalar_one() == 1
