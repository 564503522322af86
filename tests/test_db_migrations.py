"""Regression tests for the Alembic migration baseline on SQLite."""

from __future__ import annotations

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

_REPOSITORY_ROOT = Path(__file__).resolve().parents[1]


def _migration_build_config(database_url: str, monkeypatch: pytest.MonkeyPatch) -> Config:
    """Build an Alembic config bound to one database URL.

    Args:
        database_url: SQLAlchemy URL for the migration target.
        monkeypatch: Fixture used to point settings at the target.

    Returns:
        Config: Alembic configuration object.
    """

    monkeypatch.setenv("DATABASE_URL", database_url)
    alembic_config = Config(str(_REPOSITORY_ROOT / "alembic.ini"))
    alembic_config.set_main_option("script_location", str(_REPOSITORY_ROOT / "alembic"))
    return alembic_config


def test_migration_upgrade_and_downgrade_round_trip(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Upgrade creates the ledger tables and downgrade removes them again."""

    database_url = f"sqlite:///{tmp_path / 'migrations.db'}"
    alembic_config = _migration_build_config(database_url, monkeypatch)
    engine = create_engine(database_url)
    try:
        command.upgrade(alembic_config, "head")
        inspector = inspect(engine)
        assert {"asset_lot", "asset_lot_history", "ledger_transaction", "import_run"} <= set(
            inspector.get_table_names()
        )
        lot_columns = {column["name"] for column in inspector.get_columns("asset_lot")}
        assert {"lot_id", "security_key", "quantity", "cost_basis_per_share", "created_date"} <= lot_columns

        command.downgrade(alembic_config, "base")
        assert set(inspect(engine).get_table_names()) <= {"alembic_version"}
    finally:
        engine.dispose()


def test_migration_enforces_lot_and_transaction_checks(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    database_url = f"sqlite:///{tmp_path / 'checks.db'}"
    command.upgrade(_migration_build_config(database_url, monkeypatch), "head")
    engine = create_engine(database_url)
    try:
        with pytest.raises(IntegrityError):
            with engine.begin() as connection:
                connection.execute(
                    text(
                        "INSERT INTO asset_lot (lot_id, account_id, security_key, symbol, quantity, "
                        "cost_basis_per_share, cost_basis_currency, created_date) "
                        "VALUES ('X-20240101-000001', 'ACC-1', 'X', 'X', -1, 0, 'SEK', '2024-01-01')"
                    )
                )
        with pytest.raises(IntegrityError):
            with engine.begin() as connection:
                connection.execute(
                    text(
                        "INSERT INTO ledger_transaction (account_id, kind, settlement_date, symbol, shares, "
                        "price_per_share, share_value, fees, total_amount, currency) "
                        "VALUES ('ACC-1', 'GIFT', '2024-01-01', 'X', 0, 0, 0, 0, 0, 'SEK')"
                    )
                )
    finally:
        engine.dispose()
