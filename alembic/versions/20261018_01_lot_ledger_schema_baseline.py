"""Lot ledger schema baseline

Revision ID: 20261018_01
Revises: None
Create Date: 2026-10-18
"""
# pylint: disable=no-member,invalid-name,wrong-import-order

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "20261018_01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_TRANSACTION_KINDS = (
    "PURCHASE",
    "SALE",
    "TRANSFER_IN",
    "TRANSFER_OUT",
    "SPLIT_IN",
    "SPLIT_OUT",
    "DIVIDEND",
    "QUALIFIED_DIVIDEND",
)


def upgrade() -> None:
    """Upgrade schema.

    Amount columns hold scale-4 integer mantissas (value * 10^4).
    """

    op.create_table(
        "asset_lot",
        sa.Column("lot_id", sa.Text(), primary_key=True),
        sa.Column("account_id", sa.Text(), nullable=False),
        sa.Column("security_key", sa.Text(), nullable=False),
        sa.Column("symbol", sa.Text(), nullable=False),
        sa.Column("isin", sa.Text(), nullable=True),
        sa.Column("quantity", sa.BigInteger(), nullable=False),
        sa.Column("cost_basis_per_share", sa.BigInteger(), nullable=False),
        sa.Column("cost_basis_currency", sa.Text(), nullable=False),
        sa.Column("created_date", sa.Date(), nullable=False),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint("quantity >= 0", name="ck_asset_lot_quantity_non_negative"),
        sa.CheckConstraint("cost_basis_per_share >= 0", name="ck_asset_lot_cost_basis_non_negative"),
    )
    op.create_index("ix_asset_lot_security_key", "asset_lot", ["security_key"])
    op.create_index("ix_asset_lot_account_symbol", "asset_lot", ["account_id", "symbol"])
    op.create_index("ix_asset_lot_account_isin", "asset_lot", ["account_id", "isin"])

    op.create_table(
        "asset_lot_history",
        sa.Column("history_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("lot_id", sa.Text(), nullable=False),
        sa.Column("account_id", sa.Text(), nullable=False),
        sa.Column("symbol", sa.Text(), nullable=False),
        sa.Column("isin", sa.Text(), nullable=True),
        sa.Column("quantity", sa.BigInteger(), nullable=False),
        sa.Column("cost_basis_per_share", sa.BigInteger(), nullable=False),
        sa.Column("cost_basis_currency", sa.Text(), nullable=False),
        sa.Column("created_date", sa.Date(), nullable=False),
        sa.Column("as_of_date", sa.Date(), nullable=False),
        sa.Column("recorded_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["lot_id"], ["asset_lot.lot_id"], name="fk_asset_lot_history_lot"),
    )
    op.create_index("ix_asset_lot_history_lot_id", "asset_lot_history", ["lot_id", "history_id"])

    op.create_table(
        "ledger_transaction",
        sa.Column("transaction_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("account_id", sa.Text(), nullable=False),
        sa.Column("reference", sa.Text(), nullable=True),
        sa.Column("kind", sa.Text(), nullable=False),
        sa.Column("settlement_date", sa.Date(), nullable=False),
        sa.Column("symbol", sa.Text(), nullable=False),
        sa.Column("lot_id", sa.Text(), nullable=True),
        sa.Column("shares", sa.BigInteger(), nullable=False),
        sa.Column("price_per_share", sa.BigInteger(), nullable=False),
        sa.Column("share_value", sa.BigInteger(), nullable=False),
        sa.Column("fees", sa.BigInteger(), nullable=False),
        sa.Column("total_amount", sa.BigInteger(), nullable=False),
        sa.Column("currency", sa.Text(), nullable=False),
        sa.Column("created_at_utc", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["lot_id"], ["asset_lot.lot_id"], name="fk_ledger_transaction_lot"),
        sa.CheckConstraint("shares >= 0", name="ck_ledger_transaction_shares_non_negative"),
        sa.CheckConstraint(
            "kind in (" + ", ".join(f"'{kind}'" for kind in _TRANSACTION_KINDS) + ")",
            name="ck_ledger_transaction_kind",
        ),
    )
    op.create_index("ix_ledger_transaction_account_settlement", "ledger_transaction", ["account_id", "settlement_date"])
    op.create_index("ix_ledger_transaction_lot_id", "ledger_transaction", ["lot_id"])

    op.create_table(
        "import_run",
        sa.Column("import_run_id", sa.String(36), primary_key=True),
        sa.Column("account_id", sa.Text(), nullable=False),
        sa.Column("source", sa.Text(), nullable=False),
        sa.Column("file_name", sa.Text(), nullable=False),
        sa.Column("status", sa.Text(), nullable=False),
        sa.Column("started_at_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ended_at_utc", sa.DateTime(timezone=True), nullable=True),
        sa.Column("record_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("skipped_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("error_code", sa.Text(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("diagnostics", sa.JSON(), nullable=True),
        sa.CheckConstraint("status in ('started', 'success', 'failed')", name="ck_import_run_status"),
    )
    op.create_index("ix_import_run_started", "import_run", ["started_at_utc", "import_run_id"])
    op.create_index("ix_import_run_account_status", "import_run", ["account_id", "status"])


def downgrade() -> None:
    """Downgrade schema."""

    op.drop_index("ix_import_run_account_status", table_name="import_run")
    op.drop_index("ix_import_run_started", table_name="import_run")
    op.drop_table("import_run")

    op.drop_index("ix_ledger_transaction_lot_id", table_name="ledger_transaction")
    op.drop_index("ix_ledger_transaction_account_settlement", table_name="ledger_transaction")
    op.drop_table("ledger_transaction")

    op.drop_index("ix_asset_lot_history_lot_id", table_name="asset_lot_history")
    op.drop_table("asset_lot_history")

    op.drop_index("ix_asset_lot_account_isin", table_name="asset_lot")
    op.drop_index("ix_asset_lot_account_symbol", table_name="asset_lot")
    op.drop_index("ix_asset_lot_security_key", table_name="asset_lot")
    op.drop_table("asset_lot")
