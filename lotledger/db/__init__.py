"""Database layer package for all SQL and persistence boundaries."""

from .health import SQLAlchemyDatabaseHealthService
from .import_run import SQLAlchemyImportRunService
from .interfaces import (
	DatabaseHealthPort,
	ImportRunAlreadyActiveError,
	ImportRunRecord,
	ImportRunRepositoryPort,
	ImportRunState,
	LedgerPersistenceError,
	LedgerUnitOfWorkPort,
	LotLedgerReadRepositoryPort,
	LotLedgerRepositoryPort,
)
from .lot_ledger import SQLAlchemyLedgerUnitOfWork, SQLAlchemyLotLedgerService, db_derive_lot_id
from .session import db_create_engine

__all__ = [
	"DatabaseHealthPort",
	"ImportRunAlreadyActiveError",
	"ImportRunRecord",
	"ImportRunRepositoryPort",
	"ImportRunState",
	"LedgerPersistenceError",
	"LedgerUnitOfWorkPort",
	"LotLedgerReadRepositoryPort",
	"LotLedgerRepositoryPort",
	"SQLAlchemyDatabaseHealthService",
	"SQLAlchemyImportRunService",
	"SQLAlchemyLedgerUnitOfWork",
	"SQLAlchemyLotLedgerService",
	"db_create_engine",
	"db_derive_lot_id",
]
