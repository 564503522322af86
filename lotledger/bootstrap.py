"""Application bootstrap wiring for startup validation and dependency assembly."""

from pathlib import Path

from fastapi import FastAPI

from lotledger.api import create_api_application
from lotledger.config import AppSettings, config_configure_logging, config_load_settings
from lotledger.db import (
    SQLAlchemyDatabaseHealthService,
    SQLAlchemyImportRunService,
    SQLAlchemyLotLedgerService,
    db_create_engine,
)
from lotledger.imports import IMPORT_READERS
from lotledger.jobs import ImportJobConfig, LedgerImportJobOrchestrator
from lotledger.ledger import LotLedgerEngine


def bootstrap_load_settings() -> AppSettings:
    """Load settings and install logging for the configured level.

    Returns:
        AppSettings: Validated runtime settings.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    settings = config_load_settings()
    config_configure_logging(settings.log_level)
    return settings


def bootstrap_create_application(settings: AppSettings | None = None) -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Args:
        settings: Optional pre-loaded settings.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or bootstrap_load_settings()
    engine = db_create_engine(database_url=resolved_settings.database_url)
    return create_api_application(
        settings=resolved_settings,
        db_health_service=SQLAlchemyDatabaseHealthService(engine=engine),
        lot_repository=SQLAlchemyLotLedgerService(engine=engine),
        import_run_repository=SQLAlchemyImportRunService(engine=engine),
    )


def bootstrap_create_import_orchestrator(
    file_path: Path,
    source: str,
    account_id: str | None = None,
    settings: AppSettings | None = None,
) -> LedgerImportJobOrchestrator:
    """Build the import orchestrator for one broker export file.

    Args:
        file_path: Broker export file location.
        source: Export format label (`nordnet`, `etrade`).
        account_id: Optional account override; defaults to the configured account.
        settings: Optional pre-loaded settings.

    Returns:
        LedgerImportJobOrchestrator: Fully wired import orchestrator instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
        ValueError: Raised when source is not a supported export format.
    """

    reader = IMPORT_READERS.get(source.strip().lower())
    if reader is None:
        raise ValueError(f"unsupported source={source}; expected one of: {', '.join(sorted(IMPORT_READERS))}")

    resolved_settings = settings or bootstrap_load_settings()
    engine = db_create_engine(database_url=resolved_settings.database_url)
    return LedgerImportJobOrchestrator(
        import_run_repository=SQLAlchemyImportRunService(engine=engine),
        ledger=LotLedgerEngine(repository=SQLAlchemyLotLedgerService(engine=engine)),
        reader=reader,
        config=ImportJobConfig(
            account_id=(account_id or resolved_settings.account_id).strip(),
            file_path=file_path,
        ),
    )
