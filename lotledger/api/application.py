"""FastAPI application factory for the lot ledger read API."""

from fastapi import FastAPI

from lotledger.config import AppSettings
from lotledger.db import DatabaseHealthPort, ImportRunRepositoryPort, LotLedgerReadRepositoryPort
from lotledger.ledger import LEDGER_ALLOCATION_POLICY

from .routers import (
    api_create_health_router,
    api_create_imports_router,
    api_create_lots_router,
    api_create_transactions_router,
)


def create_api_application(
    settings: AppSettings,
    db_health_service: DatabaseHealthPort,
    lot_repository: LotLedgerReadRepositoryPort,
    import_run_repository: ImportRunRepositoryPort,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata.
        db_health_service: Database health service used by health endpoints.
        lot_repository: Lot and transaction read repository.
        import_run_repository: Import run repository for list/detail APIs.

    Returns:
        FastAPI: Framework application instance.

    Raises:
        ValueError: Raised when a router dependency is invalid.
    """
    application = FastAPI(title="Lot Ledger")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return service metadata."""

        return {
            "service": "lot-ledger",
            "status": "ready",
            "environment": settings.environment_name,
            "allocation_policy": LEDGER_ALLOCATION_POLICY,
        }

    application.include_router(api_create_health_router(db_health_service=db_health_service))
    application.include_router(api_create_lots_router(settings=settings, lot_repository=lot_repository))
    application.include_router(api_create_transactions_router(settings=settings, lot_repository=lot_repository))
    application.include_router(
        api_create_imports_router(settings=settings, import_run_repository=import_run_repository)
    )

    return application
