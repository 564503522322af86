"""Health endpoint router composition for app and database checks."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from lotledger.db import DatabaseHealthPort


def api_create_health_router(db_health_service: DatabaseHealthPort) -> APIRouter:
    """Create health-check router with app and database connectivity status.

    Args:
        db_health_service: DB-layer health service interface.

    Returns:
        APIRouter: Router exposing `/health` endpoint.

    Raises:
        ValueError: Raised when db_health_service is invalid.
    """

    if db_health_service is None:
        raise ValueError("db_health_service must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return application and database health state; 503 when the database is unreachable."""

        payload: dict[str, object] = {"app": "up", "target": db_health_service.db_connection_label()}
        try:
            db_health = db_health_service.db_check_health()
        except ConnectionError as error:
            payload.update({"status": "degraded", "database": "down", "detail": str(error)})
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

        payload.update({"status": "ok", "database": db_health.status, "detail": db_health.detail})
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router
