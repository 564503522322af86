"""Import run API router composition for run list and detail endpoints."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from lotledger.config import AppSettings
from lotledger.db import ImportRunRecord, ImportRunRepositoryPort


def api_create_imports_router(settings: AppSettings, import_run_repository: ImportRunRepositoryPort) -> APIRouter:
    """Create import router with run list and detail endpoints.

    Args:
        settings: Runtime settings used for pagination defaults.
        import_run_repository: DB-layer import run repository.

    Returns:
        APIRouter: Router exposing import run APIs.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if import_run_repository is None:
        raise ValueError("import_run_repository must not be None")

    router = APIRouter(prefix="/imports", tags=["imports"])

    @router.get("")
    def api_import_run_list(
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> JSONResponse:
        """Return import runs ordered by latest first.

        Args:
            limit: Max rows to return.
            offset: Rows to skip.

        Returns:
            JSONResponse: Runs list payload.

        Raises:
            RuntimeError: Raised when repository read fails.
        """

        applied_limit = min(limit, settings.api_max_limit)
        run_rows = import_run_repository.db_import_run_list(limit=applied_limit, offset=offset)
        payload = {
            "items": [api_serialize_import_run_record(run_record) for run_record in run_rows],
            "page": {
                "limit": limit,
                "applied_limit": applied_limit,
                "offset": offset,
                "returned": len(run_rows),
            },
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/{import_run_id}")
    def api_import_run_detail(import_run_id: UUID) -> JSONResponse:
        """Return one import run detail payload or 404 when absent."""

        run_record = import_run_repository.db_import_run_get_by_id(import_run_id=import_run_id)
        if run_record is None:
            payload = {
                "status": "error",
                "message": "import run not found",
            }
            return JSONResponse(content=payload, status_code=status.HTTP_404_NOT_FOUND)

        return JSONResponse(
            content=api_serialize_import_run_record(run_record),
            status_code=status.HTTP_200_OK,
        )

    return router


def api_serialize_import_run_record(run_record: ImportRunRecord) -> dict[str, object]:
    """Serialize typed import run row to JSON response payload.

    Args:
        run_record: Typed import run record.

    Returns:
        dict[str, object]: JSON-serializable import run payload.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        "import_run_id": str(run_record.import_run_id),
        "account_id": run_record.account_id,
        "source": run_record.source,
        "file_name": run_record.file_name,
        "status": run_record.state.status,
        "started_at_utc": run_record.state.started_at_utc.isoformat(),
        "ended_at_utc": run_record.state.ended_at_utc.isoformat() if run_record.state.ended_at_utc else None,
        "record_count": run_record.state.record_count,
        "skipped_count": run_record.state.skipped_count,
        "error_code": run_record.state.error_code,
        "error_message": run_record.state.error_message,
        "diagnostics": run_record.state.diagnostics,
    }
