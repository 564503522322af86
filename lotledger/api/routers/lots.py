"""Lot API router composition for lot list, detail and history endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from lotledger.config import AppSettings
from lotledger.db import LotLedgerReadRepositoryPort
from lotledger.domain import AssetLot, AssetLotHistoryRecord


def api_create_lots_router(settings: AppSettings, lot_repository: LotLedgerReadRepositoryPort) -> APIRouter:
    """Create lot router with list, detail and history endpoints.

    Args:
        settings: Runtime settings used for account and pagination defaults.
        lot_repository: DB-layer lot read repository.

    Returns:
        APIRouter: Router exposing lot APIs.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if lot_repository is None:
        raise ValueError("lot_repository must not be None")

    router = APIRouter(prefix="/lots", tags=["lots"])

    @router.get("")
    def api_lot_list(
        account_id: str | None = Query(default=None),
        symbol: str | None = Query(default=None),
        open_only: bool = Query(default=False),
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> JSONResponse:
        """Return lots of one account ordered by creation date.

        Args:
            account_id: Account filter, defaults to the configured account.
            symbol: Optional symbol filter.
            open_only: Whether to return only lots with remaining quantity.
            limit: Max rows to return.
            offset: Rows to skip.

        Returns:
            JSONResponse: Lot list payload.

        Raises:
            LedgerPersistenceError: Raised when repository read fails.
        """

        resolved_account_id = (account_id or settings.account_id).strip()
        normalized_symbol = symbol.strip() if symbol is not None and symbol.strip() else None
        applied_limit = min(limit, settings.api_max_limit)
        lots = lot_repository.db_lot_list(
            account_id=resolved_account_id,
            limit=applied_limit,
            offset=offset,
            symbol=normalized_symbol,
            open_only=open_only,
        )
        payload = {
            "items": [api_serialize_lot(lot) for lot in lots],
            "page": {
                "limit": limit,
                "applied_limit": applied_limit,
                "offset": offset,
                "returned": len(lots),
            },
            "filters": {
                "account_id": resolved_account_id,
                "symbol": normalized_symbol,
                "open_only": open_only,
            },
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/{lot_id}")
    def api_lot_detail(lot_id: str) -> JSONResponse:
        """Return one lot or 404 when absent."""

        lot = lot_repository.db_lot_get_by_id(lot_id=lot_id)
        if lot is None:
            payload = {
                "status": "error",
                "message": "lot not found",
            }
            return JSONResponse(content=payload, status_code=status.HTTP_404_NOT_FOUND)
        return JSONResponse(content=api_serialize_lot(lot), status_code=status.HTTP_200_OK)

    @router.get("/{lot_id}/history")
    def api_lot_history(lot_id: str) -> JSONResponse:
        """Return the snapshot history of one lot or 404 when the lot is absent."""

        if lot_repository.db_lot_get_by_id(lot_id=lot_id) is None:
            payload = {
                "status": "error",
                "message": "lot not found",
            }
            return JSONResponse(content=payload, status_code=status.HTTP_404_NOT_FOUND)

        history_rows = lot_repository.db_lot_history_list(lot_id=lot_id)
        payload = {
            "lot_id": lot_id,
            "items": [api_serialize_lot_history_record(history_row) for history_row in history_rows],
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router


def api_serialize_lot(lot: AssetLot) -> dict[str, object]:
    """Serialize one lot; amounts render as four-decimal strings.

    Args:
        lot: Typed lot.

    Returns:
        dict[str, object]: JSON-serializable lot payload.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        "lot_id": lot.lot_id,
        "account_id": lot.account_id,
        "symbol": lot.symbol,
        "isin": lot.isin,
        "quantity": str(lot.quantity),
        "cost_basis_per_share": str(lot.cost_basis_per_share),
        "cost_basis_currency": lot.cost_basis_currency,
        "created_date": lot.created_date.isoformat(),
        "is_closed": lot.is_closed,
    }


def api_serialize_lot_history_record(history_record: AssetLotHistoryRecord) -> dict[str, object]:
    payload = api_serialize_lot(history_record.lot)
    payload["history_id"] = history_record.history_id
    payload["as_of_date"] = history_record.as_of_date.isoformat()
    return payload
