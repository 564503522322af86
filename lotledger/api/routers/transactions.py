"""Transaction API router composition for the ledger transaction list endpoint."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from lotledger.config import AppSettings
from lotledger.db import LotLedgerReadRepositoryPort
from lotledger.domain import Transaction


def api_create_transactions_router(
    settings: AppSettings,
    lot_repository: LotLedgerReadRepositoryPort,
) -> APIRouter:
    """Create transaction router with a settlement-date filtered list endpoint.

    Args:
        settings: Runtime settings used for account and pagination defaults.
        lot_repository: DB-layer ledger read repository.

    Returns:
        APIRouter: Router exposing transaction APIs.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if lot_repository is None:
        raise ValueError("lot_repository must not be None")

    router = APIRouter(prefix="/transactions", tags=["transactions"])

    @router.get("")
    def api_transaction_list(
        account_id: str | None = Query(default=None),
        settlement_date_from: date | None = Query(default=None),
        settlement_date_to: date | None = Query(default=None),
        limit: int = Query(default=settings.api_default_limit, ge=1),
        offset: int = Query(default=0, ge=0),
    ) -> JSONResponse:
        """Return ledger transactions inside an inclusive settlement-date range.

        Returns:
            JSONResponse: Transaction list payload, 400 when the range is inverted.

        Raises:
            LedgerPersistenceError: Raised when repository read fails.
        """

        if (
            settlement_date_from is not None
            and settlement_date_to is not None
            and settlement_date_from > settlement_date_to
        ):
            payload = {
                "status": "error",
                "code": "INVALID_DATE_RANGE",
                "message": "settlement_date_from must be on or before settlement_date_to",
            }
            return JSONResponse(content=payload, status_code=status.HTTP_400_BAD_REQUEST)

        resolved_account_id = (account_id or settings.account_id).strip()
        applied_limit = min(limit, settings.api_max_limit)
        transactions = lot_repository.db_transaction_list(
            account_id=resolved_account_id,
            limit=applied_limit,
            offset=offset,
            settlement_date_from=settlement_date_from,
            settlement_date_to=settlement_date_to,
        )
        payload = {
            "items": [api_serialize_transaction(transaction) for transaction in transactions],
            "page": {
                "limit": limit,
                "applied_limit": applied_limit,
                "offset": offset,
                "returned": len(transactions),
            },
            "filters": {
                "account_id": resolved_account_id,
                "settlement_date_from": settlement_date_from.isoformat() if settlement_date_from else None,
                "settlement_date_to": settlement_date_to.isoformat() if settlement_date_to else None,
            },
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router


def api_serialize_transaction(transaction: Transaction) -> dict[str, object]:
    """Serialize one ledger transaction; amounts render as four-decimal strings.

    Args:
        transaction: Typed ledger transaction.

    Returns:
        dict[str, object]: JSON-serializable transaction payload.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        "transaction_id": transaction.transaction_id,
        "account_id": transaction.account_id,
        "reference": transaction.reference,
        "kind": transaction.kind.value,
        "settlement_date": transaction.settlement_date.isoformat(),
        "symbol": transaction.symbol,
        "lot_id": transaction.lot_id,
        "shares": str(transaction.shares),
        "price_per_share": str(transaction.price_per_share),
        "share_value": str(transaction.share_value),
        "fees": str(transaction.fees),
        "total_amount": str(transaction.total_amount),
        "currency": transaction.currency,
    }
