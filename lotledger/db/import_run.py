"""Database service for import run lifecycle persistence and single-active-run enforcement."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from .interfaces import (
    ImportRunAlreadyActiveError,
    ImportRunRecord,
    ImportRunRepositoryPort,
    ImportRunState,
)

_IMPORT_RUN_SELECT_COLUMNS = (
    "SELECT "
    "import_run_id, account_id, source, file_name, status, started_at_utc, ended_at_utc, "
    "record_count, skipped_count, error_code, error_message, diagnostics "
    "FROM import_run "
)


class SQLAlchemyImportRunService(ImportRunRepositoryPort):
    """SQLAlchemy-backed import run service.

    This service centralizes import run write/read operations in the db layer,
    including the single-active-run rule per account.
    """

    def __init__(self, engine: Engine):
        """Initialize import run persistence service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Returns:
            None: This initializer does not return a value.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_import_run_create_started(self, account_id: str, source: str, file_name: str) -> ImportRunRecord:
        """Create a started run while enforcing a single active run per account.

        Args:
            account_id: Internal account identifier.
            source: Broker export source.
            file_name: Imported file name.

        Returns:
            ImportRunRecord: Newly created started run.

        Raises:
            ImportRunAlreadyActiveError: Raised when a started run exists for the account.
            ValueError: Raised when required inputs are blank.
            RuntimeError: Raised when persistence fails.
        """

        normalized_account_id = self._validate_non_empty_text(account_id, "account_id")
        normalized_source = self._validate_non_empty_text(source, "source")
        normalized_file_name = self._validate_non_empty_text(file_name, "file_name")
        import_run_id = uuid4()

        try:
            with self._engine.begin() as connection:
                active_row = connection.execute(
                    text(
                        "SELECT import_run_id "
                        "FROM import_run "
                        "WHERE account_id = :account_id AND status = 'started' "
                        "LIMIT 1"
                    ),
                    {"account_id": normalized_account_id},
                ).first()
                if active_row is not None:
                    raise ImportRunAlreadyActiveError("run already active")

                connection.execute(
                    text(
                        "INSERT INTO import_run ("
                        "import_run_id, account_id, source, file_name, status, started_at_utc, "
                        "record_count, skipped_count"
                        ") VALUES ("
                        ":import_run_id, :account_id, :source, :file_name, 'started', :started_at_utc, 0, 0"
                        ")"
                    ),
                    {
                        "import_run_id": str(import_run_id),
                        "account_id": normalized_account_id,
                        "source": normalized_source,
                        "file_name": normalized_file_name,
                        "started_at_utc": datetime.now(timezone.utc).isoformat(),
                    },
                )
                return self._db_fetch_run_by_id_or_raise(connection=connection, import_run_id=import_run_id)
        except SQLAlchemyError as error:
            raise RuntimeError("failed to create started import run") from error

    def db_import_run_finalize(  # pylint: disable=too-many-arguments
        self,
        import_run_id: UUID,
        status: str,
        record_count: int,
        skipped_count: int,
        error_code: str | None,
        error_message: str | None,
        diagnostics: list[dict[str, Any]] | None,
    ) -> ImportRunRecord:
        """Finalize one run with its end timestamp and counters.

        Args:
            import_run_id: Run identifier.
            status: Final status (`success` or `failed`).
            record_count: Number of records applied to the ledger.
            skipped_count: Number of source rows skipped.
            error_code: Optional deterministic error code.
            error_message: Optional human-readable message.
            diagnostics: Optional structured diagnostics payload.

        Returns:
            ImportRunRecord: Finalized run row.

        Raises:
            LookupError: Raised when run is not found.
            ValueError: Raised when final status or counters are invalid.
            RuntimeError: Raised when persistence fails.
        """

        if status not in {"success", "failed"}:
            raise ValueError("status must be one of: success, failed")
        if record_count < 0 or skipped_count < 0:
            raise ValueError("record_count and skipped_count must be >= 0")

        diagnostics_payload = None
        if diagnostics is not None:
            diagnostics_payload = json.dumps(diagnostics)

        try:
            with self._engine.begin() as connection:
                result = connection.execute(
                    text(
                        "UPDATE import_run SET "
                        "status = :status, "
                        "ended_at_utc = :ended_at_utc, "
                        "record_count = :record_count, "
                        "skipped_count = :skipped_count, "
                        "error_code = :error_code, "
                        "error_message = :error_message, "
                        "diagnostics = :diagnostics "
                        "WHERE import_run_id = :import_run_id"
                    ),
                    {
                        "status": status,
                        "ended_at_utc": datetime.now(timezone.utc).isoformat(),
                        "record_count": record_count,
                        "skipped_count": skipped_count,
                        "error_code": error_code,
                        "error_message": error_message,
                        "diagnostics": diagnostics_payload,
                        "import_run_id": str(import_run_id),
                    },
                )
                if result.rowcount == 0:
                    raise LookupError("import run not found")

                return self._db_fetch_run_by_id_or_raise(connection=connection, import_run_id=import_run_id)
        except SQLAlchemyError as error:
            raise RuntimeError("failed to finalize import run") from error

    def db_import_run_get_by_id(self, import_run_id: UUID) -> ImportRunRecord | None:
        """Fetch one import run by id.

        Args:
            import_run_id: Run identifier.

        Returns:
            ImportRunRecord | None: Matching run row or None.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(_IMPORT_RUN_SELECT_COLUMNS + "WHERE import_run_id = :import_run_id"),
                    {"import_run_id": str(import_run_id)},
                ).mappings().first()
                if row is None:
                    return None
                return self._map_import_run_record(row)
        except SQLAlchemyError as error:
            raise RuntimeError("failed to fetch import run by id") from error

    def db_import_run_list(self, limit: int, offset: int) -> list[ImportRunRecord]:
        """List runs with latest start first.

        Raises:
            ValueError: Raised when limit or offset are invalid.
            RuntimeError: Raised when database read fails.
        """

        if limit < 1:
            raise ValueError("limit must be >= 1")
        if offset < 0:
            raise ValueError("offset must be >= 0")

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(
                        _IMPORT_RUN_SELECT_COLUMNS
                        + "ORDER BY started_at_utc DESC, import_run_id DESC LIMIT :limit OFFSET :offset"
                    ),
                    {"limit": limit, "offset": offset},
                ).mappings().all()
                return [self._map_import_run_record(row) for row in rows]
        except SQLAlchemyError as error:
            raise RuntimeError("failed to list import runs") from error

    def _db_fetch_run_by_id_or_raise(self, connection, import_run_id: UUID) -> ImportRunRecord:
        row = connection.execute(
            text(_IMPORT_RUN_SELECT_COLUMNS + "WHERE import_run_id = :import_run_id"),
            {"import_run_id": str(import_run_id)},
        ).mappings().first()
        if row is None:
            raise LookupError("import run not found")
        return self._map_import_run_record(row)

    def _map_import_run_record(self, row: Any) -> ImportRunRecord:
        """Map SQLAlchemy row mapping to typed import run record.

        Args:
            row: SQLAlchemy mapping row.

        Returns:
            ImportRunRecord: Typed run record.

        Raises:
            TypeError: Raised when row structure is incompatible.
        """

        diagnostics_value = row["diagnostics"]
        if isinstance(diagnostics_value, str):
            diagnostics_value = json.loads(diagnostics_value)
        if diagnostics_value is not None and not isinstance(diagnostics_value, list):
            raise TypeError("import_run.diagnostics must be a JSON array when present")

        return ImportRunRecord(
            import_run_id=UUID(str(row["import_run_id"])),
            account_id=row["account_id"],
            source=row["source"],
            file_name=row["file_name"],
            state=ImportRunState(
                status=row["status"],
                started_at_utc=self._parse_timestamp(row["started_at_utc"]),
                ended_at_utc=self._parse_timestamp(row["ended_at_utc"]),
                record_count=int(row["record_count"]),
                skipped_count=int(row["skipped_count"]),
                error_code=row["error_code"],
                error_message=row["error_message"],
                diagnostics=diagnostics_value,
            ),
        )

    def _parse_timestamp(self, value: Any) -> datetime | None:
        if value is None or isinstance(value, datetime):
            return value
        return datetime.fromisoformat(str(value))

    def _validate_non_empty_text(self, value: str, field_name: str) -> str:
        """Validate required text input and return stripped value.

        Raises:
            ValueError: Raised when value is blank.
        """

        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError(f"{field_name} must not be blank")
        return stripped_value
