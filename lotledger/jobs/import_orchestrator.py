"""Job-layer import orchestrator with stage timeline persistence."""

from __future__ import annotations

import logging
import traceback
from dataclasses import dataclass
from pathlib import Path

from lotledger.db import ImportRunRepositoryPort, LedgerPersistenceError
from lotledger.domain import AmountParseError, LedgerImportRecord, domain_build_stage_event
from lotledger.imports import BrokerExportReaderPort, ValueConversionError
from lotledger.ledger import (
    AllocationShortfallError,
    LedgerPort,
    LedgerRecordOutcome,
    SplitWithoutPositionError,
    ledger_summarize_outcomes,
)

from .interfaces import JobExecutionResult, JobOrchestratorPort

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportJobConfig:
    """Configuration values for one broker export import.

    Attributes:
        account_id: Account identifier stamped on imported records.
        file_path: Broker export file location.
    """

    account_id: str
    file_path: Path


class LedgerImportJobOrchestrator(JobOrchestratorPort):
    """Read one broker export and apply it to the lot ledger as a tracked import run."""

    _IMPORT_JOB_NAME = "ledger_import"

    def __init__(
        self,
        import_run_repository: ImportRunRepositoryPort,
        ledger: LedgerPort,
        reader: BrokerExportReaderPort,
        config: ImportJobConfig,
    ):
        """Initialize import orchestrator dependencies.

        Args:
            import_run_repository: DB-layer import run persistence service.
            ledger: Lot ledger engine.
            reader: Broker export reader for the file format.
            config: Import execution configuration.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        if import_run_repository is None:
            raise ValueError("import_run_repository must not be None")
        if ledger is None:
            raise ValueError("ledger must not be None")
        if reader is None:
            raise ValueError("reader must not be None")
        if not config.account_id.strip():
            raise ValueError("config.account_id must not be blank")
        if not str(config.file_path).strip():
            raise ValueError("config.file_path must not be blank")

        self._import_run_repository = import_run_repository
        self._ledger = ledger
        self._reader = reader
        self._config = config

    def job_supported_names(self) -> tuple[str, ...]:
        """Return supported job names.

        Returns:
            tuple[str, ...]: Supported job names.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        return (self._IMPORT_JOB_NAME,)

    def job_execute(self, job_name: str) -> JobExecutionResult:
        """Execute the import workflow with stage timeline persistence.

        The run is finalized as `failed` with a deterministic error code when
        reading or ledger processing fails. Records applied before a ledger
        failure stay committed and are counted in the run `record_count`; the
        failing record is rolled back and identified in the `ledger` stage
        failure details.

        Args:
            job_name: Name of job to execute.

        Returns:
            JobExecutionResult: Final execution status payload.

        Raises:
            ValueError: Raised when job name is unsupported.
            ImportRunAlreadyActiveError: Raised when another import run is active for the account.
        """

        normalized_job_name = job_name.strip()
        if normalized_job_name != self._IMPORT_JOB_NAME:
            raise ValueError(f"unsupported job_name={normalized_job_name}")

        source_name = self._reader.imports_source_name()
        timeline: list[dict[str, object]] = []
        timeline.append(domain_build_stage_event(stage="run", status="started"))

        run_record = self._import_run_repository.db_import_run_create_started(
            account_id=self._config.account_id,
            source=source_name,
            file_name=self._config.file_path.name,
        )
        run_id = str(run_record.import_run_id)
        _LOGGER.info("import run %s started: source=%s file=%s", run_id, source_name, self._config.file_path)

        skipped_count = 0
        outcomes: list[LedgerRecordOutcome] = []
        failing_record: LedgerImportRecord | None = None
        try:
            timeline.append(domain_build_stage_event(stage="read", status="started"))
            batch = self._reader.imports_read_export(self._config.file_path, self._config.account_id)
            skipped_count = batch.skipped_count
            timeline.append(
                domain_build_stage_event(
                    stage="read",
                    status="completed",
                    details={"record_count": len(batch.records), "skipped_count": batch.skipped_count},
                )
            )

            timeline.append(
                domain_build_stage_event(
                    stage="ledger",
                    status="started",
                    details={"policy": self._ledger.ledger_policy_name()},
                )
            )
            for record in batch.records:
                failing_record = record
                outcomes.append(self._ledger.ledger_process_record(record))
            failing_record = None
            process_result = ledger_summarize_outcomes(outcomes)
            timeline.append(
                domain_build_stage_event(
                    stage="ledger",
                    status="completed",
                    details={
                        "record_count": process_result.record_count,
                        "transaction_count": process_result.transaction_count,
                        "lot_created_count": process_result.lot_created_count,
                        "lot_updated_count": process_result.lot_updated_count,
                    },
                )
            )

            timeline.append(domain_build_stage_event(stage="run", status="success"))
            self._import_run_repository.db_import_run_finalize(
                import_run_id=run_record.import_run_id,
                status="success",
                record_count=process_result.record_count,
                skipped_count=skipped_count,
                error_code=None,
                error_message=None,
                diagnostics=timeline,
            )
            _LOGGER.info("import run %s succeeded: records=%d", run_id, process_result.record_count)
            return JobExecutionResult(job_name=normalized_job_name, status="success", run_id=run_id)
        except (OSError, ValueError, RuntimeError, ArithmeticError, LookupError) as error:
            error_code = self._job_error_code_for_exception(error)
            committed_count = len(outcomes)

            if failing_record is not None:
                # records before the failing one stay committed
                timeline.append(
                    domain_build_stage_event(
                        stage="ledger",
                        status="failed",
                        details={
                            "committed_record_count": committed_count,
                            "failed_record_index": committed_count + 1,
                            "failed_record_kind": failing_record.transaction.kind.value,
                            "failed_record_reference": failing_record.transaction.reference,
                            "failed_record_settlement_date": failing_record.transaction.settlement_date.isoformat(),
                        },
                    )
                )
            timeline.append(
                domain_build_stage_event(
                    stage="run",
                    status="failed",
                    details={
                        "error_type": type(error).__name__,
                        "error_message": str(error),
                        "traceback": traceback.format_exc(),
                    },
                )
            )
            self._import_run_repository.db_import_run_finalize(
                import_run_id=run_record.import_run_id,
                status="failed",
                record_count=committed_count,
                skipped_count=skipped_count,
                error_code=error_code,
                error_message=str(error),
                diagnostics=timeline,
            )
            _LOGGER.error(
                "import run %s failed with %s after %d committed records: %s",
                run_id,
                error_code,
                committed_count,
                error,
            )
            return JobExecutionResult(job_name=normalized_job_name, status="failed", run_id=run_id)

    def _job_error_code_for_exception(self, error: Exception) -> str:
        """Map a caught workflow exception to a deterministic import failure code.

        Args:
            error: Caught workflow exception.

        Returns:
            str: Deterministic error code.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        if isinstance(error, AllocationShortfallError):
            return "IMPORT_ALLOCATION_SHORTFALL"
        if isinstance(error, LedgerPersistenceError):
            return "IMPORT_PERSISTENCE_ERROR"
        if isinstance(error, SplitWithoutPositionError):
            return "IMPORT_SPLIT_WITHOUT_POSITION"
        if isinstance(error, (ValueConversionError, AmountParseError)):
            return "IMPORT_VALUE_CONVERSION_ERROR"
        if isinstance(error, (OSError, UnicodeError)):
            return "IMPORT_FILE_READ_ERROR"
        if isinstance(error, ValueError):
            return "IMPORT_CONTRACT_ERROR"
        return "IMPORT_UNEXPECTED_ERROR"
