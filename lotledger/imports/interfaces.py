"""Typed interfaces for broker export normalization."""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from lotledger.domain import LedgerImportRecord


class UnhandledTransactionKindError(ValueError):
    """Raised when a broker row carries a transaction label the ledger does not process.

    Attributes:
        label: Source transaction label.
    """

    def __init__(self, label: str):
        super().__init__(f"unhandled transaction kind: {label!r}")
        self.label = label


class ValueConversionError(ValueError):
    """Raised when a broker row field cannot be converted into a ledger value."""


@dataclass(frozen=True)
class ImportBatch:
    """Normalized records read from one broker export file.

    Attributes:
        records: Records sorted by settlement date, inflows first on ties.
        skipped_count: Number of rows skipped as unhandled transaction kinds.
    """

    records: tuple[LedgerImportRecord, ...]
    skipped_count: int


class BrokerExportReaderPort(Protocol):
    """Port definition for reading one broker export format."""

    def imports_source_name(self) -> str:
        """Return the stable source label (for example `nordnet`).

        Returns:
            str: Source label stored on import runs.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

    def imports_read_export(self, file_path: Path, account_id: str) -> ImportBatch:
        """Read and normalize one export file.

        Args:
            file_path: Export file location.
            account_id: Account identifier stamped on every record.

        Returns:
            ImportBatch: Sorted records and skipped row count.

        Raises:
            OSError: Raised when the file cannot be read.
            ValueConversionError: Raised when a handled row has a malformed field.
        """
