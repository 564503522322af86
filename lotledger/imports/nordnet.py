"""Nordnet transaction export normalization (UTF-16 LE, tab separated)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from pathlib import Path

from lotledger.domain import (
    LedgerImportRecord,
    LocaleUnit,
    TransactionKind,
    domain_build_import_record,
    domain_sort_import_records,
)

from .common import (
    imports_parse_date,
    imports_parse_optional_amount,
    imports_read_delimited_rows,
    imports_require_shares,
    imports_resolve_kind,
)
from .interfaces import BrokerExportReaderPort, ImportBatch, UnhandledTransactionKindError

_LOGGER = logging.getLogger(__name__)

NORDNET_SOURCE_NAME = "nordnet"
NORDNET_CURRENCY = "SEK"
NORDNET_DATE_FORMAT = "%Y-%m-%d"
NORDNET_ENCODING = "utf-16-le"

NORDNET_KIND_LABELS: dict[str, TransactionKind] = {
    "KÖPT": TransactionKind.PURCHASE,
    "SÅLT": TransactionKind.SALE,
    "BYTE INLÄGG VP": TransactionKind.TRANSFER_IN,
    "BYTE UTTAG VP": TransactionKind.TRANSFER_OUT,
    "SPLIT INLÄGG VP": TransactionKind.SPLIT_IN,
    "SPLIT UTTAG VP": TransactionKind.SPLIT_OUT,
    "UTDELNING": TransactionKind.DIVIDEND,
}


@dataclass(frozen=True)
class NordnetTransactionRow:  # pylint: disable=too-many-instance-attributes
    """One positional row of a Nordnet transaction export.

    Field order matches the export columns. Only the identifier, dates,
    transaction type, security, quantity, price, fee and purchase value
    columns feed the ledger; the rest are kept for traceability.
    """

    transaction_id: str
    booking_date: str
    trade_date: str
    settlement_date: str
    depot: str
    transaction_type: str
    security: str
    isin: str
    quantity: str
    price: str
    interest: str
    total_fee: str
    total_fee_currency: str
    amount: str
    amount_currency: str
    purchase_value: str
    purchase_value_currency: str
    result: str
    result_currency: str
    total_quantity: str
    balance: str
    exchange_rate: str
    transaction_text: str
    cancellation_date: str
    note_number: str
    verification_number: str
    brokerage: str
    brokerage_currency: str
    reference_exchange_rate: str
    initial_loan_rate: str


NORDNET_COLUMN_COUNT = len(fields(NordnetTransactionRow))


def imports_nordnet_build_record(row: NordnetTransactionRow, account_id: str) -> LedgerImportRecord:
    """Normalize one Nordnet row into a ledger import record.

    Transfer and split inflows carry their basis in the purchase value column
    as an aggregate for the whole quantity.

    Args:
        row: Positional export row.
        account_id: Account identifier stamped on the record.

    Returns:
        LedgerImportRecord: Normalized lot template and transaction.

    Raises:
        UnhandledTransactionKindError: Raised when the transaction type is not processed.
        ValueConversionError: Raised when a field is malformed.
    """

    kind = imports_resolve_kind(row.transaction_type, NORDNET_KIND_LABELS)
    shares = imports_parse_optional_amount(row.quantity, LocaleUnit.SE, "Antal")
    fees = imports_parse_optional_amount(row.total_fee, LocaleUnit.SE, "Total Avgift")
    settlement_date = imports_parse_date(row.settlement_date, NORDNET_DATE_FORMAT, "Likviddag")

    price_per_share = None
    aggregate_basis = None
    if kind in (TransactionKind.TRANSFER_IN, TransactionKind.SPLIT_IN):
        imports_require_shares(shares, "Antal")
        aggregate_basis = abs(imports_parse_optional_amount(row.purchase_value, LocaleUnit.SE, "Inköpsvärde"))
    else:
        price_per_share = imports_parse_optional_amount(row.price, LocaleUnit.SE, "Kurs")

    return domain_build_import_record(
        account_id=account_id,
        reference=row.transaction_id,
        kind=kind,
        settlement_date=settlement_date,
        symbol=row.security,
        isin=row.isin,
        shares=shares,
        fees=fees,
        currency=NORDNET_CURRENCY,
        price_per_share=price_per_share,
        aggregate_basis=aggregate_basis,
    )


class NordnetExportReader(BrokerExportReaderPort):
    """Reader for Nordnet transaction exports."""

    def imports_source_name(self) -> str:
        """Return the Nordnet source label."""

        return NORDNET_SOURCE_NAME

    def imports_read_export(self, file_path: Path, account_id: str) -> ImportBatch:
        """Read a Nordnet export, skipping rows with unhandled transaction types.

        Args:
            file_path: Export file location.
            account_id: Account identifier stamped on every record.

        Returns:
            ImportBatch: Sorted records and skipped row count.

        Raises:
            OSError: Raised when the file cannot be read.
            UnicodeDecodeError: Raised when the file is not UTF-16 LE.
            ValueConversionError: Raised when a handled row has a malformed field.
        """

        records: list[LedgerImportRecord] = []
        skipped_count = 0
        for line_number, columns in imports_read_delimited_rows(
            file_path=file_path,
            encoding=NORDNET_ENCODING,
            delimiter="\t",
            column_count=NORDNET_COLUMN_COUNT,
        ):
            row = NordnetTransactionRow(*columns)
            try:
                records.append(imports_nordnet_build_record(row, account_id))
            except UnhandledTransactionKindError as error:
                skipped_count += 1
                _LOGGER.debug("skipping line %d: %s", line_number, error)

        _LOGGER.info("read %d records from %s (%d skipped)", len(records), file_path, skipped_count)
        return ImportBatch(records=tuple(domain_sort_import_records(records)), skipped_count=skipped_count)
