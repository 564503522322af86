"""E*Trade transaction export normalization (comma separated)."""

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
    imports_parse_amount,
    imports_parse_date,
    imports_parse_optional_amount,
    imports_read_delimited_rows,
    imports_require_shares,
    imports_resolve_kind,
)
from .interfaces import BrokerExportReaderPort, ImportBatch, UnhandledTransactionKindError

_LOGGER = logging.getLogger(__name__)

ETRADE_SOURCE_NAME = "etrade"
ETRADE_CURRENCY = "USD"
ETRADE_DATE_FORMAT = "%m/%d/%y"
ETRADE_ENCODING = "utf-8-sig"

ETRADE_KIND_LABELS: dict[str, TransactionKind] = {
    "Bought": TransactionKind.PURCHASE,
    "Sold": TransactionKind.SALE,
    "SplitIn": TransactionKind.SPLIT_IN,
    "SplitOut": TransactionKind.SPLIT_OUT,
    "TransferIn": TransactionKind.TRANSFER_IN,
    "TransferOut": TransactionKind.TRANSFER_OUT,
    "Dividend": TransactionKind.DIVIDEND,
    "Qualified Dividend": TransactionKind.QUALIFIED_DIVIDEND,
}


@dataclass(frozen=True)
class ETradeTransactionRow:
    """One positional row of an E*Trade transaction export."""

    transaction_date: str
    transaction_type: str
    security_type: str
    symbol: str
    quantity: str
    amount: str
    price: str
    commission: str
    description: str


ETRADE_COLUMN_COUNT = len(fields(ETradeTransactionRow))


def imports_etrade_build_record(row: ETradeTransactionRow, account_id: str) -> LedgerImportRecord:
    """Normalize one E*Trade row into a ledger import record.

    E*Trade rows have no ISIN and no transaction reference. Transfer and split
    inflows carry their basis in the amount column; dividends carry their net
    cash in the amount column.

    Args:
        row: Positional export row.
        account_id: Account identifier stamped on the record.

    Returns:
        LedgerImportRecord: Normalized lot template and transaction.

    Raises:
        UnhandledTransactionKindError: Raised when the transaction type is not processed.
        ValueConversionError: Raised when a field is malformed.
    """

    kind = imports_resolve_kind(row.transaction_type, ETRADE_KIND_LABELS)
    shares = imports_parse_optional_amount(row.quantity, LocaleUnit.US, "Quantity")
    fees = imports_parse_optional_amount(row.commission, LocaleUnit.US, "Commission")
    settlement_date = imports_parse_date(row.transaction_date, ETRADE_DATE_FORMAT, "TransactionDate")

    price_per_share = None
    aggregate_basis = None
    cash_total = None
    if kind in (TransactionKind.TRANSFER_IN, TransactionKind.SPLIT_IN):
        imports_require_shares(shares, "Quantity")
        aggregate_basis = abs(imports_parse_optional_amount(row.amount, LocaleUnit.US, "Amount"))
    else:
        price_per_share = imports_parse_optional_amount(row.price, LocaleUnit.US, "Price")
    if kind.is_cash_only:
        cash_total = imports_parse_amount(row.amount, LocaleUnit.US, "Amount")

    return domain_build_import_record(
        account_id=account_id,
        reference=None,
        kind=kind,
        settlement_date=settlement_date,
        symbol=row.symbol,
        isin=None,
        shares=shares,
        fees=fees,
        currency=ETRADE_CURRENCY,
        price_per_share=price_per_share,
        aggregate_basis=aggregate_basis,
        cash_total=cash_total,
    )


class ETradeExportReader(BrokerExportReaderPort):
    """Reader for E*Trade transaction exports."""

    def imports_source_name(self) -> str:
        """Return the E*Trade source label."""

        return ETRADE_SOURCE_NAME

    def imports_read_export(self, file_path: Path, account_id: str) -> ImportBatch:
        """Read an E*Trade export, skipping rows with unhandled transaction types.

        Raises:
            OSError: Raised when the file cannot be read.
            ValueConversionError: Raised when a handled row has a malformed field.
        """

        records: list[LedgerImportRecord] = []
        skipped_count = 0
        for line_number, columns in imports_read_delimited_rows(
            file_path=file_path,
            encoding=ETRADE_ENCODING,
            delimiter=",",
            column_count=ETRADE_COLUMN_COUNT,
        ):
            try:
                records.append(imports_etrade_build_record(ETradeTransactionRow(*columns), account_id))
            except UnhandledTransactionKindError as error:
                skipped_count += 1
                _LOGGER.debug("skipping line %d: %s", line_number, error)

        _LOGGER.info("read %d records from %s (%d skipped)", len(records), file_path, skipped_count)
        return ImportBatch(records=tuple(domain_sort_import_records(records)), skipped_count=skipped_count)
