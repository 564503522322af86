"""Field conversion helpers shared by broker export normalizers."""

from __future__ import annotations

import csv
from datetime import date, datetime
from pathlib import Path
from typing import Iterator, Mapping

from lotledger.domain import AMOUNT_ZERO, Amount, AmountParseError, LocaleUnit, TransactionKind, domain_amount_parse

from .interfaces import UnhandledTransactionKindError, ValueConversionError


def imports_resolve_kind(label: str, kind_labels: Mapping[str, TransactionKind]) -> TransactionKind:
    """Map a broker transaction label to a ledger kind.

    Raises:
        UnhandledTransactionKindError: Raised when the label is not mapped.
    """

    kind = kind_labels.get(label.strip())
    if kind is None:
        raise UnhandledTransactionKindError(label)
    return kind


def imports_parse_amount(value: str, locale: LocaleUnit, field_name: str) -> Amount:
    """Parse a required amount field.

    Raises:
        ValueConversionError: Raised when the field is blank or malformed.
    """

    try:
        return domain_amount_parse(value, locale)
    except AmountParseError as error:
        raise ValueConversionError(f"{field_name}: {error}") from error


def imports_parse_optional_amount(value: str, locale: LocaleUnit, field_name: str) -> Amount:
    """Parse an amount field where a blank value means zero.

    Raises:
        ValueConversionError: Raised when a non-blank field is malformed.
    """

    if not value.strip():
        return AMOUNT_ZERO
    return imports_parse_amount(value, locale, field_name)


def imports_parse_date(value: str, date_format: str, field_name: str) -> date:
    """Parse a date field with a `strptime` format.

    Raises:
        ValueConversionError: Raised when the field does not match the format.
    """

    try:
        return datetime.strptime(value.strip(), date_format).date()
    except ValueError as error:
        raise ValueConversionError(f"{field_name}: cannot parse {value!r} as {date_format}") from error


def imports_require_shares(shares: Amount, field_name: str) -> Amount:
    """Return the share quantity, rejecting zero where a basis must be spread over it.

    Raises:
        ValueConversionError: Raised when the quantity is zero.
    """

    if shares.is_zero():
        raise ValueConversionError(f"{field_name}: cannot spread basis over zero shares")
    return shares


def imports_read_delimited_rows(
    file_path: Path,
    encoding: str,
    delimiter: str,
    column_count: int,
) -> Iterator[tuple[int, list[str]]]:
    """Yield `(line_number, columns)` for each data row after the header.

    Blank lines are ignored. Extra
    trailing columns are cut to `column_count`.

    Args:
        file_path: Export file location.
        encoding: Text encoding of the file.
        delimiter: Field delimiter.
        column_count: Number of positional columns a row must provide.

    Yields:
        tuple[int, list[str]]: One-based source line number and row columns.

    Raises:
        OSError: Raised when the file cannot be opened.
        UnicodeDecodeError: Raised when the file does not match `encoding`.
        ValueConversionError: Raised when a row has fewer columns than required.
    """

    with open(file_path, encoding=encoding, newline="") as export_file:
        reader = csv.reader(export_file, delimiter=delimiter)
        for row_index, columns in enumerate(reader):
            if row_index == 0:
                continue
            if not columns or not any(column.strip() for column in columns):
                continue
            if len(columns) < column_count:
                raise ValueConversionError(
                    f"line {reader.line_num}: expected {column_count} columns, found {len(columns)}"
                )
            yield reader.line_num, columns[:column_count]
