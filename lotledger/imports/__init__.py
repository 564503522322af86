"""Broker export normalization package producing ledger import records."""

from .etrade import ETRADE_KIND_LABELS, ETradeExportReader, ETradeTransactionRow, imports_etrade_build_record
from .interfaces import BrokerExportReaderPort, ImportBatch, UnhandledTransactionKindError, ValueConversionError
from .nordnet import NORDNET_KIND_LABELS, NordnetExportReader, NordnetTransactionRow, imports_nordnet_build_record

IMPORT_READERS: dict[str, BrokerExportReaderPort] = {
	"nordnet": NordnetExportReader(),
	"etrade": ETradeExportReader(),
}

__all__ = [
	"ETRADE_KIND_LABELS",
	"IMPORT_READERS",
	"NORDNET_KIND_LABELS",
	"BrokerExportReaderPort",
	"ETradeExportReader",
	"ETradeTransactionRow",
	"ImportBatch",
	"NordnetExportReader",
	"NordnetTransactionRow",
	"UnhandledTransactionKindError",
	"ValueConversionError",
	"imports_etrade_build_record",
	"imports_nordnet_build_record",
]
