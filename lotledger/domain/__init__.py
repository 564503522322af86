"""Domain models and value types used across application layer boundaries."""

from .amount import (
	AMOUNT_SCALE,
	AMOUNT_ZERO,
	Amount,
	AmountParseError,
	LocaleUnit,
	domain_amount_format,
	domain_amount_parse,
	domain_amount_resolve_locale,
)
from .entities import domain_build_import_record, domain_derive_share_value, domain_sort_import_records
from .models import (
	AssetLot,
	AssetLotHistoryRecord,
	HealthStatus,
	LedgerImportRecord,
	Transaction,
	TransactionKind,
)
from .timeline import domain_build_stage_event

__all__ = [
	"AMOUNT_SCALE",
	"AMOUNT_ZERO",
	"Amount",
	"AmountParseError",
	"LocaleUnit",
	"domain_amount_format",
	"domain_amount_parse",
	"domain_amount_resolve_locale",
	"AssetLot",
	"AssetLotHistoryRecord",
	"HealthStatus",
	"LedgerImportRecord",
	"Transaction",
	"TransactionKind",
	"domain_build_import_record",
	"domain_derive_share_value",
	"domain_sort_import_records",
	"domain_build_stage_event",
]
