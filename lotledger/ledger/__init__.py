"""Ledger layer package for lot allocation and transaction handling boundaries."""

from .allocator import (
	LEDGER_ALLOCATION_POLICY,
	LotAllocation,
	ledger_allocate_outflow,
	ledger_build_outflow_transactions,
	ledger_compute_split_basis,
	ledger_sort_lots_for_outflow,
)
from .engine import LotLedgerEngine
from .handlers import LEDGER_HANDLERS
from .interfaces import (
	AllocationShortfallError,
	LedgerPort,
	LedgerProcessResult,
	LedgerRecordOutcome,
	SplitWithoutPositionError,
	ledger_summarize_outcomes,
)

__all__ = [
	"LEDGER_ALLOCATION_POLICY",
	"LEDGER_HANDLERS",
	"AllocationShortfallError",
	"LedgerPort",
	"LedgerProcessResult",
	"LedgerRecordOutcome",
	"LotAllocation",
	"LotLedgerEngine",
	"SplitWithoutPositionError",
	"ledger_allocate_outflow",
	"ledger_build_outflow_transactions",
	"ledger_compute_split_basis",
	"ledger_sort_lots_for_outflow",
	"ledger_summarize_outcomes",
]
