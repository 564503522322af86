"""Jobs layer package for import orchestration boundaries."""

from .import_orchestrator import ImportJobConfig, LedgerImportJobOrchestrator
from .interfaces import JobExecutionResult, JobOrchestratorPort

__all__ = [
	"ImportJobConfig",
	"JobExecutionResult",
	"JobOrchestratorPort",
	"LedgerImportJobOrchestrator",
]
