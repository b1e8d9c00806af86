"""Orchestrator module - sub-task sequencing, retries and the final report."""

from .engine import (
	AutoOrchestrator,
	ExecutionStatus,
	OrchestrationConfig,
	OrchestrationResult,
	OrchestrationRun,
	TaskExecution,
	create_auto_orchestrator,
)
from .report import build_final_report

__all__ = [
	"AutoOrchestrator",
	"ExecutionStatus",
	"OrchestrationConfig",
	"OrchestrationResult",
	"OrchestrationRun",
	"TaskExecution",
	"create_auto_orchestrator",
	"build_final_report",
]
