"""Context pipeline - analysis, summarization and generation of sub-task digests."""

from .analyzer import (
	ContextAnalysisConfig,
	analyze_context_from_results,
	filter_context_for_mode,
	get_context_statistics,
)
from .generator import (
	ContextGenerationConfig,
	ContextValidation,
	create_context_for_subtask,
	generate_optimized_context,
	get_context_generation_stats,
	validate_context_generation,
)
from .models import AnalyzedContext, ContextItem, ContextType, GeneratedContext, SummarizedContext
from .strategies import (
	DEFAULT_CONTEXT_CONFIG,
	ContextConfiguration,
	ContextStrategy,
	ModeContextSettings,
	create_custom_strategy,
	get_context_config_for_mode,
	merge_context_configs,
	validate_context_config,
)
from .summarizer import (
	SummaryConfig,
	adjust_summary_for_token_limit,
	create_context_summary_for_mode,
	summarize_context,
)
from .tokens import HeuristicTokenEstimator, TokenEstimator, estimate_token_count

__all__ = [
	"AnalyzedContext",
	"ContextItem",
	"ContextType",
	"GeneratedContext",
	"SummarizedContext",
	"ContextAnalysisConfig",
	"analyze_context_from_results",
	"filter_context_for_mode",
	"get_context_statistics",
	"SummaryConfig",
	"summarize_context",
	"create_context_summary_for_mode",
	"adjust_summary_for_token_limit",
	"ContextGenerationConfig",
	"ContextValidation",
	"generate_optimized_context",
	"create_context_for_subtask",
	"validate_context_generation",
	"get_context_generation_stats",
	"ContextStrategy",
	"ContextConfiguration",
	"ModeContextSettings",
	"DEFAULT_CONTEXT_CONFIG",
	"create_custom_strategy",
	"validate_context_config",
	"get_context_config_for_mode",
	"merge_context_configs",
	"TokenEstimator",
	"HeuristicTokenEstimator",
	"estimate_token_count",
]
