"""
Context Generator - builds the token-bounded digest handed to the next sub-task.

Pipeline:

	analyze -> mode filter -> recency boost -> error re-inclusion
	-> mode summary -> goal banner -> token adjustment
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from ..modes.registry import mode_token_limit
from ..utils import contains_keyword
from .analyzer import ContextAnalysisConfig, analyze_context_from_results, filter_context_for_mode
from .models import (
	AnalyzedContext,
	ContextDebugInfo,
	ContextItem,
	ContextType,
	GeneratedContext,
	GeneratedContextMetadata,
	total_content_length,
)
from .strategies import DEFAULT_CONTEXT_CONFIG, ContextConfiguration, get_context_config_for_mode
from .summarizer import adjust_summary_for_token_limit, create_context_summary_for_mode
from .tokens import TokenEstimator, estimate_token_count

logger = logging.getLogger(__name__)

MODE_FILTER_MAX_ITEMS = 50
RECENCY_WINDOW_HOURS = 24
RECENCY_MAX_BONUS = 0.2
PRESERVED_ERROR_THRESHOLD = 0.6


@dataclass
class ContextGenerationConfig:
	"""Knobs for one generation. max_tokens None means the mode's strategy limit."""
	max_tokens: Optional[int] = None
	include_history: bool = True
	prioritize_recent: bool = True
	mode_specific_filtering: bool = True
	preserve_error_info: bool = True
	include_file_changes: bool = True


@dataclass
class ContextValidation:
	is_valid: bool
	issues: list[str] = field(default_factory=list)
	suggestions: list[str] = field(default_factory=list)


# Checked in order; the first goal family that matches picks the banner
GOAL_BANNERS: list[tuple[tuple[str, ...], str]] = [
	(
		("テスト", "test"),
		"**This is a testing task. Use the information below as reference:**",
	),
	(
		("バグ", "エラー", "修正", "bug", "error", "fix"),
		"**This is a bug-fix task. Focus on the error information and technical details below:**",
	),
	(
		("実装", "開発", "作成", "implement", "develop", "create", "build"),
		"**This is an implementation task. Refer to the file changes and technical details below:**",
	),
	(
		("設計", "アーキテクチャ", "design", "architect"),
		"**This is a design task. Focus on the design decisions and dependencies below:**",
	),
]


def generate_optimized_context(
	previous_results: Sequence[Optional[str]],
	next_task_type: str,
	next_task_goal: str,
	config: Optional[ContextGenerationConfig] = None,
	enable_debug: bool = False,
	strategy: Optional[str] = None,
	context_config: ContextConfiguration = DEFAULT_CONTEXT_CONFIG,
	estimator: Optional[TokenEstimator] = None,
) -> GeneratedContext:
	"""
	Compress prior sub-task results into a digest for the next sub-task.

	Args:
		previous_results: Outputs of the sub-tasks run so far, oldest first
		next_task_type: Mode of the sub-task about to run
		next_task_goal: Its description, used to pick a goal banner
		config: Generation knobs; defaults come from the mode settings
		enable_debug: Attach the analysis and a step trace to the result
		strategy: Context strategy name (balanced when None or unknown)
		context_config: Strategies, mode settings and the global history size,
			importance floor and step-logging switch

	Returns:
		GeneratedContext whose estimated token count is within budget
		for all but pathological inputs
	"""
	context_strategy, mode_settings = get_context_config_for_mode(context_config, next_task_type, strategy)
	config = config or ContextGenerationConfig(
		prioritize_recent=mode_settings.prioritize_recent,
		preserve_error_info=mode_settings.preserve_error_info,
		include_file_changes=mode_settings.include_file_changes,
	)
	max_tokens = config.max_tokens or context_strategy.token_limit_for(
		next_task_type, mode_token_limit(next_task_type)
	)

	steps = [f"Generating context for {next_task_type} mode (strategy: {context_strategy.name}), goal: {next_task_goal}"]

	global_settings = context_config.global_settings
	results = previous_results if config.include_history else list(previous_results)[-1:]
	analysis = analyze_context_from_results(
		results,
		ContextAnalysisConfig(
			max_items=global_settings.max_history_items,
			min_importance=global_settings.min_importance_threshold,
		),
	)
	steps.append(f"Analysis extracted {len(analysis.items)} context items")

	items = analysis.items
	if config.mode_specific_filtering:
		items = filter_context_for_mode(
			analysis,
			next_task_type,
			MODE_FILTER_MAX_ITEMS,
			weights=context_strategy.priority_weights,
		)
		steps.append(f"Mode filtering kept {len(items)} items")

	if not config.include_file_changes:
		items = [item for item in items if item.type != ContextType.FILE_CHANGE]
		steps.append(f"File changes excluded, {len(items)} items left")

	if config.prioritize_recent:
		items = prioritize_recent_items(items)
		steps.append("Applied recency boost")

	if config.preserve_error_info:
		before = len(items)
		items = ensure_error_info_preservation(items, analysis.items)
		steps.append(f"Error preservation re-included {len(items) - before} items")

	optimized = create_context_summary_for_mode(AnalyzedContext.from_items(items), next_task_type, max_tokens)

	banner = task_banner(next_task_goal)
	if banner:
		optimized = f"{banner}\n\n{optimized}"

	optimized = adjust_summary_for_token_limit(optimized, max_tokens, estimator)
	estimated_tokens = estimate_token_count(optimized, estimator)
	steps.append(f"Final context: {estimated_tokens} tokens (limit {max_tokens})")

	step_level = logging.INFO if global_settings.enable_debug_logging else logging.DEBUG
	for step in steps:
		logger.log(step_level, step)

	total_length = total_content_length(analysis.items)
	return GeneratedContext(
		optimized_context=optimized,
		metadata=GeneratedContextMetadata(
			original_item_count=len(analysis.items),
			filtered_item_count=len(items),
			estimated_tokens=estimated_tokens,
			compression_ratio=len(optimized) / total_length if total_length else 0.0,
			included_types=list(dict.fromkeys(item.type.value for item in items)),
		),
		debug_info=ContextDebugInfo(analysis_result=analysis, filtering_steps=steps) if enable_debug else None,
	)


def prioritize_recent_items(items: Iterable[ContextItem], now: Optional[datetime] = None) -> list[ContextItem]:
	"""Add up to +0.2 importance decaying linearly over 24 hours, clamp to 1.0, re-sort."""
	now = now or datetime.now()
	boosted = []
	for item in items:
		age_hours = (now - item.timestamp).total_seconds() / 3600
		bonus = max(0.0, 1 - age_hours / RECENCY_WINDOW_HOURS) * RECENCY_MAX_BONUS
		boosted.append(replace(item, importance=min(1.0, item.importance + bonus)))
	return sorted(boosted, key=lambda item: item.importance, reverse=True)


def ensure_error_info_preservation(
	filtered_items: Sequence[ContextItem],
	all_items: Sequence[ContextItem],
) -> list[ContextItem]:
	"""
	Re-include important errors that the mode filter dropped.

	Error items from all_items with importance >= 0.6 are added unless an
	error with the same dedupe key is already present. Returns a new list
	sorted by importance.
	"""
	seen = {item.dedupe_key for item in filtered_items if item.type == ContextType.ERROR_INFO}
	merged = list(filtered_items)

	for item in all_items:
		if item.type != ContextType.ERROR_INFO or item.importance < PRESERVED_ERROR_THRESHOLD:
			continue
		if item.dedupe_key not in seen:
			seen.add(item.dedupe_key)
			merged.append(item)

	return sorted(merged, key=lambda item: item.importance, reverse=True)


def task_banner(task_goal: str) -> str:
	"""Return the banner for the goal's first matching keyword family, or ''."""
	for keywords, banner in GOAL_BANNERS:
		if any(contains_keyword(task_goal, keyword) for keyword in keywords):
			return banner
	return ""


def create_context_for_subtask(
	previous_task_results: Sequence[Optional[str]],
	subtask_description: str,
	subtask_mode: str,
	max_tokens: Optional[int] = None,
	strategy: Optional[str] = None,
) -> GeneratedContext:
	"""Convenience wrapper used by the orchestrator before each sub-task."""
	return generate_optimized_context(
		previous_task_results,
		subtask_mode,
		subtask_description,
		config=ContextGenerationConfig(max_tokens=max_tokens) if max_tokens else None,
		strategy=strategy,
	)


def validate_context_generation(
	generated: GeneratedContext,
	max_tokens: int,
	required_types: Optional[Sequence[str]] = None,
	min_compression_ratio: Optional[float] = None,
) -> ContextValidation:
	"""Check a generated context against requirements. Never modifies it."""
	issues: list[str] = []
	suggestions: list[str] = []
	metadata = generated.metadata

	if metadata.estimated_tokens > max_tokens:
		issues.append(f"Token count exceeds limit: {metadata.estimated_tokens} > {max_tokens}")
		suggestions.append("Raise max_tokens or apply stricter filtering")

	if required_types:
		missing = [t for t in required_types if t not in metadata.included_types]
		if missing:
			issues.append(f"Missing required context types: {', '.join(missing)}")
			suggestions.append("Adjust the strategy weights so these types survive filtering")

	if min_compression_ratio is not None and metadata.compression_ratio < min_compression_ratio:
		issues.append(f"Compression ratio too low: {metadata.compression_ratio:.3f} < {min_compression_ratio}")
		suggestions.append("Use a more aggressive summarization strategy")

	if metadata.filtered_item_count == 0:
		issues.append("No context items left after filtering")
		suggestions.append("Relax the filtering conditions")

	return ContextValidation(is_valid=not issues, issues=issues, suggestions=suggestions)


def get_context_generation_stats(generated: GeneratedContext) -> dict[str, Any]:
	metadata = generated.metadata
	average_importance = None
	if generated.debug_info and generated.debug_info.analysis_result.items:
		analysis = generated.debug_info.analysis_result
		average_importance = analysis.total_importance / len(analysis.items)

	return {
		"efficiency": {
			"compression_ratio": metadata.compression_ratio,
			"token_efficiency": (
				metadata.filtered_item_count / metadata.estimated_tokens if metadata.estimated_tokens else 0.0
			),
			"filtering_effectiveness": (
				1 - metadata.filtered_item_count / metadata.original_item_count
				if metadata.original_item_count else 0.0
			),
		},
		"coverage": {
			"types_covered": len(metadata.included_types),
			"types_included": metadata.included_types,
			"items_preserved": metadata.filtered_item_count,
		},
		"quality": {
			"estimated_tokens": metadata.estimated_tokens,
			"context_length": len(generated.optimized_context),
			"average_item_importance": average_importance,
		},
	}
