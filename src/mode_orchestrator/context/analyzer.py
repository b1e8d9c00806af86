"""
Context Analyzer - extracts scored, typed context items from prior results.

Each prior sub-task result is split into sentences. Every sentence is
classified into exactly one ContextType by an ordered cascade of pattern
families (first match wins, errors first), scored for importance, and tagged
with the modes it is relevant to.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional, Sequence

from ..modes.registry import (
	ARCHITECT,
	ASK,
	CODE,
	CONTEXT_MODE_KEYWORDS,
	DEBUG,
	DEFAULT_MODE,
	ORCHESTRATOR,
)
from ..utils import contains_keyword
from .models import AnalyzedContext, ContextItem, ContextType

MIN_SENTENCE_LENGTH = 10
EXTRACTION_IMPORTANCE_FLOOR = 0.2

# Per-mode multipliers applied by filter_context_for_mode
MODE_SPECIFIC_WEIGHTS: dict[str, dict[ContextType, float]] = {
	ARCHITECT: {
		ContextType.DESIGN_DECISION: 1.5,
		ContextType.TECHNICAL_DETAIL: 1.2,
		ContextType.DEPENDENCY_INFO: 1.1,
		ContextType.FILE_CHANGE: 0.8,
		ContextType.ERROR_INFO: 0.7,
		ContextType.RESULT_SUMMARY: 0.9,
	},
	CODE: {
		ContextType.FILE_CHANGE: 1.5,
		ContextType.TECHNICAL_DETAIL: 1.3,
		ContextType.ERROR_INFO: 1.2,
		ContextType.DESIGN_DECISION: 1.0,
		ContextType.DEPENDENCY_INFO: 0.9,
		ContextType.RESULT_SUMMARY: 0.8,
	},
	DEBUG: {
		ContextType.ERROR_INFO: 1.6,
		ContextType.TECHNICAL_DETAIL: 1.2,
		ContextType.FILE_CHANGE: 1.1,
		ContextType.RESULT_SUMMARY: 1.0,
		ContextType.DESIGN_DECISION: 0.8,
		ContextType.DEPENDENCY_INFO: 0.7,
	},
	ASK: {
		ContextType.RESULT_SUMMARY: 1.4,
		ContextType.TECHNICAL_DETAIL: 1.1,
		ContextType.DESIGN_DECISION: 1.0,
		ContextType.ERROR_INFO: 0.9,
		ContextType.FILE_CHANGE: 0.8,
		ContextType.DEPENDENCY_INFO: 0.7,
	},
	ORCHESTRATOR: {
		ContextType.RESULT_SUMMARY: 1.3,
		ContextType.DEPENDENCY_INFO: 1.2,
		ContextType.DESIGN_DECISION: 1.1,
		ContextType.TECHNICAL_DETAIL: 1.0,
		ContextType.FILE_CHANGE: 0.9,
		ContextType.ERROR_INFO: 0.8,
	},
}


@dataclass
class ContextAnalysisConfig:
	max_items: int = 50
	min_importance: float = 0.3
	preferred_types: list[ContextType] = field(default_factory=lambda: [
		ContextType.TECHNICAL_DETAIL,
		ContextType.DESIGN_DECISION,
		ContextType.ERROR_INFO,
	])
	mode_specific_weights: dict[str, dict[ContextType, float]] = field(
		default_factory=lambda: MODE_SPECIFIC_WEIGHTS
	)


TECHNICAL_PATTERNS = [
	re.compile(r"API[^a-zA-Z]", re.IGNORECASE),
	re.compile(r"データベース|database", re.IGNORECASE),
	re.compile(r"フレームワーク|framework", re.IGNORECASE),
	re.compile(r"ライブラリ|library", re.IGNORECASE),
	re.compile(r"アーキテクチャ|architecture", re.IGNORECASE),
	re.compile(r"パフォーマンス|performance", re.IGNORECASE),
	re.compile(r"セキュリティ|security", re.IGNORECASE),
	re.compile(r"認証|authentication", re.IGNORECASE),
	re.compile(r"設定|config", re.IGNORECASE),
	re.compile(r"環境|environment", re.IGNORECASE),
]

FILE_CHANGE_PATTERNS = [
	re.compile(r"ファイル.*作成|created.*file", re.IGNORECASE),
	re.compile(r"ファイル.*更新|updated.*file", re.IGNORECASE),
	re.compile(r"ファイル.*削除|deleted.*file", re.IGNORECASE),
	re.compile(r"\.ts|\.js|\.py|\.java|\.cpp|\.html|\.css"),
	re.compile(r"src/|lib/|components/|pages/"),
	re.compile(r"package\.json|requirements\.txt|Dockerfile", re.IGNORECASE),
]

DESIGN_DECISION_PATTERNS = [
	re.compile(r"設計.*決定|design.*decision", re.IGNORECASE),
	re.compile(r"アプローチ|approach", re.IGNORECASE),
	re.compile(r"戦略|strategy", re.IGNORECASE),
	re.compile(r"パターン|pattern", re.IGNORECASE),
	re.compile(r"構造|structure", re.IGNORECASE),
	re.compile(r"選択.*理由|chosen.*because", re.IGNORECASE),
	re.compile(r"実装.*方針|implementation.*policy", re.IGNORECASE),
]

ERROR_PATTERNS = [
	re.compile(r"エラー|error", re.IGNORECASE),
	re.compile(r"例外|exception", re.IGNORECASE),
	re.compile(r"失敗|failed", re.IGNORECASE),
	re.compile(r"問題|problem", re.IGNORECASE),
	re.compile(r"バグ|bug", re.IGNORECASE),
	re.compile(r"修正|fix", re.IGNORECASE),
	re.compile(r"解決|resolve", re.IGNORECASE),
	re.compile(r"トラブル|trouble", re.IGNORECASE),
]

DEPENDENCY_PATTERNS = [
	re.compile(r"依存|depend", re.IGNORECASE),
	re.compile(r"要求|require", re.IGNORECASE),
	re.compile(r"前提|prerequisite", re.IGNORECASE),
	re.compile(r"必要|need", re.IGNORECASE),
	re.compile(r"関連|related", re.IGNORECASE),
	re.compile(r"影響|impact", re.IGNORECASE),
	re.compile(r"連携|integration", re.IGNORECASE),
]

# Evaluated in order, first match wins. Errors outrank everything else.
CLASSIFICATION_CASCADE: list[tuple[list[re.Pattern], ContextType]] = [
	(ERROR_PATTERNS, ContextType.ERROR_INFO),
	(FILE_CHANGE_PATTERNS, ContextType.FILE_CHANGE),
	(DESIGN_DECISION_PATTERNS, ContextType.DESIGN_DECISION),
	(DEPENDENCY_PATTERNS, ContextType.DEPENDENCY_INFO),
	(TECHNICAL_PATTERNS, ContextType.TECHNICAL_DETAIL),
]

TYPE_BASE_WEIGHTS = {
	ContextType.TECHNICAL_DETAIL: 0.8,
	ContextType.FILE_CHANGE: 0.9,
	ContextType.DESIGN_DECISION: 1.0,
	ContextType.ERROR_INFO: 0.7,
	ContextType.RESULT_SUMMARY: 0.6,
	ContextType.DEPENDENCY_INFO: 0.8,
}

# (markers, bonus) - any marker present adds the bonus once
EMPHASIS_BONUSES = [
	(("重要", "important"), 0.2),
	(("注意", "warning"), 0.15),
	(("必須", "required"), 0.15),
]

TYPE_TO_MODES = {
	ContextType.TECHNICAL_DETAIL: (ARCHITECT, CODE),
	ContextType.FILE_CHANGE: (CODE, DEBUG),
	ContextType.DESIGN_DECISION: (ARCHITECT, ORCHESTRATOR),
	ContextType.ERROR_INFO: (DEBUG, CODE),
	ContextType.RESULT_SUMMARY: (ORCHESTRATOR, ASK),
	ContextType.DEPENDENCY_INFO: (ARCHITECT, ORCHESTRATOR),
}

# Full stops only end a sentence when followed by whitespace, so "auth.py" survives
SENTENCE_DELIMITERS = re.compile(r"[。！？!?\n]|\.(?=\s|$)")


def analyze_context_from_results(
	previous_results: Sequence[Optional[str]],
	config: Optional[ContextAnalysisConfig] = None,
) -> AnalyzedContext:
	"""
	Extract, filter and rank context items from prior sub-task results.

	Args:
		previous_results: Raw result texts; None/empty entries are skipped
		config: Analysis limits (max_items, min_importance)

	Returns:
		AnalyzedContext with at most max_items items, sorted by importance
	"""
	config = config or ContextAnalysisConfig()
	timestamp = datetime.now()
	items: list[ContextItem] = []

	for i, result in enumerate(previous_results):
		if result:
			items.extend(extract_context_items(result, f"result-{i}", timestamp))

	filtered = sorted(
		(item for item in items if item.importance >= config.min_importance),
		key=lambda item: item.importance,
		reverse=True,
	)[: config.max_items]

	return AnalyzedContext.from_items(filtered)


def split_sentences(text: str) -> list[str]:
	"""Split text on sentence punctuation and newlines, dropping short fragments."""
	fragments = (s.strip() for s in SENTENCE_DELIMITERS.split(text))
	return [s for s in fragments if len(s) >= MIN_SENTENCE_LENGTH]


def extract_context_items(text: str, source: str, timestamp: datetime) -> list[ContextItem]:
	"""Turn every sufficiently long sentence of text into a ContextItem."""
	items = []
	for sentence in split_sentences(text):
		context_type = classify_context_type(sentence)
		importance = calculate_importance(sentence, context_type)
		if importance <= EXTRACTION_IMPORTANCE_FLOOR:
			continue
		items.append(ContextItem(
			type=context_type,
			content=sentence,
			importance=importance,
			relevant_modes=determine_relevant_modes(sentence, context_type),
			timestamp=timestamp,
			source=source,
		))
	return items


def classify_context_type(text: str) -> ContextType:
	for patterns, context_type in CLASSIFICATION_CASCADE:
		if any(p.search(text) for p in patterns):
			return context_type
	return ContextType.RESULT_SUMMARY


def calculate_importance(text: str, context_type: ContextType) -> float:
	"""Score a sentence in [0, 1] from its type, length, technical density and emphasis."""
	importance = 0.5 * TYPE_BASE_WEIGHTS[context_type]

	if len(text) > 100:
		importance += 0.1
	if len(text) > 200:
		importance += 0.1

	technical_terms = sum(1 for p in TECHNICAL_PATTERNS if p.search(text))
	importance += technical_terms * 0.05

	lowered = text.lower()
	for markers, bonus in EMPHASIS_BONUSES:
		if any(marker in lowered for marker in markers):
			importance += bonus

	return min(importance, 1.0)


def determine_relevant_modes(text: str, context_type: ContextType) -> tuple[str, ...]:
	modes = [
		mode for mode, keywords in CONTEXT_MODE_KEYWORDS.items()
		if any(contains_keyword(text, k) for k in keywords)
	]
	for mode in TYPE_TO_MODES.get(context_type, ()):
		if mode not in modes:
			modes.append(mode)
	return tuple(modes) if modes else (DEFAULT_MODE,)


def filter_context_for_mode(
	analyzed_context: AnalyzedContext,
	target_mode: str,
	max_items: int = 20,
	weights: Optional[dict[str, dict[ContextType, float]]] = None,
) -> list[ContextItem]:
	"""
	Select and reweight the items relevant to target_mode.

	Pure: the input context is left untouched and reweighted copies are
	returned, sorted by the new importance and capped at max_items.
	"""
	mode_weights = (weights or MODE_SPECIFIC_WEIGHTS).get(target_mode, {})

	reweighted = [
		replace(item, importance=item.importance * mode_weights.get(item.type, 1.0))
		for item in analyzed_context.items
		if target_mode in item.relevant_modes
	]
	reweighted.sort(key=lambda item: item.importance, reverse=True)
	return reweighted[:max_items]


def get_context_statistics(analyzed_context: AnalyzedContext) -> dict[str, Any]:
	"""Summary numbers about an analysis, for debugging and the CLI."""
	items = analyzed_context.items
	type_breakdown = []
	for context_type, group in analyzed_context.categories.items():
		group_total = sum(item.importance for item in group)
		type_breakdown.append({
			"type": context_type.value,
			"count": len(group),
			"avg_importance": group_total / len(group) if group else 0.0,
			"total_importance": group_total,
		})

	return {
		"total_items": len(items),
		"total_importance": analyzed_context.total_importance,
		"average_importance": analyzed_context.total_importance / len(items) if items else 0.0,
		"type_breakdown": type_breakdown,
		"most_important_item": items[0] if items else None,
		"oldest_item": min(items, key=lambda item: item.timestamp) if items else None,
	}
