"""
Context Summarizer - renders an AnalyzedContext as a compact Markdown digest.
"""

import re
from collections import Counter
from dataclasses import dataclass
from typing import Callable, Optional

from ..modes.registry import ARCHITECT, ASK, CODE, DEBUG, ORCHESTRATOR
from .models import (
	AnalyzedContext,
	ContextItem,
	ContextType,
	SummarizedContext,
	SummaryMetadata,
	total_content_length,
)
from .tokens import TokenEstimator, estimate_token_count

ITEMS_PER_GROUP = 5
LINES_PER_BLOCK = 3
MAX_KEY_POINTS = 10
KEY_POINT_THRESHOLD = 0.8
KEY_POINT_MAX_LENGTH = 100
MAX_ADJUST_PASSES = 3


@dataclass
class SummaryConfig:
	max_length: int = 2000
	priority_threshold: float = 0.7
	group_by_type: bool = True
	preserve_important_details: bool = True


TYPE_DESCRIPTIONS = {
	ContextType.TECHNICAL_DETAIL.value: "Technical details",
	ContextType.FILE_CHANGE.value: "File changes",
	ContextType.DESIGN_DECISION.value: "Design decisions",
	ContextType.ERROR_INFO.value: "Errors",
	ContextType.RESULT_SUMMARY.value: "Result summary",
	ContextType.DEPENDENCY_INFO.value: "Dependencies",
}

MODE_THRESHOLDS = {
	ARCHITECT: 0.7,
	DEBUG: 0.5,
	CODE: 0.6,
}
DEFAULT_MODE_THRESHOLD = 0.6

MODE_HEADERS = {
	ARCHITECT: "**Design and architecture notes from previous tasks:**",
	CODE: "**Implementation notes from previous tasks:**",
	DEBUG: "**Debugging and problem-solving notes from previous tasks:**",
	ASK: "**Findings from previous tasks:**",
	ORCHESTRATOR: "**Integration and coordination notes from previous tasks:**",
}
DEFAULT_MODE_HEADER = "**Relevant notes from previous tasks:**"

_FILE_NAME = re.compile(r"[^/\s]+\.(?:ts|js|py|java|cpp|html|css|json|md)", re.IGNORECASE)
_ERROR_PHRASE = re.compile(r"(?:エラー|error|例外|exception|失敗|failed)[^。.!]*[。.!]?", re.IGNORECASE)
_DECISION_PHRASE = re.compile(r"(?:設計|アプローチ|戦略|選択|design|approach|strategy|chose)[^。.!]*[。.!]?", re.IGNORECASE)
_SENTENCE_BREAK = re.compile(r"[。.!]")


def summarize_context(
	analyzed_context: AnalyzedContext,
	config: Optional[SummaryConfig] = None,
) -> SummarizedContext:
	"""
	Summarize the high-priority items of an analysis.

	Items below the priority threshold are dropped. The rest are grouped by
	type (or kept as one "all" group), each group rendered with a
	type-specific renderer, and the blocks joined with blank lines.
	"""
	config = config or SummaryConfig()

	high_priority = [
		item for item in analyzed_context.items
		if item.importance >= config.priority_threshold
	]

	if config.group_by_type:
		groups: dict[str, list[ContextItem]] = {}
		for item in high_priority:
			groups.setdefault(item.type.value, []).append(item)
	else:
		groups = {"all": high_priority}

	summary_parts: list[str] = []
	key_points: list[str] = []
	preserved_items: list[ContextItem] = []

	for group_type, items in groups.items():
		if not items:
			continue

		top_items = sorted(items, key=lambda item: item.importance, reverse=True)[:ITEMS_PER_GROUP]
		summary_parts.append(_render_group(group_type, top_items))

		if config.preserve_important_details:
			for item in top_items:
				if item.importance >= KEY_POINT_THRESHOLD:
					key_points.append(extract_key_point(item))
					preserved_items.append(item)

	summary = "\n\n".join(summary_parts)
	if len(summary) > config.max_length:
		summary = truncate_to_length(summary, config.max_length)

	total_length = total_content_length(analyzed_context.items)
	type_counts = Counter(item.type.value for item in analyzed_context.items)

	return SummarizedContext(
		summary=summary,
		key_points=key_points[:MAX_KEY_POINTS],
		metadata=SummaryMetadata(
			original_item_count=len(analyzed_context.items),
			summarized_item_count=len(preserved_items),
			compression_ratio=len(summary) / total_length if total_length else 0.0,
			most_important_types=[t for t, _ in type_counts.most_common(3)],
		),
		preserved_items=preserved_items,
	)


def _render_group(group_type: str, items: list[ContextItem]) -> str:
	description = TYPE_DESCRIPTIONS.get(group_type, group_type)
	renderer = _GROUP_RENDERERS.get(group_type, _summarize_generic_items)
	return f"**{description}:**\n{renderer(items)}"


def _summarize_file_changes(items: list[ContextItem]) -> str:
	lines = []
	for item in items:
		files = list(dict.fromkeys(_FILE_NAME.findall(item.content)))
		if files:
			lines.append(f"- Changed {', '.join(files)}")
		else:
			lines.append(f"- {item.content[:50]}...")
	return "\n".join(lines[:LINES_PER_BLOCK])


def _first_phrase_renderer(pattern: re.Pattern, fallback_length: int) -> Callable[[list[ContextItem]], str]:
	def render(items: list[ContextItem]) -> str:
		lines = []
		for item in items:
			match = pattern.search(item.content)
			lines.append(f"- {match.group(0)}" if match else f"- {item.content[:fallback_length]}...")
		return "\n".join(lines[:LINES_PER_BLOCK])
	return render


def _summarize_generic_items(items: list[ContextItem]) -> str:
	lines = []
	for item in items:
		sentences = [s.strip() for s in _SENTENCE_BREAK.split(item.content) if len(s.strip()) > 10]
		if sentences:
			lines.append(f"- {sentences[0]}")
	return "\n".join(lines[:LINES_PER_BLOCK])


_GROUP_RENDERERS: dict[str, Callable[[list[ContextItem]], str]] = {
	ContextType.FILE_CHANGE.value: _summarize_file_changes,
	ContextType.ERROR_INFO.value: _first_phrase_renderer(_ERROR_PHRASE, 60),
	ContextType.DESIGN_DECISION.value: _first_phrase_renderer(_DECISION_PHRASE, 60),
}


def extract_key_point(item: ContextItem) -> str:
	"""Condense an item to at most 100 characters, preferring its first sentence."""
	content = item.content.strip()
	if len(content) <= KEY_POINT_MAX_LENGTH:
		return content

	sentences = [s.strip() for s in _SENTENCE_BREAK.split(content) if len(s.strip()) > 5]
	if sentences and len(sentences[0]) <= KEY_POINT_MAX_LENGTH:
		return sentences[0]

	return content[:KEY_POINT_MAX_LENGTH - 3] + "..."


def truncate_to_length(text: str, max_length: int) -> str:
	"""
	Cut text to max_length characters.

	Prefers ending on the last sentence terminator found past 70% of the
	limit; otherwise hard-cuts and appends "...".
	"""
	if len(text) <= max_length:
		return text

	truncated = text[:max(0, max_length - 3)]
	last_sentence_end = max(truncated.rfind("。"), truncated.rfind("."), truncated.rfind("!"))

	if last_sentence_end > max_length * 0.7:
		return truncated[:last_sentence_end + 1]

	return truncated + "..."


def create_context_summary_for_mode(
	analyzed_context: AnalyzedContext,
	target_mode: str,
	max_length: int = 1500,
) -> str:
	"""Summary text prefixed with a mode header and followed by key points."""
	config = SummaryConfig(
		max_length=max_length,
		priority_threshold=MODE_THRESHOLDS.get(target_mode, DEFAULT_MODE_THRESHOLD),
		group_by_type=True,
		preserve_important_details=True,
	)
	summarized = summarize_context(analyzed_context, config)

	text = f"{MODE_HEADERS.get(target_mode, DEFAULT_MODE_HEADER)}\n\n{summarized.summary}"
	if summarized.key_points:
		bullets = "\n".join(f"- {point}" for point in summarized.key_points)
		text += f"\n\n**Key Points:**\n{bullets}"
	return text


def adjust_summary_for_token_limit(
	summary: str,
	max_tokens: int,
	estimator: Optional[TokenEstimator] = None,
) -> str:
	"""Shrink summary proportionally until its estimated token count fits max_tokens."""
	for _ in range(MAX_ADJUST_PASSES):
		current_tokens = estimate_token_count(summary, estimator)
		if current_tokens <= max_tokens:
			break
		target_length = int(len(summary) * (max_tokens / current_tokens) * 0.9)
		summary = truncate_to_length(summary, target_length)
	return summary
