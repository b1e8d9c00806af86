"""Data models for the context analysis pipeline."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class ContextType(str, Enum):
	"""Classification of a context item. Exactly one per item."""
	TECHNICAL_DETAIL = "technical_detail"
	FILE_CHANGE = "file_change"
	DESIGN_DECISION = "design_decision"
	ERROR_INFO = "error_info"
	RESULT_SUMMARY = "result_summary"
	DEPENDENCY_INFO = "dependency_info"


@dataclass(frozen=True)
class ContextItem:
	"""
	One classified, scored sentence extracted from a prior result.

	Items are never mutated; reweighting produces a copy via
	dataclasses.replace.
	"""
	type: ContextType
	content: str
	importance: float
	relevant_modes: tuple[str, ...]
	timestamp: datetime
	source: str

	@property
	def dedupe_key(self) -> str:
		"""Identity used when re-including items: source plus a content prefix."""
		return f"{self.source}-{self.content[:50]}"

	def to_dict(self) -> dict[str, Any]:
		return {
			"type": self.type.value,
			"content": self.content,
			"importance": round(self.importance, 4),
			"relevant_modes": list(self.relevant_modes),
			"timestamp": self.timestamp.isoformat(),
			"source": self.source,
		}


@dataclass
class AnalyzedContext:
	"""Filtered, capped and importance-sorted context items."""
	items: list[ContextItem] = field(default_factory=list)
	total_importance: float = 0.0
	categories: dict[ContextType, list[ContextItem]] = field(default_factory=dict)

	@classmethod
	def from_items(cls, items: list[ContextItem]) -> "AnalyzedContext":
		"""Build an AnalyzedContext, deriving totals and categories from items."""
		return cls(
			items=list(items),
			total_importance=sum(item.importance for item in items),
			categories=categorize_items(items),
		)


@dataclass
class SummaryMetadata:
	original_item_count: int
	summarized_item_count: int
	compression_ratio: float
	most_important_types: list[str]


@dataclass
class SummarizedContext:
	"""Output of the summarizer: digest text plus the items it kept verbatim."""
	summary: str
	key_points: list[str]
	metadata: SummaryMetadata
	preserved_items: list[ContextItem]


@dataclass
class GeneratedContextMetadata:
	original_item_count: int
	filtered_item_count: int
	estimated_tokens: int
	compression_ratio: float
	included_types: list[str]

	def to_dict(self) -> dict[str, Any]:
		return {
			"original_item_count": self.original_item_count,
			"filtered_item_count": self.filtered_item_count,
			"estimated_tokens": self.estimated_tokens,
			"compression_ratio": round(self.compression_ratio, 4),
			"included_types": self.included_types,
		}


@dataclass
class ContextDebugInfo:
	analysis_result: AnalyzedContext
	filtering_steps: list[str]


@dataclass
class GeneratedContext:
	"""The digest handed to the next sub-task, with metadata about how it was built."""
	optimized_context: str
	metadata: GeneratedContextMetadata
	debug_info: Optional[ContextDebugInfo] = None


def categorize_items(items: list[ContextItem]) -> dict[ContextType, list[ContextItem]]:
	"""Group items by type, preserving their order within each group."""
	categories: dict[ContextType, list[ContextItem]] = defaultdict(list)
	for item in items:
		categories[item.type].append(item)
	return dict(categories)


def total_content_length(items: list[ContextItem]) -> int:
	return sum(len(item.content) for item in items)
