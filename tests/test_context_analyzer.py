"""Tests for context item extraction, classification and mode filtering."""

from datetime import datetime, timedelta

import pytest

from mode_orchestrator.context.analyzer import (
	ContextAnalysisConfig,
	analyze_context_from_results,
	calculate_importance,
	classify_context_type,
	determine_relevant_modes,
	extract_context_items,
	filter_context_for_mode,
	get_context_statistics,
	split_sentences,
)
from mode_orchestrator.context.models import AnalyzedContext, ContextItem, ContextType


def _item(content: str, context_type: ContextType, importance: float, modes=("code",), source="result-0", timestamp=None):
	return ContextItem(
		type=context_type,
		content=content,
		importance=importance,
		relevant_modes=tuple(modes),
		timestamp=timestamp or datetime.now(),
		source=source,
	)


class TestSplitSentences:
	def test_filenames_survive(self):
		"""A dot inside a filename is not a sentence end."""
		assert split_sentences("Updated auth.py and tests. Then stopped working") == [
			"Updated auth.py and tests",
			"Then stopped working",
		]

	def test_short_fragments_dropped(self):
		assert split_sentences("Short.\nThis line is long enough") == ["This line is long enough"]

	def test_japanese_delimiters(self):
		sentences = split_sentences("データベースの設計を完了しました。次にAPIを実装する予定です！")
		assert len(sentences) == 2


class TestClassification:
	def test_error_outranks_file_change(self):
		"""Errors are checked first, so a failing file is still an error."""
		assert classify_context_type("Build failed while compiling src/app.ts") == ContextType.ERROR_INFO

	def test_file_change(self):
		assert classify_context_type("auth.py ファイルを作成しました") == ContextType.FILE_CHANGE

	def test_design_decision(self):
		assert classify_context_type("We picked the repository approach for storage") == ContextType.DESIGN_DECISION

	def test_dependency(self):
		assert classify_context_type("This module depends on the session store") == ContextType.DEPENDENCY_INFO

	def test_technical_detail(self):
		assert classify_context_type("The API uses token authentication") == ContextType.TECHNICAL_DETAIL

	def test_result_summary_is_fallback(self):
		assert classify_context_type("Everything went smoothly today") == ContextType.RESULT_SUMMARY


class TestImportance:
	def test_base_weight_only(self):
		assert calculate_importance("Everything went smoothly today", ContextType.RESULT_SUMMARY) == pytest.approx(0.3)

	def test_technical_terms_and_emphasis(self):
		text = "Important: the API uses token authentication"
		# 0.4 base + 2 technical terms + "important"
		assert calculate_importance(text, ContextType.TECHNICAL_DETAIL) == pytest.approx(0.7)

	def test_length_bonuses(self):
		text = "x" * 201
		assert calculate_importance(text, ContextType.RESULT_SUMMARY) == pytest.approx(0.5)

	def test_clamped_to_one(self):
		text = (
			"Important warning: required database framework library architecture performance "
			"security authentication config environment API change " + "x" * 200
		)
		assert calculate_importance(text, ContextType.DESIGN_DECISION) == 1.0


class TestRelevantModes:
	def test_keywords_then_type_fallback(self):
		modes = determine_relevant_modes("エラーが発生しました", ContextType.ERROR_INFO)
		assert modes == ("debug", "code")

	def test_file_keyword(self):
		modes = determine_relevant_modes("auth.py ファイルを作成しました", ContextType.FILE_CHANGE)
		assert modes == ("code", "debug")

	def test_no_duplicates(self):
		modes = determine_relevant_modes("Fix the error in the code", ContextType.ERROR_INFO)
		assert len(modes) == len(set(modes))
		assert "debug" in modes and "code" in modes


class TestAnalyzeContextFromResults:
	def test_sources_and_ordering(self):
		results = [
			"Everything went smoothly today.",
			"エラーが発生しました: データベース接続に失敗しました。",
		]
		context = analyze_context_from_results(results)

		assert [item.source for item in context.items] == ["result-1", "result-0"]
		assert context.items[0].type == ContextType.ERROR_INFO
		importances = [item.importance for item in context.items]
		assert importances == sorted(importances, reverse=True)
		assert context.total_importance == pytest.approx(sum(importances))
		assert set(context.categories) == {ContextType.ERROR_INFO, ContextType.RESULT_SUMMARY}

	def test_skips_empty_results(self):
		context = analyze_context_from_results([None, "", "The API uses token authentication."])
		assert [item.source for item in context.items] == ["result-2"]

	def test_min_importance_and_max_items(self):
		results = ["The API uses token authentication. " * 1, "Everything went smoothly today."]
		context = analyze_context_from_results(results, ContextAnalysisConfig(min_importance=0.4))
		assert all(item.importance >= 0.4 for item in context.items)

		capped = analyze_context_from_results(["Line number one here.\n" * 5], ContextAnalysisConfig(max_items=2))
		assert len(capped.items) == 2

	def test_empty_input(self):
		context = analyze_context_from_results([])
		assert context.items == []
		assert context.total_importance == 0
		assert context.categories == {}

	def test_extraction_drops_low_importance(self):
		timestamp = datetime.now()
		items = extract_context_items("Everything went smoothly today", "result-0", timestamp)
		assert len(items) == 1
		assert items[0].timestamp == timestamp


class TestFilterContextForMode:
	def test_filters_and_reweights_without_mutating(self):
		error = _item("The login error is back again", ContextType.ERROR_INFO, 0.5, modes=("debug", "code"))
		design = _item("We chose a layered design", ContextType.DESIGN_DECISION, 0.6, modes=("architect",))
		context = AnalyzedContext.from_items([design, error])

		filtered = filter_context_for_mode(context, "debug")

		assert len(filtered) == 1
		assert filtered[0].importance == pytest.approx(0.8)
		# Original items are untouched
		assert error.importance == 0.5
		assert context.items == [design, error]

	def test_resorts_by_new_importance(self):
		summary = _item("Summary of what happened", ContextType.RESULT_SUMMARY, 0.6, modes=("code",))
		change = _item("Changed src/app.ts for login", ContextType.FILE_CHANGE, 0.45, modes=("code",))
		filtered = filter_context_for_mode(AnalyzedContext.from_items([summary, change]), "code")
		# 0.45 * 1.5 > 0.6 * 0.8
		assert [item.type for item in filtered] == [ContextType.FILE_CHANGE, ContextType.RESULT_SUMMARY]

	def test_unknown_mode_keeps_weight(self):
		item = _item("Custom work item here", ContextType.RESULT_SUMMARY, 0.4, modes=("review",))
		filtered = filter_context_for_mode(AnalyzedContext.from_items([item]), "review")
		assert filtered[0].importance == pytest.approx(0.4)

	def test_same_arguments_same_result(self):
		items = [
			_item("Changed src/app.ts for login", ContextType.FILE_CHANGE, 0.45),
			_item("Summary of what happened", ContextType.RESULT_SUMMARY, 0.6),
			_item("The login error is back again", ContextType.ERROR_INFO, 0.5),
		]
		context = AnalyzedContext.from_items(items)
		assert filter_context_for_mode(context, "code") == filter_context_for_mode(context, "code")

	def test_max_items(self):
		items = [_item(f"Item number {i} text", ContextType.TECHNICAL_DETAIL, 0.5) for i in range(5)]
		assert len(filter_context_for_mode(AnalyzedContext.from_items(items), "code", max_items=3)) == 3


class TestContextStatistics:
	def test_statistics(self):
		old = _item("Old technical detail here", ContextType.TECHNICAL_DETAIL, 0.4, timestamp=datetime.now() - timedelta(hours=3))
		new = _item("New error information here", ContextType.ERROR_INFO, 0.6)
		stats = get_context_statistics(AnalyzedContext.from_items([new, old]))

		assert stats["total_items"] == 2
		assert stats["average_importance"] == pytest.approx(0.5)
		assert stats["most_important_item"] is new
		assert stats["oldest_item"] is old
		assert {entry["type"] for entry in stats["type_breakdown"]} == {"technical_detail", "error_info"}

	def test_empty(self):
		stats = get_context_statistics(AnalyzedContext())
		assert stats["total_items"] == 0
		assert stats["average_importance"] == 0.0
		assert stats["most_important_item"] is None
		assert stats["oldest_item"] is None
