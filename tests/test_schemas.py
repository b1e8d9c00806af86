"""Tests for structured output schemas and lenient JSON parsing."""

import json

from mode_orchestrator.modes.registry import BUILTIN_MODES
from mode_orchestrator.schemas import (
	DECOMPOSITION_SCHEMA,
	ResponseSchema,
	extract_json_object,
	parse_decomposition_result,
)


def _reply(*subtasks: dict) -> str:
	return json.dumps({"subtasks": list(subtasks)})


class TestResponseSchema:
	"""Tests for ResponseSchema validation."""

	def test_validate_valid_json(self):
		"""Valid JSON matching schema should pass."""
		schema = ResponseSchema(
			name="test",
			description="test",
			json_schema={
				"type": "object",
				"required": ["name"],
				"properties": {
					"name": {"type": "string"},
				},
			},
		)
		is_valid, data, error = schema.validate('{"name": "hello"}')
		assert is_valid is True
		assert data == {"name": "hello"}
		assert error is None

	def test_validate_invalid_json(self):
		"""Invalid JSON should fail."""
		schema = ResponseSchema(name="test", description="test")
		is_valid, data, error = schema.validate("not json")
		assert is_valid is False
		assert data is None
		assert "Invalid JSON" in error

	def test_validate_missing_required_key(self):
		is_valid, _, error = DECOMPOSITION_SCHEMA.validate('{"analysis": {}}')
		assert is_valid is False
		assert error == "Missing required key: subtasks"

	def test_validate_wrong_type(self):
		is_valid, _, error = DECOMPOSITION_SCHEMA.validate('{"subtasks": "none"}')
		assert is_valid is False
		assert "expected type 'array'" in error

	def test_validate_non_object(self):
		is_valid, _, error = DECOMPOSITION_SCHEMA.validate_data([1, 2])
		assert is_valid is False
		assert "Expected a JSON object" in error


class TestExtractJsonObject:
	def test_fenced_json_block(self):
		text = 'Sure!\n```json\n{"subtasks": []}\n```\nDone.'
		assert extract_json_object(text) == {"subtasks": []}

	def test_bare_fence(self):
		assert extract_json_object('```\n{"a": 1}\n```') == {"a": 1}

	def test_embedded_object(self):
		text = 'The plan is {"subtasks": [{"id": "a", "description": "x"}]} as requested.'
		assert extract_json_object(text) == {"subtasks": [{"id": "a", "description": "x"}]}

	def test_braces_inside_strings(self):
		text = 'prefix {"description": "use {curly} braces \\" carefully"} suffix'
		assert extract_json_object(text) == {"description": 'use {curly} braces " carefully'}

	def test_skips_non_json_braces(self):
		text = 'function() { return x; } then {"ok": true}'
		assert extract_json_object(text) == {"ok": True}

	def test_invalid_fence_falls_through(self):
		text = '```json\nnot json\n```\n{"ok": 1}'
		assert extract_json_object(text) == {"ok": 1}

	def test_nothing_found(self):
		assert extract_json_object("no json here") is None
		assert extract_json_object("") is None
		assert extract_json_object("{unclosed") is None


class TestParseDecompositionResult:
	def test_normalizes_entries(self):
		text = _reply(
			{"id": "t1", "description": "Design it", "mode": "architect", "priority": 1, "estimatedTime": "10 minutes"},
			{"id": "t2", "description": "Build it", "mode": "code", "dependencies": ["t1"]},
		)
		sub_tasks = parse_decomposition_result(text, BUILTIN_MODES)

		assert sub_tasks[0] == {
			"id": "t1",
			"description": "Design it",
			"mode": "architect",
			"priority": 1,
			"dependencies": [],
			"estimated_complexity": 3,
			"estimated_time": "10 minutes",
		}
		# Priority defaults to position
		assert sub_tasks[1]["priority"] == 2
		assert sub_tasks[1]["dependencies"] == ["t1"]
		assert sub_tasks[1]["estimated_time"] is None

	def test_unknown_mode_becomes_code(self):
		sub_tasks = parse_decomposition_result(_reply({"id": "t1", "description": "x", "mode": "wizard"}), BUILTIN_MODES)
		assert sub_tasks[0]["mode"] == "code"
		assert sub_tasks[0]["estimated_complexity"] == 4

	def test_custom_mode_is_known(self):
		sub_tasks = parse_decomposition_result(
			_reply({"id": "t1", "description": "x", "mode": "review"}),
			list(BUILTIN_MODES) + ["review"],
		)
		assert sub_tasks[0]["mode"] == "review"
		assert sub_tasks[0]["estimated_complexity"] == 1

	def test_numeric_estimated_time(self):
		sub_tasks = parse_decomposition_result(_reply({"id": "t1", "description": "x", "estimatedTime": 30}), BUILTIN_MODES)
		assert sub_tasks[0]["estimated_time"] == "30"

	def test_invalid_entry_rejects_everything(self):
		text = _reply({"id": "t1", "description": "ok"}, {"description": "missing id"})
		assert parse_decomposition_result(text, BUILTIN_MODES) == []

	def test_failure_paths_return_empty(self):
		assert parse_decomposition_result("no json", BUILTIN_MODES) == []
		assert parse_decomposition_result('{"analysis": {}}', BUILTIN_MODES) == []
		assert parse_decomposition_result('{"subtasks": {}}', BUILTIN_MODES) == []
		assert parse_decomposition_result('{"subtasks": [1]}', BUILTIN_MODES) == []

	def test_empty_subtasks(self):
		assert parse_decomposition_result('{"subtasks": []}', BUILTIN_MODES) == []

	def test_duplicate_ids_reject_everything(self):
		text = _reply(
			{"id": "task-1", "description": "Design schema", "mode": "architect"},
			{"id": "task-1", "description": "Write API", "mode": "code"},
		)
		assert parse_decomposition_result(text, BUILTIN_MODES) == []
