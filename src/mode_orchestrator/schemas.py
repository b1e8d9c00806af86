"""
Structured output schemas for agent responses.

Defines the decomposition schema requested from the agent during dynamic
decomposition, and a lenient parser that digs the JSON object out of
free-form agent text.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from .modes.registry import DEFAULT_MODE, mode_complexity

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?[ \t]*\n(.*?)```", re.DOTALL | re.IGNORECASE)


@dataclass
class ResponseSchema:
	"""A schema for structured output from the agent."""

	name: str
	description: str
	json_schema: dict[str, Any] = field(default_factory=dict)

	def validate(self, response_str: str) -> tuple[bool, Optional[dict[str, Any]], Optional[str]]:
		"""
		Parse and validate a response against this schema.

		Returns:
			Tuple of (is_valid, parsed_data, error_message)
		"""
		try:
			data = json.loads(response_str)
		except json.JSONDecodeError as e:
			return False, None, f"Invalid JSON: {e}"

		return self.validate_data(data)

	def validate_data(self, data: Any) -> tuple[bool, Optional[dict[str, Any]], Optional[str]]:
		"""Validate already-decoded data against the required keys and property types."""
		if not isinstance(data, dict):
			return False, None, f"Expected a JSON object, got '{type(data).__name__}'"

		for key in self.json_schema.get("required", []):
			if key not in data:
				return False, data, f"Missing required key: {key}"

		for key, prop_schema in self.json_schema.get("properties", {}).items():
			if key in data:
				expected_type = prop_schema.get("type")
				if expected_type and not _check_type(data[key], expected_type):
					return False, data, f"Key '{key}' expected type '{expected_type}', got '{type(data[key]).__name__}'"

		return True, data, None


def _check_type(value: Any, expected: str) -> bool:
	"""Check if a value matches the expected JSON schema type."""
	type_map = {
		"string": str,
		"number": (int, float),
		"integer": int,
		"boolean": bool,
		"array": list,
		"object": dict,
	}
	expected_type = type_map.get(expected)
	if expected_type is None:
		return True  # Unknown type, skip validation
	return isinstance(value, expected_type)


SUBTASK_SCHEMA = ResponseSchema(
	name="subtask",
	description="One sub-task of a dynamic decomposition",
	json_schema={
		"type": "object",
		"required": ["id", "description"],
		"properties": {
			"id": {"type": "string"},
			"description": {"type": "string"},
			"mode": {"type": "string", "enum": ["architect", "code", "debug", "ask", "orchestrator"]},
			"priority": {"type": "integer"},
			"dependencies": {"type": "array", "items": {"type": "string"}},
			"estimatedTime": {"description": "Free-form estimate, string or number"},
		},
	},
)

DECOMPOSITION_SCHEMA = ResponseSchema(
	name="decomposition",
	description="Task decomposition produced by the agent",
	json_schema={
		"type": "object",
		"required": ["subtasks"],
		"properties": {
			"analysis": {
				"type": "object",
				"properties": {
					"complexity": {"type": "string", "enum": ["high", "medium", "low"]},
					"estimatedTime": {"description": "Free-form estimate, string or number"},
					"requiredSkills": {"type": "array", "items": {"type": "string"}},
				},
			},
			"subtasks": {"type": "array", "items": SUBTASK_SCHEMA.json_schema},
		},
	},
)


def extract_json_object(text: str) -> Optional[dict[str, Any]]:
	"""
	Find the first JSON object in free-form text.

	Stage 1 decodes the first fenced code block (```json or bare ```).
	Stage 2 scans for balanced brace-delimited substrings, ignoring braces
	inside strings, and returns the first one that decodes to an object.

	Returns:
		The decoded object, or None if nothing decodes
	"""
	if not text:
		return None

	match = _FENCED_BLOCK.search(text)
	if match:
		try:
			data = json.loads(match.group(1).strip())
		except json.JSONDecodeError as e:
			logger.debug(f"Fenced block is not valid JSON: {e}")
		else:
			if isinstance(data, dict):
				return data

	for candidate in _balanced_objects(text):
		try:
			data = json.loads(candidate)
		except json.JSONDecodeError:
			continue
		if isinstance(data, dict):
			return data

	return None


def _balanced_objects(text: str) -> Iterable[str]:
	"""Yield each balanced {...} substring, starting from every opening brace."""
	for start, char in enumerate(text):
		if char != "{":
			continue

		depth = 0
		in_string = False
		escaped = False
		for end in range(start, len(text)):
			c = text[end]
			if in_string:
				if escaped:
					escaped = False
				elif c == "\\":
					escaped = True
				elif c == '"':
					in_string = False
			elif c == '"':
				in_string = True
			elif c == "{":
				depth += 1
			elif c == "}":
				depth -= 1
				if depth == 0:
					yield text[start:end + 1]
					break


def parse_decomposition_result(text: str, known_modes: Iterable[str]) -> list[dict[str, Any]]:
	"""
	Turn an agent's decomposition reply into normalized sub-task dicts.

	Each dict carries id, description, mode, priority, dependencies,
	estimated_complexity and estimated_time. Unknown modes become the default
	mode. Duplicate ids or any other structural problem yields [] so the
	caller can fall back to static decomposition; this function never raises.
	"""
	data = extract_json_object(text)
	if data is None:
		logger.warning("Dynamic decomposition reply contained no JSON object")
		return []

	is_valid, _, error = DECOMPOSITION_SCHEMA.validate_data(data)
	if not is_valid:
		logger.warning(f"Dynamic decomposition reply rejected: {error}")
		return []

	modes = set(known_modes)
	seen_ids: set[str] = set()
	sub_tasks = []
	for index, entry in enumerate(data["subtasks"]):
		is_valid, _, error = SUBTASK_SCHEMA.validate_data(entry)
		if not is_valid:
			logger.warning(f"Dynamic decomposition sub-task {index} rejected: {error}")
			return []

		if entry["id"] in seen_ids:
			logger.warning(f"Dynamic decomposition reply rejected: duplicate sub-task id '{entry['id']}'")
			return []
		seen_ids.add(entry["id"])

		mode = entry.get("mode") or DEFAULT_MODE
		if mode not in modes:
			logger.warning(f"Unknown mode '{mode}' in sub-task {entry['id']}, using {DEFAULT_MODE}")
			mode = DEFAULT_MODE

		dependencies = entry.get("dependencies") or []
		sub_tasks.append({
			"id": entry["id"],
			"description": entry["description"],
			"mode": mode,
			"priority": entry.get("priority", index + 1),
			"dependencies": [str(d) for d in dependencies],
			"estimated_complexity": mode_complexity(mode),
			"estimated_time": _optional_str(entry.get("estimatedTime")),
		})

	return sub_tasks


def _optional_str(value: Any) -> Optional[str]:
	return None if value is None else str(value)
