"""Tests for task complexity scoring, mode recommendation and decomposition."""

import json
from typing import Optional, Sequence
from unittest.mock import AsyncMock

import pytest

from mode_orchestrator.analyzer import (
	ComplexityLevel,
	analyze_task,
	analyze_task_complexity,
	analyze_task_sync,
	create_decomposition_prompt,
	decompose_complex_task,
	decompose_task_with_agent,
	dynamic_decomposition_enabled,
	recommend_mode,
)
from mode_orchestrator.errors import AgentRunnerError
from mode_orchestrator.executor import AgentRunner

AUTH_TASK = "新しいユーザー認証システムを実装してください。データベース設計、API実装、テストが必要です。"

DECOMPOSITION_REPLY = """Here is the plan:

```json
{
  "analysis": {"complexity": "high", "estimatedTime": "90 minutes", "requiredSkills": ["python"]},
  "subtasks": [
    {"id": "task-1", "description": "Design the schema (architect)", "mode": "architect", "priority": 1, "dependencies": [], "estimatedTime": "20 minutes"},
    {"id": "task-2", "description": "Build the endpoints (code)", "mode": "code", "priority": 2, "dependencies": ["task-1"], "estimatedTime": 45}
  ]
}
```
"""


class FakeRunner(AgentRunner):
	"""Returns a canned reply and records the prompts it was given."""

	def __init__(self, reply: str = DECOMPOSITION_REPLY):
		self.reply = reply
		self.calls: list[tuple[str, Optional[int], Optional[Sequence[str]]]] = []

	async def run(self, prompt: str, max_turns: Optional[int] = None, allowed_tools: Optional[Sequence[str]] = None) -> str:
		self.calls.append((prompt, max_turns, allowed_tools))
		return self.reply


class TestComplexity:
	def test_simple_task(self):
		complexity = analyze_task_complexity("CSSファイルを修正してください")
		assert complexity.level == ComplexityLevel.SIMPLE
		assert complexity.score == 1
		assert complexity.reasons == ["Low complexity keyword: CSS"]

	def test_complex_task(self):
		complexity = analyze_task_complexity(AUTH_TASK)
		assert complexity.is_complex
		assert complexity.score >= 5
		assert "High complexity keyword: 認証" in complexity.reasons

	def test_threshold_is_five(self):
		complexity = analyze_task_complexity("ログイン機能を実装してください")
		assert complexity.score == 5
		assert complexity.is_complex

	def test_keywords_counted_once(self):
		assert analyze_task_complexity("test test test").score == 3

	def test_word_boundary(self):
		"""'ui' must not match inside 'build'."""
		assert analyze_task_complexity("build it").score == 0

	def test_length_bonuses(self):
		text = "Do this. " * 5 + "word " * 50
		complexity = analyze_task_complexity(text)
		assert complexity.score == 3
		assert complexity.reasons == ["Long description (6 sentences)", "Many words (60 words)"]

	def test_reasons_follow_score_order(self):
		complexity = analyze_task_complexity("Refactor the frontend module for security")
		labels = [reason.split(":")[0] for reason in complexity.reasons]
		assert labels == [
			"High complexity keyword",
			"Medium complexity keyword",
			"Medium complexity keyword",
			"Low complexity keyword",
		]


class TestRecommendMode:
	def test_tie_goes_to_first_mode(self):
		"""code and debug both score 1; code comes first."""
		recommendation = recommend_mode("CSSファイルを修正してください")
		assert recommendation.mode == "code"
		assert recommendation.confidence == 50

	def test_architect(self):
		recommendation = recommend_mode("システム設計を行ってください")
		assert recommendation.mode == "architect"
		assert recommendation.confidence == 50
		assert recommendation.reasoning == "Keyword analysis recommendation (score: 2/4)"

	def test_orchestrator_bonus_for_complex(self):
		assert recommend_mode("複数のマイクロサービスを統合したシステムを構築してください").mode == "orchestrator"

	def test_no_keywords(self):
		recommendation = recommend_mode("hello there")
		assert recommendation.mode == "architect"
		assert recommendation.confidence == 50.0

	def test_custom_modes_are_candidates(self):
		recommendation = recommend_mode("hello there", custom_modes=["review"])
		assert recommendation.mode == "architect"


class TestDecomposition:
	def test_auth_task(self):
		sub_tasks = decompose_complex_task(AUTH_TASK)
		assert [t.id for t in sub_tasks] == ["design", "implementation", "testing"]
		assert [t.mode for t in sub_tasks] == ["architect", "code", "debug"]
		assert sub_tasks[1].dependencies == ["design"]
		assert sub_tasks[2].dependencies == ["implementation"]
		assert [t.estimated_complexity for t in sub_tasks] == [3, 4, 2]

	def test_all_families(self):
		sub_tasks = decompose_complex_task("design, implement, test, document this")
		assert [t.id for t in sub_tasks] == ["design", "implementation", "testing", "documentation"]
		assert [t.priority for t in sub_tasks] == [1, 2, 3, 4]
		assert sub_tasks[3].dependencies == ["implementation"]
		assert sub_tasks[3].mode == "ask"

	def test_implementation_without_design(self):
		sub_tasks = decompose_complex_task("implement and test the parser")
		assert sub_tasks[0].id == "implementation"
		assert sub_tasks[0].dependencies == []

	def test_dangling_dependency_is_kept(self):
		"""Testing always depends on implementation, even when it is absent."""
		sub_tasks = decompose_complex_task("test the release")
		assert [t.id for t in sub_tasks] == ["testing"]
		assert sub_tasks[0].dependencies == ["implementation"]

	def test_fallback_main_task(self):
		sub_tasks = decompose_complex_task("bug fix only")
		assert len(sub_tasks) == 1
		assert sub_tasks[0].id == "main"
		assert sub_tasks[0].mode == "debug"
		assert sub_tasks[0].description == "bug fix only"
		assert sub_tasks[0].estimated_complexity == 2


class TestDynamicDecomposition:
	def test_prompt_mentions_task_and_modes(self):
		prompt = create_decomposition_prompt("Build a blog", "Complexity: complex")
		assert "Build a blog" in prompt
		assert '"subtasks"' in prompt
		for mode in ("architect", "code", "debug", "ask", "orchestrator"):
			assert f"**{mode}**" in prompt

	@pytest.mark.asyncio
	async def test_agent_reply_parsed(self):
		runner = FakeRunner()
		sub_tasks = await decompose_task_with_agent("Build a blog", "ctx", runner)

		assert [t.id for t in sub_tasks] == ["task-1", "task-2"]
		assert sub_tasks[1].dependencies == ["task-1"]
		assert sub_tasks[0].estimated_complexity == 3
		assert sub_tasks[1].estimated_complexity == 4
		assert sub_tasks[1].estimated_time == "45"
		_, max_turns, tools = runner.calls[0]
		assert max_turns == 1
		assert tools == ("ask_followup_question",)

	@pytest.mark.asyncio
	async def test_agent_error_returns_empty(self):
		runner = AsyncMock(spec=AgentRunner)
		runner.run.side_effect = AgentRunnerError("boom")
		assert await decompose_task_with_agent("Build a blog", "ctx", runner) == []

	@pytest.mark.asyncio
	async def test_unexpected_agent_error_returns_empty(self):
		runner = AsyncMock(spec=AgentRunner)
		runner.run.side_effect = UnicodeDecodeError("utf-8", b"\xff", 0, 1, "invalid start byte")
		assert await decompose_task_with_agent("Build a blog", "ctx", runner) == []

	@pytest.mark.asyncio
	async def test_analyze_task_survives_agent_crash(self):
		runner = AsyncMock(spec=AgentRunner)
		runner.run.side_effect = RuntimeError("agent exploded")
		result = await analyze_task(AUTH_TASK, agent=runner)
		assert not result.used_dynamic_decomposition
		assert [t.id for t in result.sub_tasks] == ["design", "implementation", "testing"]

	@pytest.mark.asyncio
	async def test_analyze_task_uses_agent_for_complex(self):
		runner = FakeRunner()
		result = await analyze_task(AUTH_TASK, agent=runner)
		assert result.used_dynamic_decomposition
		assert [t.id for t in result.sub_tasks] == ["task-1", "task-2"]
		assert result.requires_orchestration

	@pytest.mark.asyncio
	async def test_unusable_reply_falls_back(self):
		result = await analyze_task(AUTH_TASK, agent=FakeRunner("I cannot help with that."))
		assert not result.used_dynamic_decomposition
		assert [t.id for t in result.sub_tasks] == ["design", "implementation", "testing"]

	@pytest.mark.asyncio
	async def test_no_agent_means_static(self):
		result = await analyze_task(AUTH_TASK)
		assert not result.used_dynamic_decomposition
		assert len(result.sub_tasks) == 3

	@pytest.mark.asyncio
	async def test_disabled_by_argument(self):
		runner = FakeRunner()
		result = await analyze_task(AUTH_TASK, enable_dynamic=False, agent=runner)
		assert runner.calls == []
		assert not result.used_dynamic_decomposition

	@pytest.mark.asyncio
	async def test_disabled_by_environment(self, monkeypatch: pytest.MonkeyPatch):
		monkeypatch.setenv("CLAUDE_DYNAMIC_DECOMPOSITION", "false")
		assert dynamic_decomposition_enabled() is False
		runner = FakeRunner()
		await analyze_task(AUTH_TASK, agent=runner)
		assert runner.calls == []

	@pytest.mark.asyncio
	async def test_simple_task_is_not_decomposed(self):
		runner = FakeRunner()
		result = await analyze_task("CSSファイルを修正してください", agent=runner)
		assert result.sub_tasks == []
		assert not result.requires_orchestration
		assert runner.calls == []


class TestAnalysisResult:
	def test_single_sub_task_does_not_orchestrate(self):
		result = analyze_task_sync("ログイン機能を実装してください")
		assert result.complexity.is_complex
		assert len(result.sub_tasks) == 1
		assert not result.requires_orchestration
		assert result.recommended_mode.mode == "orchestrator"

	def test_to_dict_is_json_serializable(self):
		data = analyze_task_sync(AUTH_TASK).to_dict()
		assert data["complexity"]["level"] == "complex"
		assert data["requires_orchestration"] is True
		json.dumps(data)
