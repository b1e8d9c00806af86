"""
Task analyzer - scores complexity, recommends a mode and decomposes tasks.

Everything here is keyword driven and works on Japanese and English task
text alike. Dynamic decomposition hands the split to the agent and falls
back to the static families below when the reply is unusable.
"""

import logging
import os
import re
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional

from .executor import AgentRunner
from .modes.registry import (
	ARCHITECT,
	ASK,
	CODE,
	DEBUG,
	MODE_DESCRIPTIONS,
	MODE_PATTERNS,
	ORCHESTRATOR,
	ModeRegistry,
	mode_emoji,
)
from .schemas import parse_decomposition_result
from .utils import contains_keyword, matching_keywords

logger = logging.getLogger(__name__)

COMPLEX_THRESHOLD = 5
DECOMPOSITION_MAX_TURNS = 1
DECOMPOSITION_TOOLS = ("ask_followup_question",)


class ComplexityLevel(str, Enum):
	SIMPLE = "simple"
	COMPLEX = "complex"


# (keywords, points per distinct match, reason label)
COMPLEXITY_KEYWORDS: list[tuple[tuple[str, ...], int, str]] = [
	(
		(
			"システム", "アーキテクチャ", "設計", "実装", "テスト", "デバッグ", "フルスタック",
			"データベース", "API", "セキュリティ", "認証", "パフォーマンス", "スケーラビリティ",
			"マイクロサービス", "CI/CD", "デプロイ", "インフラ", "クラウド", "Docker", "Kubernetes",
			"system", "architecture", "design", "implement", "test", "debug", "full-stack",
			"fullstack", "database", "security", "authentication", "performance", "scalab",
			"microservice", "deploy", "infra", "cloud",
		),
		3,
		"High complexity keyword",
	),
	(
		(
			"コンポーネント", "機能", "モジュール", "ライブラリ", "フレームワーク", "UI", "UX",
			"フロントエンド", "バックエンド", "REST", "GraphQL",
			"component", "feature", "module", "library", "framework", "frontend", "backend",
		),
		2,
		"Medium complexity keyword",
	),
	(
		(
			"バグ修正", "スタイル", "CSS", "HTML", "ドキュメント", "README", "コメント",
			"リファクタリング", "最適化",
			"bugfix", "bug fix", "style", "docs", "document", "comment", "refactor", "optimiz", "typo",
		),
		1,
		"Low complexity keyword",
	),
]

_SENTENCE_SPLIT = re.compile(r"[.。!！?？]")


@dataclass
class TaskComplexity:
	level: ComplexityLevel
	score: int
	reasons: list[str] = field(default_factory=list)

	@property
	def is_complex(self) -> bool:
		return self.level == ComplexityLevel.COMPLEX


@dataclass
class ModeRecommendation:
	mode: str
	confidence: float  # 0-100
	reasoning: str


@dataclass
class SubTask:
	id: str
	description: str
	mode: str
	priority: int
	dependencies: list[str] = field(default_factory=list)
	estimated_complexity: int = 1
	estimated_time: Optional[str] = None


@dataclass
class TaskAnalysisResult:
	complexity: TaskComplexity
	recommended_mode: ModeRecommendation
	sub_tasks: list[SubTask] = field(default_factory=list)
	used_dynamic_decomposition: bool = False

	@property
	def requires_orchestration(self) -> bool:
		return self.complexity.is_complex and len(self.sub_tasks) > 1

	def to_dict(self) -> dict[str, Any]:
		data = asdict(self)
		data["complexity"]["level"] = self.complexity.level.value
		data["requires_orchestration"] = self.requires_orchestration
		return data


@dataclass(frozen=True)
class _DecompositionFamily:
	id: str
	keywords: tuple[str, ...]
	description: str
	mode: str
	priority: int
	complexity: int


DECOMPOSITION_FAMILIES = (
	_DecompositionFamily(
		"design", ("システム", "アーキテクチャ", "設計", "system", "architect", "design"),
		"Design the system and architecture", ARCHITECT, 1, 3,
	),
	_DecompositionFamily(
		"implementation", ("実装", "開発", "コード", "implement", "develop", "code"),
		"Implement and develop the code", CODE, 2, 4,
	),
	_DecompositionFamily(
		"testing", ("テスト", "検証", "デバッグ", "test", "verif", "debug"),
		"Run tests and debug", DEBUG, 3, 2,
	),
	_DecompositionFamily(
		"documentation", ("ドキュメント", "説明", "README", "document", "explain", "readme"),
		"Write documentation and explanations", ASK, 4, 1,
	),
)


def analyze_task_complexity(task_description: str) -> TaskComplexity:
	"""
	Score a task description.

	+3/+2/+1 per distinct high/medium/low keyword, +2 for more than five
	sentences, +1 for more than fifty words. Complex iff score >= 5.
	"""
	score = 0
	reasons: list[str] = []

	for keywords, points, label in COMPLEXITY_KEYWORDS:
		for keyword in matching_keywords(task_description, keywords):
			score += points
			reasons.append(f"{label}: {keyword}")

	sentence_count = len([s for s in _SENTENCE_SPLIT.split(task_description) if s.strip()])
	if sentence_count > 5:
		score += 2
		reasons.append(f"Long description ({sentence_count} sentences)")

	word_count = len(task_description.split())
	if word_count > 50:
		score += 1
		reasons.append(f"Many words ({word_count} words)")

	level = ComplexityLevel.COMPLEX if score >= COMPLEX_THRESHOLD else ComplexityLevel.SIMPLE
	return TaskComplexity(level=level, score=score, reasons=reasons)


def recommend_mode(
	task_description: str,
	custom_modes: Optional[Iterable[str] | Mapping[str, str]] = None,
) -> ModeRecommendation:
	"""
	Pick the mode with the most keyword hits.

	Custom slugs are candidates too but have no keyword table. Complex tasks
	give orchestrator a +2 bonus. Ties go to the earliest mode in registry
	order (built-ins first).
	"""
	registry = ModeRegistry(custom_modes)
	scores = {mode: 0 for mode in registry}

	for mode, patterns in MODE_PATTERNS.items():
		scores[mode] += len(matching_keywords(task_description, patterns))

	if analyze_task_complexity(task_description).is_complex:
		scores[ORCHESTRATOR] += 2

	best_mode = max(scores, key=lambda mode: scores[mode])
	total = sum(scores.values())
	confidence = scores[best_mode] / total * 100 if total > 0 else 50.0

	return ModeRecommendation(
		mode=best_mode,
		confidence=confidence,
		reasoning=f"Keyword analysis recommendation (score: {scores[best_mode]}/{total})",
	)


def decompose_complex_task(task_description: str) -> list[SubTask]:
	"""Split a task into the fixed design / implementation / testing / documentation sub-tasks."""
	sub_tasks: list[SubTask] = []
	present: set[str] = set()

	for family in DECOMPOSITION_FAMILIES:
		if not any(contains_keyword(task_description, k) for k in family.keywords):
			continue

		if family.id == "implementation":
			dependencies = ["design"] if "design" in present else []
		elif family.id in ("testing", "documentation"):
			dependencies = ["implementation"]
		else:
			dependencies = []

		sub_tasks.append(SubTask(
			id=family.id,
			description=family.description,
			mode=family.mode,
			priority=family.priority,
			dependencies=dependencies,
			estimated_complexity=family.complexity,
		))
		present.add(family.id)

	if not sub_tasks:
		sub_tasks.append(SubTask(
			id="main",
			description=task_description,
			mode=recommend_mode(task_description).mode,
			priority=1,
			dependencies=[],
			estimated_complexity=2,
		))

	return sub_tasks


def create_decomposition_prompt(task_description: str, context: str) -> str:
	"""Structured prompt asking the agent for a JSON decomposition."""
	mode_lines = "\n".join(
		f"- {mode_emoji(mode)} **{mode}**: {MODE_DESCRIPTIONS[mode]}"
		for mode in (ARCHITECT, CODE, DEBUG, ASK, ORCHESTRATOR)
	)
	return f"""You are an expert at breaking tasks down. Analyze the task below and split it into suitable sub-tasks.

**Task:**
{task_description}

**Context:**
{context}

**Available modes:**
{mode_lines}

**Output format:**
Reply with JSON in exactly this shape. Every sub-task must name a mode:

```json
{{
  "analysis": {{
    "complexity": "high|medium|low",
    "estimatedTime": "estimated minutes",
    "requiredSkills": ["skills needed"]
  }},
  "subtasks": [
    {{
      "id": "task-1",
      "description": "Concrete description that names the mode it uses",
      "mode": "architect|code|debug|ask|orchestrator",
      "priority": 1,
      "dependencies": [],
      "estimatedTime": "estimated minutes"
    }}
  ]
}}
```

**Guidelines:**
1. Assess the task's complexity accurately
2. Keep sub-tasks independent while preserving a logical order
3. Declare dependencies explicitly
4. Choose suitable modes (start complex work in architect)
5. Use at most 5 sub-tasks
6. Estimate each sub-task's time realistically
7. **Important**: name the mode in each sub-task description

Reply with JSON only, no prose."""


async def decompose_task_with_agent(
	task_description: str,
	context: str,
	agent: AgentRunner,
	known_modes: Optional[Iterable[str]] = None,
) -> list[SubTask]:
	"""
	Ask the agent to decompose the task.

	Returns:
		Parsed sub-tasks, or [] if the agent fails or the reply is unusable
	"""
	prompt = create_decomposition_prompt(task_description, context)
	logger.info("Running dynamic task decomposition")

	try:
		reply = await agent.run(prompt, max_turns=DECOMPOSITION_MAX_TURNS, allowed_tools=DECOMPOSITION_TOOLS)
	except Exception as e:
		logger.warning(f"Dynamic decomposition failed, falling back to static decomposition: {e}")
		return []

	parsed = parse_decomposition_result(reply, known_modes or ModeRegistry())
	sub_tasks = [SubTask(**entry) for entry in parsed]
	logger.info(f"Dynamic decomposition produced {len(sub_tasks)} sub-tasks")
	return sub_tasks


def dynamic_decomposition_enabled() -> bool:
	"""False when CLAUDE_DYNAMIC_DECOMPOSITION is 'false' or '0'."""
	return os.environ.get("CLAUDE_DYNAMIC_DECOMPOSITION", "").strip().lower() not in ("false", "0")


async def analyze_task(
	task_description: str,
	enable_dynamic: bool = True,
	custom_modes: Optional[Iterable[str] | Mapping[str, str]] = None,
	agent: Optional[AgentRunner] = None,
) -> TaskAnalysisResult:
	"""
	Full analysis: complexity, mode recommendation and (for complex tasks) sub-tasks.

	Simple tasks get no sub-tasks. Complex tasks are decomposed by the agent
	when dynamic decomposition is enabled and an agent is supplied, otherwise
	(or when the agent's reply is unusable) by the static decomposer.
	"""
	complexity = analyze_task_complexity(task_description)
	recommendation = recommend_mode(task_description, custom_modes)

	sub_tasks: list[SubTask] = []
	used_dynamic = False

	if complexity.is_complex:
		if enable_dynamic and agent is not None and dynamic_decomposition_enabled():
			context = (
				f"Complexity: {complexity.level.value}, score: {complexity.score}, "
				f"reasons: {', '.join(complexity.reasons)}"
			)
			sub_tasks = await decompose_task_with_agent(
				task_description, context, agent, ModeRegistry(custom_modes)
			)
			used_dynamic = bool(sub_tasks)

		if not sub_tasks:
			sub_tasks = decompose_complex_task(task_description)

	return TaskAnalysisResult(
		complexity=complexity,
		recommended_mode=recommendation,
		sub_tasks=sub_tasks,
		used_dynamic_decomposition=used_dynamic,
	)


def analyze_task_sync(
	task_description: str,
	custom_modes: Optional[Iterable[str] | Mapping[str, str]] = None,
) -> TaskAnalysisResult:
	"""Static-only analysis for callers outside an event loop."""
	complexity = analyze_task_complexity(task_description)
	return TaskAnalysisResult(
		complexity=complexity,
		recommended_mode=recommend_mode(task_description, custom_modes),
		sub_tasks=decompose_complex_task(task_description) if complexity.is_complex else [],
	)
