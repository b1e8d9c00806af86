"""
Mode registry - built-in execution personas plus runtime custom slugs.

A mode tailors both the prompt framing handed to the agent and the way prior
context is weighted. The five built-in modes are fixed; custom slugs supplied
by the mode-file loader are registered at runtime.
"""

from collections.abc import Iterable, Mapping
from typing import Optional

ARCHITECT = "architect"
CODE = "code"
DEBUG = "debug"
ASK = "ask"
ORCHESTRATOR = "orchestrator"

BUILTIN_MODES: tuple[str, ...] = (ARCHITECT, CODE, DEBUG, ASK, ORCHESTRATOR)

DEFAULT_MODE = CODE

MODE_EMOJI = {
	ARCHITECT: "🏗️",
	CODE: "💻",
	DEBUG: "🪲",
	ASK: "❓",
	ORCHESTRATOR: "🪃",
}
DEFAULT_EMOJI = "📋"

MODE_DESCRIPTIONS = {
	ARCHITECT: "System design, architecture, requirements and technology selection",
	CODE: "Code implementation, program development, file creation, feature work",
	DEBUG: "Debugging, testing, problem solving, verification, error fixes",
	ASK: "Answering questions, explanations, research, documentation",
	ORCHESTRATOR: "Integrating multiple tasks, workflow management, coordination",
}

# Token budget for the context digest handed to each mode
MODE_TOKEN_LIMITS = {
	ARCHITECT: 2000,
	CODE: 1500,
	DEBUG: 1200,
	ASK: 1000,
	ORCHESTRATOR: 1800,
}
DEFAULT_TOKEN_LIMIT = 1500

# Used by recommend_mode to tally keyword hits per mode
MODE_PATTERNS: dict[str, tuple[str, ...]] = {
	ARCHITECT: (
		"設計", "アーキテクチャ", "構造", "計画", "システム設計", "データベース設計",
		"API設計", "要件定義", "仕様書",
		"design", "architecture", "structure", "plan", "requirement", "specification",
	),
	CODE: (
		"実装", "コード", "プログラム", "開発", "作成", "構築", "ファイル",
		"クラス", "関数", "メソッド",
		"implement", "code", "program", "develop", "create", "build", "file",
		"class", "function", "method",
	),
	DEBUG: (
		"デバッグ", "バグ", "エラー", "問題", "修正", "トラブルシューティング",
		"テスト", "検証", "確認",
		"debug", "bug", "error", "problem", "fix", "troubleshoot", "test", "verify",
	),
	ASK: (
		"質問", "説明", "教えて", "どうやって", "なぜ", "方法", "ヘルプ", "サポート",
		"情報", "調査",
		"question", "explain", "how to", "why", "help", "support", "information", "research",
	),
	ORCHESTRATOR: (
		"複数", "統合", "連携", "ワークフロー", "パイプライン", "自動化",
		"オーケストレーション", "管理",
		"multiple", "integrat", "workflow", "pipeline", "automat", "orchestrat", "manage",
	),
}

# Used by the context analyzer to decide which modes a context item serves
CONTEXT_MODE_KEYWORDS: dict[str, tuple[str, ...]] = {
	ARCHITECT: (
		"設計", "アーキテクチャ", "構造", "計画", "要件",
		"design", "architecture", "structure", "plan", "requirement",
	),
	CODE: (
		"実装", "コード", "プログラム", "開発", "ファイル",
		"implement", "code", "program", "develop", "file",
	),
	DEBUG: (
		"デバッグ", "テスト", "エラー", "問題", "修正",
		"debug", "test", "error", "problem", "fix",
	),
	ASK: (
		"説明", "質問", "情報", "調査", "ヘルプ",
		"explain", "question", "information", "research", "help",
	),
	ORCHESTRATOR: (
		"統合", "連携", "ワークフロー", "管理", "調整",
		"integrat", "workflow", "manage", "coordinat",
	),
}

# Estimated complexity assigned to dynamically decomposed sub-tasks
MODE_COMPLEXITY = {
	ARCHITECT: 3,
	CODE: 4,
	DEBUG: 2,
	ORCHESTRATOR: 3,
	ASK: 1,
}
DEFAULT_COMPLEXITY = 1


def mode_emoji(mode: str) -> str:
	"""Emoji shown next to a mode name; custom modes get a generic icon."""
	return MODE_EMOJI.get(mode, DEFAULT_EMOJI)


def mode_token_limit(mode: str) -> int:
	"""Default digest token budget for a mode."""
	return MODE_TOKEN_LIMITS.get(mode, DEFAULT_TOKEN_LIMIT)


def mode_complexity(mode: str) -> int:
	"""Estimated complexity for a sub-task routed to a mode."""
	return MODE_COMPLEXITY.get(mode, DEFAULT_COMPLEXITY)


def is_builtin_mode(slug: str) -> bool:
	return slug in BUILTIN_MODES


class ModeRegistry:
	"""
	Ordered set of known mode slugs.

	Built-in modes always come first, in their declared order; custom slugs
	follow in registration order. Iteration order matters: it is the tie-break
	order for mode recommendation.
	"""

	def __init__(self, custom_modes: Optional[Iterable[str] | Mapping[str, str]] = None):
		self._modes: list[str] = list(BUILTIN_MODES)
		self._instructions: dict[str, str] = {}
		if custom_modes:
			self.register_all(custom_modes)

	def register(self, slug: str, instructions: Optional[str] = None) -> None:
		"""Add a custom slug (no-op for known slugs) and remember its instructions."""
		if slug not in self._modes:
			self._modes.append(slug)
		if instructions:
			self._instructions[slug] = instructions

	def register_all(self, custom_modes: Iterable[str] | Mapping[str, str]) -> None:
		if isinstance(custom_modes, Mapping):
			for slug, instructions in custom_modes.items():
				self.register(slug, instructions)
		else:
			for slug in custom_modes:
				self.register(slug)

	def instructions_for(self, slug: str) -> Optional[str]:
		return self._instructions.get(slug)

	@property
	def custom_modes(self) -> list[str]:
		return [m for m in self._modes if m not in BUILTIN_MODES]

	def __contains__(self, slug: object) -> bool:
		return slug in self._modes

	def __iter__(self):
		return iter(self._modes)

	def __len__(self) -> int:
		return len(self._modes)
