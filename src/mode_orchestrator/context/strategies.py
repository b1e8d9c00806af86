"""
Context strategies - named bundles of token limits and priority weights.

Three strategies ship built in:

	balanced       default; keeps every context type in proportion
	minimal        tight token limits, strongly favours each mode's core types
	comprehensive  generous limits, flatter weights

A ContextConfiguration groups the strategies with global and per-mode
settings. Configurations are plain dataclasses; merging and customising
always returns new objects.
"""

from dataclasses import dataclass, field, replace
from typing import Optional

from ..modes.registry import ARCHITECT, ASK, BUILTIN_MODES, CODE, DEBUG, MODE_TOKEN_LIMITS, ORCHESTRATOR
from .models import ContextType

TD = ContextType.TECHNICAL_DETAIL
FC = ContextType.FILE_CHANGE
DD = ContextType.DESIGN_DECISION
EI = ContextType.ERROR_INFO
RS = ContextType.RESULT_SUMMARY
DI = ContextType.DEPENDENCY_INFO

BALANCED = "balanced"
MINIMAL = "minimal"
COMPREHENSIVE = "comprehensive"


@dataclass
class ContextStrategy:
	name: str
	description: str
	token_limits: dict[str, int]
	priority_weights: dict[str, dict[ContextType, float]]

	def token_limit_for(self, mode: str, default: int = 1500) -> int:
		return self.token_limits.get(mode, default)

	def weights_for(self, mode: str) -> dict[ContextType, float]:
		return self.priority_weights.get(mode, {})


@dataclass
class ModeContextSettings:
	max_tokens: int = 1500
	prioritize_recent: bool = True
	preserve_error_info: bool = True
	include_file_changes: bool = True


@dataclass
class GlobalContextSettings:
	max_history_items: int = 100
	min_importance_threshold: float = 0.3
	enable_debug_logging: bool = False


@dataclass
class ContextConfigValidation:
	is_valid: bool
	errors: list[str] = field(default_factory=list)
	warnings: list[str] = field(default_factory=list)


BALANCED_STRATEGY = ContextStrategy(
	name=BALANCED,
	description="Keeps every context type, weighted towards what each mode needs",
	token_limits=dict(MODE_TOKEN_LIMITS),
	priority_weights={
		ARCHITECT: {DD: 1.5, TD: 1.2, DI: 1.1, RS: 1.0, FC: 0.8, EI: 0.7},
		CODE: {FC: 1.5, TD: 1.3, EI: 1.2, DD: 1.0, DI: 0.9, RS: 0.8},
		DEBUG: {EI: 1.6, TD: 1.2, FC: 1.1, RS: 1.0, DD: 0.8, DI: 0.7},
		ASK: {RS: 1.4, TD: 1.1, DD: 1.0, EI: 0.9, FC: 0.8, DI: 0.7},
		ORCHESTRATOR: {RS: 1.3, DI: 1.2, DD: 1.1, TD: 1.0, FC: 0.9, EI: 0.8},
	},
)

MINIMAL_STRATEGY = ContextStrategy(
	name=MINIMAL,
	description="Keeps only the most important information",
	token_limits={ARCHITECT: 1000, CODE: 800, DEBUG: 600, ASK: 500, ORCHESTRATOR: 900},
	priority_weights={
		ARCHITECT: {DD: 2.0, TD: 1.5, DI: 1.2, RS: 0.8, FC: 0.5, EI: 0.5},
		CODE: {FC: 2.0, TD: 1.5, EI: 1.3, DD: 0.8, DI: 0.5, RS: 0.5},
		DEBUG: {EI: 2.0, TD: 1.3, FC: 1.0, RS: 0.8, DD: 0.5, DI: 0.5},
		ASK: {RS: 1.8, TD: 1.0, DD: 0.8, EI: 0.7, FC: 0.5, DI: 0.5},
		ORCHESTRATOR: {RS: 1.8, DI: 1.5, DD: 1.2, TD: 0.8, FC: 0.5, EI: 0.5},
	},
)

COMPREHENSIVE_STRATEGY = ContextStrategy(
	name=COMPREHENSIVE,
	description="Keeps as much information as possible",
	token_limits={ARCHITECT: 3000, CODE: 2500, DEBUG: 2000, ASK: 1500, ORCHESTRATOR: 2800},
	priority_weights={
		ARCHITECT: {DD: 1.3, TD: 1.2, DI: 1.1, RS: 1.0, FC: 0.9, EI: 0.8},
		CODE: {FC: 1.3, TD: 1.2, EI: 1.1, DD: 1.0, DI: 0.9, RS: 0.8},
		DEBUG: {EI: 1.4, TD: 1.2, FC: 1.1, RS: 1.0, DD: 0.9, DI: 0.8},
		ASK: {RS: 1.3, TD: 1.1, DD: 1.0, EI: 0.9, FC: 0.8, DI: 0.7},
		ORCHESTRATOR: {RS: 1.2, DI: 1.1, DD: 1.0, TD: 0.9, FC: 0.8, EI: 0.7},
	},
)


def _default_strategies() -> dict[str, ContextStrategy]:
	return {
		BALANCED: BALANCED_STRATEGY,
		MINIMAL: MINIMAL_STRATEGY,
		COMPREHENSIVE: COMPREHENSIVE_STRATEGY,
	}


def _default_mode_settings() -> dict[str, ModeContextSettings]:
	settings = {mode: ModeContextSettings(max_tokens=MODE_TOKEN_LIMITS[mode]) for mode in BUILTIN_MODES}
	# ask gets a plain digest: no recency boost, no error re-inclusion, no file lists
	settings[ASK] = ModeContextSettings(
		max_tokens=MODE_TOKEN_LIMITS[ASK],
		prioritize_recent=False,
		preserve_error_info=False,
		include_file_changes=False,
	)
	return settings


@dataclass
class ContextConfiguration:
	default_strategy: str = BALANCED
	strategies: dict[str, ContextStrategy] = field(default_factory=_default_strategies)
	global_settings: GlobalContextSettings = field(default_factory=GlobalContextSettings)
	mode_settings: dict[str, ModeContextSettings] = field(default_factory=_default_mode_settings)


DEFAULT_CONTEXT_CONFIG = ContextConfiguration()


def create_custom_strategy(
	name: str,
	description: str,
	token_limits: Optional[dict[str, int]] = None,
	priority_weights: Optional[dict[str, dict[ContextType, float]]] = None,
) -> ContextStrategy:
	"""Build a strategy from the balanced one, overriding limits and per-mode weights."""
	return ContextStrategy(
		name=name,
		description=description,
		token_limits={**BALANCED_STRATEGY.token_limits, **(token_limits or {})},
		priority_weights={**BALANCED_STRATEGY.priority_weights, **(priority_weights or {})},
	)


def validate_context_config(config: ContextConfiguration) -> ContextConfigValidation:
	"""Check a configuration for values the generator cannot work with."""
	errors: list[str] = []
	warnings: list[str] = []

	if config.default_strategy not in config.strategies:
		errors.append(f"Default strategy '{config.default_strategy}' is not defined")

	for strategy_name, strategy in config.strategies.items():
		if not strategy.priority_weights:
			warnings.append(f"Strategy '{strategy_name}' defines no priority weights")

		for mode, limit in strategy.token_limits.items():
			if limit <= 0:
				errors.append(f"Strategy '{strategy_name}' has an invalid token limit for mode '{mode}'")

		for mode, weights in strategy.priority_weights.items():
			for context_type, weight in weights.items():
				if weight < 0:
					errors.append(
						f"Strategy '{strategy_name}' has a negative weight for "
						f"'{getattr(context_type, 'value', context_type)}' in mode '{mode}'"
					)

		missing = [mode for mode in BUILTIN_MODES if mode not in strategy.token_limits]
		if missing:
			warnings.append(f"Strategy '{strategy_name}' has no token limit for: {', '.join(missing)}")

	if config.global_settings.max_history_items <= 0:
		errors.append("max_history_items must be a positive number")

	if not 0 <= config.global_settings.min_importance_threshold <= 1:
		errors.append("min_importance_threshold must be between 0 and 1")

	for mode, settings in config.mode_settings.items():
		if settings.max_tokens <= 0:
			errors.append(f"Mode '{mode}' has an invalid max_tokens")

	return ContextConfigValidation(is_valid=not errors, errors=errors, warnings=warnings)


def get_context_config_for_mode(
	config: ContextConfiguration,
	mode: str,
	strategy_name: Optional[str] = None,
) -> tuple[ContextStrategy, ModeContextSettings]:
	"""
	Resolve the strategy and mode settings to use for one generation.

	Unknown strategies fall back to balanced; unknown modes fall back to the
	code settings, then to ModeContextSettings defaults.
	"""
	strategy = config.strategies.get(strategy_name or config.default_strategy, BALANCED_STRATEGY)
	settings = config.mode_settings.get(mode) or config.mode_settings.get(CODE) or ModeContextSettings()
	return strategy, settings


def merge_context_configs(
	base: ContextConfiguration,
	default_strategy: Optional[str] = None,
	strategies: Optional[dict[str, ContextStrategy]] = None,
	global_settings: Optional[dict] = None,
	mode_settings: Optional[dict[str, ModeContextSettings]] = None,
) -> ContextConfiguration:
	"""Return a new configuration with the given overrides layered over base."""
	return ContextConfiguration(
		default_strategy=default_strategy or base.default_strategy,
		strategies={**base.strategies, **(strategies or {})},
		global_settings=replace(base.global_settings, **(global_settings or {})),
		mode_settings={**base.mode_settings, **(mode_settings or {})},
	)
