"""Modes module - built-in personas, custom mode registry and mode-file loading."""

from .loader import CustomModeLoader, CustomModePrompt, ModeDefinitionParser, ModePromptResult
from .registry import (
	BUILTIN_MODES,
	DEFAULT_MODE,
	ModeRegistry,
	mode_complexity,
	mode_emoji,
	mode_token_limit,
)

__all__ = [
	"BUILTIN_MODES",
	"DEFAULT_MODE",
	"ModeRegistry",
	"mode_complexity",
	"mode_emoji",
	"mode_token_limit",
	"CustomModeLoader",
	"CustomModePrompt",
	"ModeDefinitionParser",
	"ModePromptResult",
]
