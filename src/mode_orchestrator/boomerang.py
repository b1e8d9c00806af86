"""
Boomerang tasks - direct delegation to a mode via a `/<mode> <task>` trigger.

A prompt containing e.g. `/debug the login form crashes` skips task
analysis entirely and is handed to the named mode.
"""

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .modes.registry import ARCHITECT, ASK, CODE, DEBUG, ORCHESTRATOR, mode_emoji

logger = logging.getLogger(__name__)

# Checked in this order; custom slugs follow
TRIGGER_ORDER = (ARCHITECT, DEBUG, ASK, ORCHESTRATOR, CODE)


@dataclass
class BoomerangTaskConfig:
	target_mode: str
	task_description: str
	trigger_phrase: str


@dataclass
class BoomerangTaskResult:
	is_boomerang_task: bool
	config: Optional[BoomerangTaskConfig] = None
	modified_prompt: Optional[str] = None


def _trigger_pattern(slug: str) -> re.Pattern:
	return re.compile(rf"/{re.escape(slug)}\s+(.+)", re.IGNORECASE)


def detect_boomerang_task(
	content: str,
	custom_modes: Optional[Iterable[str] | Mapping[str, str]] = None,
) -> Optional[BoomerangTaskConfig]:
	"""
	Find the first `/<mode> <task>` trigger in content.

	Returns:
		BoomerangTaskConfig for the first matching mode, or None
	"""
	slugs = list(TRIGGER_ORDER)
	for slug in custom_modes or ():
		if slug not in slugs:
			slugs.append(slug)

	for slug in slugs:
		match = _trigger_pattern(slug).search(content)
		if match and match.group(1).strip():
			return BoomerangTaskConfig(
				target_mode=slug,
				task_description=match.group(1).strip(),
				trigger_phrase=match.group(0),
			)

	return None


def create_boomerang_task_prompt(config: BoomerangTaskConfig, original_prompt: str) -> str:
	"""Wrap the original prompt with delegation instructions for the target mode."""
	mode = config.target_mode
	return f"""# 🪃 Boomerang Task

**Original prompt:**
{original_prompt}

---

## 📋 Delegated Task

**Mode**: {mode_emoji(mode)} **{mode} mode**
**Task**: {config.task_description} ({mode})
**Trigger phrase**: `{config.trigger_phrase}`

This task was delegated to **{mode} mode**. Complete it and report the result.

## 🎯 Instructions

1. Carry out the task above in **{mode} mode**
2. Report the outcome in detail
3. Refer back to the original context where needed
4. Make full use of the mode's strengths

## 📚 Original Context

{original_prompt}"""


def create_new_task_instruction(config: BoomerangTaskConfig) -> str:
	mode = config.target_mode
	return f"""🪃 **Boomerang Task** - please create a new task:

**Mode**: {mode_emoji(mode)} `{mode}`
**Task**: {config.task_description} ({mode})

---
**📝 Task details:**
- **Delegated from**: prompt trigger
- **Execution mode**: **{mode} mode**
- **Task type**: boomerang task (mode chosen explicitly)

This boomerang task was delegated to **{mode} mode**."""


def process_boomerang_task(
	prompt_path: str | Path,
	custom_modes: Optional[Iterable[str] | Mapping[str, str]] = None,
) -> BoomerangTaskResult:
	"""Read a prompt file and, if it carries a trigger, build the delegated prompt."""
	try:
		content = Path(prompt_path).read_text(encoding="utf-8")
	except (OSError, UnicodeDecodeError) as e:
		logger.error(f"Could not read prompt file {prompt_path}: {e}")
		return BoomerangTaskResult(is_boomerang_task=False)

	config = detect_boomerang_task(content, custom_modes)
	if config is None:
		return BoomerangTaskResult(is_boomerang_task=False)

	logger.info(f"Boomerang task detected: delegating to {config.target_mode} mode")
	logger.info(f"Task: {config.task_description}")

	return BoomerangTaskResult(
		is_boomerang_task=True,
		config=config,
		modified_prompt=create_boomerang_task_prompt(config, content),
	)
