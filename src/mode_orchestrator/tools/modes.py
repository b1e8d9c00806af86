"""Mode listing and boomerang trigger detection tools."""

import json
import logging
from dataclasses import asdict

from mcp.server.fastmcp import FastMCP

from .. import boomerang
from ..config import Config
from ..errors import ModeLoaderError
from ..modes import CustomModeLoader
from ..modes.registry import BUILTIN_MODES, MODE_DESCRIPTIONS, mode_emoji, mode_token_limit

logger = logging.getLogger(__name__)


def load_custom_modes(config: Config) -> dict[str, str]:
	"""Custom mode instructions from the configured modes dir; {} if it cannot be read."""
	try:
		return CustomModeLoader(config.modes_dir).load_custom_prompts()
	except ModeLoaderError as e:
		logger.warning(f"Ignoring custom modes in {e.file_path}: {e}")
		return {}


def register_modes_tools(mcp: FastMCP, config: Config) -> None:
	"""Register mode tools."""

	@mcp.tool()
	async def list_modes() -> str:
		"""
		List the built-in modes and which of them have custom instructions.

		Custom instructions are read from <modes_dir>/<mode>.md files.
		"""
		custom = load_custom_modes(config)
		modes = [
			{
				"slug": mode,
				"emoji": mode_emoji(mode),
				"description": MODE_DESCRIPTIONS[mode],
				"token_limit": mode_token_limit(mode),
				"has_custom_instructions": mode in custom,
			}
			for mode in BUILTIN_MODES
		]
		return json.dumps({
			"modes": modes,
			"modes_dir": str(config.modes_dir),
			"custom_count": len(custom),
		}, indent=2, ensure_ascii=False)

	@mcp.tool()
	async def detect_boomerang_task(content: str) -> str:
		"""
		Check text for a `/<mode> <task>` trigger.

		Args:
			content: Prompt text to scan
		"""
		trigger = boomerang.detect_boomerang_task(content, load_custom_modes(config))
		if trigger is None:
			return json.dumps({"is_boomerang_task": False}, indent=2)

		return json.dumps({
			"is_boomerang_task": True,
			"config": asdict(trigger),
			"instruction": boomerang.create_new_task_instruction(trigger),
		}, indent=2, ensure_ascii=False)
