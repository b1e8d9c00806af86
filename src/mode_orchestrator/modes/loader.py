"""
Custom mode loader - reads per-mode instructions from <slug>.md files.

Mode files live in a single directory (default .claude/modes):

	.claude/modes/architect.md
	.claude/modes/code.md

The filename (minus .md) is the mode slug and must name a built-in mode.
README.md is ignored. The whole file body becomes the mode's custom
instructions; an optional YAML frontmatter block is stripped first.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from ..errors import ModeLoaderError
from .registry import BUILTIN_MODES

logger = logging.getLogger(__name__)

_FRONTMATTER = re.compile(r"^---\s*\n(.*?)\n---\s*\n?(.*)$", re.DOTALL)


@dataclass
class CustomModePrompt:
	"""Instructions for one mode, loaded from disk."""
	slug: str
	custom_instructions: str
	description: str = ""


@dataclass
class ModePromptResult:
	"""Outcome of parsing a single mode file."""
	success: bool
	prompt: Optional[CustomModePrompt] = None
	error: Optional[str] = None


class ModeDefinitionParser:
	"""Validates mode filenames and turns file content into a CustomModePrompt."""

	README = "README.md"

	@classmethod
	def parse_prompt_file(cls, content: str, file_path: str) -> ModePromptResult:
		slug = cls.extract_slug_from_filename(file_path)

		if not cls.is_valid_mode_slug(slug):
			return ModePromptResult(
				success=False,
				error=f"Invalid mode slug: {slug}. Must be one of: {', '.join(BUILTIN_MODES)}",
			)

		instructions, description = cls._split_frontmatter(content, file_path)

		if not instructions:
			return ModePromptResult(success=False, error="Empty prompt content")

		return ModePromptResult(
			success=True,
			prompt=CustomModePrompt(
				slug=slug,
				custom_instructions=instructions,
				description=description,
			),
		)

	@staticmethod
	def extract_slug_from_filename(file_path: str) -> str:
		name = Path(file_path).name
		return name[:-3] if name.endswith(".md") else name

	@classmethod
	def is_valid_mode_file(cls, filename: str) -> bool:
		return filename.endswith(".md") and filename != cls.README

	@staticmethod
	def is_valid_mode_slug(slug: str) -> bool:
		return slug in BUILTIN_MODES

	@staticmethod
	def _split_frontmatter(content: str, source_path: str) -> tuple[str, str]:
		"""Return (instructions, description), dropping a leading YAML block if present."""
		match = _FRONTMATTER.match(content.lstrip())
		if not match:
			return content.strip(), ""

		try:
			frontmatter = yaml.safe_load(match.group(1)) or {}
		except yaml.YAMLError as e:
			# Not frontmatter after all; keep the file verbatim
			logger.warning(f"Invalid YAML frontmatter in {source_path}: {e}")
			return content.strip(), ""

		if not isinstance(frontmatter, dict):
			return content.strip(), ""

		return match.group(2).strip(), str(frontmatter.get("description", ""))


class CustomModeLoader:
	"""
	Loads the slug -> instructions mapping from a modes directory.

	A missing directory is not an error and yields an empty mapping.
	Any other filesystem failure is raised as ModeLoaderError carrying the
	directory path and the underlying cause.
	"""

	def __init__(self, modes_directory: str | Path = ".claude/modes"):
		self.modes_directory = Path(modes_directory)

	def load_custom_prompts(self) -> dict[str, str]:
		"""
		Load every valid mode file.

		Returns:
			Dict mapping mode slug to custom instructions
		"""
		prompts: dict[str, str] = {}

		try:
			files = self._get_valid_mode_files()
		except FileNotFoundError:
			logger.debug(f"No modes directory at {self.modes_directory}")
			return prompts
		except OSError as e:
			raise ModeLoaderError(
				f"Failed to load custom prompts: {e}",
				str(self.modes_directory),
				e,
			) from e

		for file_path in files:
			result = self.load_prompt_file(file_path)
			if result.success and result.prompt:
				prompts[result.prompt.slug] = result.prompt.custom_instructions
				logger.debug(f"Loaded custom mode: {result.prompt.slug}")
			else:
				logger.warning(f"Skipping {file_path}: {result.error}")

		logger.info(f"Loaded {len(prompts)} custom mode prompts from {self.modes_directory}")
		return prompts

	def load_prompt_file(self, file_path: str | Path) -> ModePromptResult:
		"""Read and parse a single mode file; read errors become a failed result."""
		try:
			content = Path(file_path).read_text(encoding="utf-8")
		except (OSError, UnicodeDecodeError) as e:
			return ModePromptResult(
				success=False,
				error=f"Failed to read file {file_path}: {e}",
			)
		return ModeDefinitionParser.parse_prompt_file(content, str(file_path))

	def _get_valid_mode_files(self) -> list[Path]:
		valid_files = []
		for entry in sorted(self.modes_directory.iterdir()):
			if ModeDefinitionParser.is_valid_mode_file(entry.name) and entry.is_file():
				valid_files.append(entry)
		return valid_files
