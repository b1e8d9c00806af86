"""
Prompt preparation - turns user input into the prompt file handed to the agent.

Steps:
1. Validate that exactly one of an inline prompt or a prompt file was given
2. Write the prompt, plus the commit-hash instruction, into the work dir
3. Route `/<mode>` boomerang triggers to a delegated prompt
4. Optionally analyze the task and replace complex ones with an
   orchestration report
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .analyzer import TaskAnalysisResult, analyze_task
from .boomerang import BoomerangTaskConfig, process_boomerang_task
from .config import Config, get_config
from .errors import PromptInputError
from .modes.loader import CustomModeLoader
from .orchestrator.engine import AutoOrchestrator

logger = logging.getLogger(__name__)

COMMIT_INSTRUCTION = (
	"\n\nImportant: if you make a commit, output the commit hash. "
	"Print the full 40-character hash and do not wrap it in backticks or a code block."
)

INLINE_PROMPT_FILE = "prompt.txt"
ENHANCED_PROMPT_FILE = "enhanced-prompt.txt"
BOOMERANG_PROMPT_FILE = "boomerang-prompt.txt"
ORCHESTRATED_PROMPT_FILE = "orchestrated-prompt.txt"


@dataclass
class PromptInput:
	prompt: str = ""
	prompt_file: str = ""


@dataclass
class PreparedPrompt:
	type: str  # "file" or "inline"
	path: Path
	is_boomerang_task: bool = False
	boomerang_config: Optional[BoomerangTaskConfig] = None
	is_auto_orchestrated: bool = False
	task_analysis: Optional[TaskAnalysisResult] = None
	orchestration_result: Optional[str] = None


def validate_prompt_input(prompt_input: PromptInput) -> str:
	"""
	Check the input sources and return the task text.

	Raises:
		PromptInputError: if neither or both sources are given, the file is
			missing or empty, or the inline prompt is blank
	"""
	if not prompt_input.prompt and not prompt_input.prompt_file:
		raise PromptInputError("Neither 'prompt' nor 'prompt_file' was provided. At least one is required.")

	if prompt_input.prompt and prompt_input.prompt_file:
		raise PromptInputError("Both 'prompt' and 'prompt_file' were provided. Please specify only one.")

	if prompt_input.prompt_file:
		path = Path(prompt_input.prompt_file)
		if not path.is_file():
			raise PromptInputError(f"Prompt file '{prompt_input.prompt_file}' does not exist.")
		if path.stat().st_size == 0:
			raise PromptInputError("Prompt file is empty. Please provide a non-empty prompt.")
		return path.read_text(encoding="utf-8")

	if not prompt_input.prompt.strip():
		raise PromptInputError("Prompt is empty. Please provide a non-empty prompt.")

	return prompt_input.prompt


def write_prompt_file(prompt: str, path: Path) -> Path:
	"""Write prompt with the commit-hash instruction appended."""
	path.parent.mkdir(parents=True, exist_ok=True)
	path.write_text(prompt + COMMIT_INSTRUCTION, encoding="utf-8")
	return path


async def prepare_prompt(prompt_input: PromptInput, config: Optional[Config] = None) -> PreparedPrompt:
	"""
	Validate the input and produce the prompt file for the agent.

	Returns:
		PreparedPrompt pointing at the file to run, flagged when it was
		rewritten for a boomerang task or by auto-orchestration
	"""
	config = config or get_config()
	task_text = validate_prompt_input(prompt_input)
	work_dir = Path(config.work_dir)

	if prompt_input.prompt_file:
		prepared = PreparedPrompt(type="file", path=write_prompt_file(task_text, work_dir / ENHANCED_PROMPT_FILE))
	else:
		prepared = PreparedPrompt(type="inline", path=write_prompt_file(task_text, work_dir / INLINE_PROMPT_FILE))

	custom_prompts = CustomModeLoader(config.modes_dir).load_custom_prompts()

	boomerang = process_boomerang_task(prepared.path, custom_prompts)
	if boomerang.is_boomerang_task and boomerang.modified_prompt:
		prepared.path = write_prompt_file(boomerang.modified_prompt, work_dir / BOOMERANG_PROMPT_FILE)
		prepared.is_boomerang_task = True
		prepared.boomerang_config = boomerang.config
		return prepared

	if not config.auto_orchestration:
		return prepared

	executor = config.create_executor()
	analysis = await analyze_task(
		task_text,
		enable_dynamic=config.dynamic_decomposition,
		custom_modes=custom_prompts,
		agent=executor.runner,
	)
	logger.info(
		f"Task analysis: complexity={analysis.complexity.level.value}, "
		f"recommended mode={analysis.recommended_mode.mode}"
	)

	if analysis.requires_orchestration:
		logger.info("Starting auto-orchestration")
		orchestrator = AutoOrchestrator(
			config=config.orchestration_config(),
			executor=executor,
			custom_modes=custom_prompts,
		)
		result = await orchestrator.orchestrate_task(task_text, analysis=analysis)

		prepared.path = write_prompt_file(result.final_result, work_dir / ORCHESTRATED_PROMPT_FILE)
		prepared.is_auto_orchestrated = True
		prepared.task_analysis = analysis
		prepared.orchestration_result = result.final_result

	return prepared
