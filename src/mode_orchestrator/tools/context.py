"""Context digest tools."""

import json
from typing import Optional

from mcp.server.fastmcp import FastMCP

from ..config import Config
from ..context.generator import ContextGenerationConfig, generate_optimized_context, validate_context_generation
from ..modes.registry import mode_token_limit


def register_context_tools(mcp: FastMCP, config: Config) -> None:
	"""Register context tools."""

	@mcp.tool()
	async def generate_context(
		previous_results: list[str],
		mode: str,
		goal: str,
		max_tokens: Optional[int] = None,
		strategy: str = "",
	) -> str:
		"""
		Compress prior task results into a digest for the next task.

		Args:
			previous_results: Outputs of earlier tasks, oldest first
			mode: Mode of the next task (architect, code, debug, ask, orchestrator)
			goal: Description of the next task
			max_tokens: Token budget (default: the mode's limit)
			strategy: balanced, minimal or comprehensive (default: configured strategy)
		"""
		generated = generate_optimized_context(
			previous_results,
			mode,
			goal,
			config=ContextGenerationConfig(max_tokens=max_tokens) if max_tokens else None,
			strategy=strategy or config.context_strategy,
		)
		return json.dumps({
			"optimized_context": generated.optimized_context,
			"metadata": generated.metadata.to_dict(),
		}, indent=2, ensure_ascii=False)

	@mcp.tool()
	async def validate_context(
		previous_results: list[str],
		mode: str,
		goal: str,
		max_tokens: Optional[int] = None,
		required_types: Optional[list[str]] = None,
		min_compression_ratio: Optional[float] = None,
	) -> str:
		"""
		Generate a digest and check it against requirements.

		Args:
			previous_results: Outputs of earlier tasks, oldest first
			mode: Mode of the next task
			goal: Description of the next task
			max_tokens: Token budget to validate against (default: the mode's limit)
			required_types: Context types that must survive filtering
			min_compression_ratio: Lower bound on output/input length ratio
		"""
		budget = max_tokens or mode_token_limit(mode)
		generated = generate_optimized_context(
			previous_results,
			mode,
			goal,
			config=ContextGenerationConfig(max_tokens=budget),
			strategy=config.context_strategy,
		)
		validation = validate_context_generation(generated, budget, required_types, min_compression_ratio)
		return json.dumps({
			"is_valid": validation.is_valid,
			"issues": validation.issues,
			"suggestions": validation.suggestions,
			"metadata": generated.metadata.to_dict(),
		}, indent=2, ensure_ascii=False)
