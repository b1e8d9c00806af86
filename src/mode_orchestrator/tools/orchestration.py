"""Orchestration tool."""

import json

from mcp.server.fastmcp import FastMCP

from ..config import Config
from ..orchestrator import AutoOrchestrator
from .modes import load_custom_modes


def register_orchestration_tools(mcp: FastMCP, config: Config) -> None:
	"""Register orchestration tools."""

	@mcp.tool()
	async def orchestrate_task(task_description: str, retries: int = -1, auto_context: bool = True) -> str:
		"""
		Analyze a task and run it, decomposing complex tasks into sub-tasks.

		Without use_agent configured, sub-task execution is simulated.

		Args:
			task_description: Free-text task
			retries: Retry budget per sub-task (default: configured value)
			auto_context: Hand each sub-task a digest of earlier results
		"""
		orchestrator = AutoOrchestrator(
			config=config.orchestration_config(
				retry_attempts=retries if retries >= 0 else None,
				enable_auto_context=auto_context,
			),
			executor=config.create_executor(),
			custom_modes=load_custom_modes(config),
		)
		result = await orchestrator.orchestrate_task(task_description)
		return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
