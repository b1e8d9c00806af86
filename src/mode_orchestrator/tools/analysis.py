"""Task analysis tools: complexity, mode recommendation and decomposition."""

import json
from dataclasses import asdict

from mcp.server.fastmcp import FastMCP

from .. import analyzer
from ..config import Config
from .modes import load_custom_modes


def register_analysis_tools(mcp: FastMCP, config: Config) -> None:
	"""Register task analysis tools."""

	@mcp.tool()
	async def analyze_task(task_description: str, dynamic: bool = False) -> str:
		"""
		Analyze a task: complexity score, recommended mode and sub-tasks.

		Args:
			task_description: Free-text task
			dynamic: Ask the agent to decompose complex tasks (needs use_agent)
		"""
		executor = config.create_executor()
		result = await analyzer.analyze_task(
			task_description,
			enable_dynamic=dynamic and config.dynamic_decomposition,
			custom_modes=load_custom_modes(config),
			agent=executor.runner,
		)
		return json.dumps(result.to_dict(), indent=2, ensure_ascii=False)

	@mcp.tool()
	async def recommend_mode(task_description: str) -> str:
		"""
		Recommend the mode best suited to a task.

		Args:
			task_description: Free-text task
		"""
		recommendation = analyzer.recommend_mode(task_description, load_custom_modes(config))
		return json.dumps(asdict(recommendation), indent=2, ensure_ascii=False)

	@mcp.tool()
	async def decompose_task(task_description: str) -> str:
		"""
		Split a task into design / implementation / testing / documentation sub-tasks.

		Uses the static keyword decomposer only.

		Args:
			task_description: Free-text task
		"""
		sub_tasks = analyzer.decompose_complex_task(task_description)
		return json.dumps({
			"sub_tasks": [asdict(task) for task in sub_tasks],
			"total": len(sub_tasks),
		}, indent=2, ensure_ascii=False)
