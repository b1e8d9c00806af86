"""Core health check tool."""

import json

from mcp.server.fastmcp import FastMCP

from ..config import Config


def register_core_tools(mcp: FastMCP, config: Config) -> None:
	"""Register core tools."""

	@mcp.tool()
	async def health_check() -> str:
		"""
		Check the health of the mode-orchestrator server.
		Returns the resolved directories and orchestration settings.
		"""
		status = {
			"server": "running",
			"config_dir": str(config.config_dir),
			"data_dir": str(config.data_dir),
			"modes_dir": str(config.modes_dir),
			"modes_dir_exists": config.modes_dir.is_dir(),
			"work_dir": str(config.work_dir),
			"dynamic_decomposition": config.dynamic_decomposition,
			"context_strategy": config.context_strategy,
			"executor": "agent" if config.use_agent else "simulated",
		}
		return json.dumps(status, indent=2)
