"""MCP tool registration - modular tool definitions."""

from mcp.server.fastmcp import FastMCP

from ..config import Config
from .analysis import register_analysis_tools
from .context import register_context_tools
from .core import register_core_tools
from .modes import register_modes_tools
from .orchestration import register_orchestration_tools


def register_all_tools(mcp: FastMCP, config: Config) -> None:
	"""Register all MCP tools."""
	register_core_tools(mcp, config)
	register_analysis_tools(mcp, config)
	register_context_tools(mcp, config)
	register_orchestration_tools(mcp, config)
	register_modes_tools(mcp, config)
