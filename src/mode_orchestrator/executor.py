"""
Task executor - runs sub-task instructions through an agent runner.

The runner is the boundary to the external coding agent. ClaudeCLIRunner
shells out to `claude --print --output-format json`; without a runner the
executor simulates work with a delay proportional to the sub-task's
estimated complexity.
"""

import asyncio
import json
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence

from .errors import AgentRunnerError, AgentTimeoutError

logger = logging.getLogger(__name__)


class AgentRunner(ABC):
	"""Runs one prompt through the external agent and returns its final text."""

	@abstractmethod
	async def run(
		self,
		prompt: str,
		max_turns: Optional[int] = None,
		allowed_tools: Optional[Sequence[str]] = None,
	) -> str:
		...


def parse_agent_output(raw: str) -> str:
	"""
	Extract the agent's final text from CLI output.

	Accepts a JSON list of entries (text entries concatenated), a JSON
	object with a "result" field, or anything else as raw text.
	"""
	try:
		data = json.loads(raw)
	except json.JSONDecodeError:
		return raw.strip()

	if isinstance(data, list):
		return "".join(
			entry.get("text", "")
			for entry in data
			if isinstance(entry, dict) and entry.get("type") == "text" and entry.get("text")
		)

	if isinstance(data, dict) and "result" in data:
		return str(data["result"])

	return raw.strip()


class ClaudeCLIRunner(AgentRunner):
	"""
	Agent runner backed by the Claude CLI in print mode.

	The prompt is written to stdin so long instructions do not hit argv limits.
	"""

	def __init__(
		self,
		executable: str = "claude",
		cwd: Optional[str] = None,
		timeout: float = 600,
		extra_args: Optional[Sequence[str]] = None,
	):
		self.executable = executable
		self.cwd = cwd
		self.timeout = timeout
		self.extra_args = list(extra_args or [])

	def build_command(self, max_turns: Optional[int] = None, allowed_tools: Optional[Sequence[str]] = None) -> list[str]:
		cmd = [self.executable, "--print", "--output-format", "json"]
		if max_turns is not None:
			cmd += ["--max-turns", str(max_turns)]
		if allowed_tools:
			cmd += ["--allowedTools", ",".join(allowed_tools)]
		return cmd + self.extra_args

	async def run(
		self,
		prompt: str,
		max_turns: Optional[int] = None,
		allowed_tools: Optional[Sequence[str]] = None,
	) -> str:
		"""
		Run the CLI once and return the parsed final text.

		Raises:
			AgentTimeoutError: If the process does not finish within timeout
			AgentRunnerError: If the CLI cannot be started or exits non-zero
		"""
		cmd = self.build_command(max_turns, allowed_tools)
		logger.info(f"Running agent ({len(prompt)} chars): {prompt[:100]}...")

		try:
			process = await asyncio.create_subprocess_exec(
				*cmd,
				stdin=asyncio.subprocess.PIPE,
				stdout=asyncio.subprocess.PIPE,
				stderr=asyncio.subprocess.PIPE,
				cwd=self.cwd,
				env=os.environ.copy(),
			)
		except FileNotFoundError as e:
			raise AgentRunnerError(f"Agent CLI '{self.executable}' not found. Is it installed?") from e
		except OSError as e:
			raise AgentRunnerError(f"Could not start agent CLI '{self.executable}': {e}") from e

		try:
			stdout, stderr = await asyncio.wait_for(
				process.communicate(prompt.encode()),
				timeout=self.timeout,
			)
		except asyncio.TimeoutError:
			process.kill()
			await process.wait()
			raise AgentTimeoutError(f"Agent timed out after {self.timeout} seconds")

		stdout_text = stdout.decode(errors="replace") if stdout else ""
		stderr_text = stderr.decode(errors="replace") if stderr else ""

		if process.returncode != 0:
			error_msg = stderr_text.strip() or f"Exit code {process.returncode}"
			logger.error(f"Agent CLI error: {error_msg}")
			raise AgentRunnerError(f"Agent CLI failed: {error_msg}")

		result = parse_agent_output(stdout_text)
		if not result:
			raise AgentRunnerError("Agent produced no output")

		logger.info(f"Agent response received ({len(result)} chars)")
		return result


class TaskExecutor:
	"""
	Executes sub-task instructions.

	With a runner, the instruction is sent to the agent. Without one, the
	executor sleeps for estimated_complexity * simulated_delay_seconds and
	returns a confirmation line.
	"""

	def __init__(self, runner: Optional[AgentRunner] = None, simulated_delay_seconds: float = 1.0):
		self.runner = runner
		self.simulated_delay_seconds = simulated_delay_seconds

	@property
	def is_simulated(self) -> bool:
		return self.runner is None

	async def execute(self, description: str, mode: str, instruction: str, estimated_complexity: int = 1) -> str:
		if self.runner is not None:
			return await self.runner.run(instruction)

		delay = estimated_complexity * self.simulated_delay_seconds
		if delay > 0:
			await asyncio.sleep(delay)
		return f"Completed task '{description}' in {mode} mode."

	def describe(self) -> dict[str, Any]:
		return {
			"runner": type(self.runner).__name__ if self.runner else None,
			"simulated": self.is_simulated,
			"simulated_delay_seconds": self.simulated_delay_seconds,
		}
