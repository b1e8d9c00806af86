"""Exception types raised across mode-orchestrator."""

from typing import Optional


class ModeOrchestratorError(Exception):
	"""Base exception for mode-orchestrator errors."""
	pass


class PromptInputError(ModeOrchestratorError):
	"""Raised when the task description sources are missing, duplicated or empty."""
	pass


class ModeLoaderError(ModeOrchestratorError):
	"""Raised when the custom modes directory cannot be read."""

	def __init__(
		self,
		message: str,
		file_path: Optional[str] = None,
		cause: Optional[BaseException] = None,
	):
		super().__init__(message)
		self.file_path = file_path
		self.cause = cause


class AgentRunnerError(ModeOrchestratorError):
	"""Raised when the external agent process fails or produces no output."""
	pass


class AgentTimeoutError(AgentRunnerError):
	"""Raised when the external agent does not finish in time."""
	pass
