"""
Orchestration engine - runs decomposed sub-tasks in priority order.

Per sub-task state machine:

	pending -> running -> completed
	                   -> pending (retry, re-attempted immediately)
	                   -> failed  (retry budget exhausted)

Sub-tasks are visited in one ordered pass. A sub-task whose dependencies
have not completed by the time it is reached is skipped for the run and
reported as such; it is not revisited.
"""

import asyncio
import logging
import time
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from ..analyzer import SubTask, TaskAnalysisResult, analyze_task
from ..context.generator import create_context_for_subtask
from ..errors import AgentTimeoutError
from ..executor import TaskExecutor
from ..modes.registry import ModeRegistry, mode_emoji
from .report import build_final_report

logger = logging.getLogger(__name__)


class ExecutionStatus(str, Enum):
	PENDING = "pending"
	RUNNING = "running"
	COMPLETED = "completed"
	FAILED = "failed"


@dataclass
class OrchestrationConfig:
	"""
	Orchestration settings.

	max_concurrent_tasks is accepted for compatibility but sub-tasks always
	run one at a time. timeout_minutes bounds each execution attempt; zero
	or less disables the deadline.
	"""
	max_concurrent_tasks: int = 3
	timeout_minutes: float = 30
	retry_attempts: int = 2
	enable_auto_context: bool = True
	max_context_tokens: int = 1500
	preserve_all_results: bool = True
	enable_dynamic: bool = True
	context_strategy: Optional[str] = None


@dataclass
class TaskExecution:
	sub_task: SubTask
	status: ExecutionStatus = ExecutionStatus.PENDING
	start_time: Optional[datetime] = None
	end_time: Optional[datetime] = None
	result: Optional[str] = None
	error: Optional[str] = None
	retry_count: int = 0
	instruction: Optional[str] = None

	@property
	def duration_ms(self) -> Optional[float]:
		if self.start_time and self.end_time:
			return (self.end_time - self.start_time).total_seconds() * 1000
		return None

	def to_dict(self) -> dict[str, Any]:
		return {
			"id": self.sub_task.id,
			"description": self.sub_task.description,
			"mode": self.sub_task.mode,
			"priority": self.sub_task.priority,
			"dependencies": self.sub_task.dependencies,
			"estimated_complexity": self.sub_task.estimated_complexity,
			"status": self.status.value,
			"result": self.result,
			"error": self.error,
			"retry_count": self.retry_count,
			"duration_ms": self.duration_ms,
		}


@dataclass
class OrchestrationResult:
	success: bool
	completed_tasks: list[TaskExecution]
	failed_tasks: list[TaskExecution]
	final_result: str
	total_execution_time: float = 0.0  # ms
	skipped_tasks: list[TaskExecution] = field(default_factory=list)
	analysis: Optional[TaskAnalysisResult] = None

	def to_dict(self) -> dict[str, Any]:
		return {
			"success": self.success,
			"completed_tasks": [e.to_dict() for e in self.completed_tasks],
			"failed_tasks": [e.to_dict() for e in self.failed_tasks],
			"skipped_tasks": [e.to_dict() for e in self.skipped_tasks],
			"final_result": self.final_result,
			"total_execution_time": self.total_execution_time,
		}


@dataclass
class OrchestrationRun:
	"""State of a single orchestrate_task call. Never shared between runs."""
	executions: dict[str, TaskExecution] = field(default_factory=dict)
	task_results: list[str] = field(default_factory=list)
	completed: list[TaskExecution] = field(default_factory=list)
	failed: list[TaskExecution] = field(default_factory=list)
	skipped: list[TaskExecution] = field(default_factory=list)
	results: list[str] = field(default_factory=list)

	@classmethod
	def for_sub_tasks(cls, sub_tasks: Iterable[SubTask]) -> "OrchestrationRun":
		return cls(executions={task.id: TaskExecution(sub_task=task) for task in sub_tasks})

	def dependencies_met(self, sub_task: SubTask) -> bool:
		completed_ids = {e.sub_task.id for e in self.completed}
		return all(dep in completed_ids for dep in sub_task.dependencies)


class AutoOrchestrator:
	"""
	Analyzes a task and either runs it directly or orchestrates its sub-tasks.

	The executor decides how sub-tasks actually run; without one a simulated
	executor is used.
	"""

	def __init__(
		self,
		config: Optional[OrchestrationConfig] = None,
		executor: Optional[TaskExecutor] = None,
		custom_modes: Optional[Iterable[str] | Mapping[str, str]] = None,
	):
		self.config = config or OrchestrationConfig()
		self.executor = executor or TaskExecutor()
		self.modes = ModeRegistry(custom_modes)

	async def orchestrate_task(
		self,
		task_description: str,
		analysis: Optional[TaskAnalysisResult] = None,
	) -> OrchestrationResult:
		"""
		Analyze and execute a task.

		A precomputed analysis of the same text is used as is, so the agent
		is not asked to decompose it a second time.

		Returns:
			OrchestrationResult; success means no sub-task failed
		"""
		started = time.perf_counter()
		logger.info(f"Analyzing task: {task_description[:100]}")

		if analysis is None:
			analysis = await analyze_task(
				task_description,
				enable_dynamic=self.config.enable_dynamic,
				custom_modes=list(self.modes.custom_modes),
				agent=self.executor.runner,
			)

		if not analysis.requires_orchestration:
			logger.info(f"Handling as a single task in {analysis.recommended_mode.mode} mode")
			result = await self._execute_single_task(task_description, analysis)
		else:
			logger.info(f"Decomposed into {len(analysis.sub_tasks)} sub-tasks")
			run = OrchestrationRun.for_sub_tasks(analysis.sub_tasks)
			result = await self._execute_sub_tasks(run, analysis.sub_tasks)

		result.analysis = analysis
		result.total_execution_time = (time.perf_counter() - started) * 1000
		logger.info(f"Orchestration finished in {result.total_execution_time:.0f}ms (success={result.success})")
		return result

	async def _execute_single_task(self, task_description: str, analysis: TaskAnalysisResult) -> OrchestrationResult:
		sub_task = SubTask(
			id="single",
			description=task_description,
			mode=analysis.recommended_mode.mode,
			priority=1,
			dependencies=[],
			estimated_complexity=analysis.complexity.score,
		)
		run = OrchestrationRun.for_sub_tasks([sub_task])
		execution = run.executions[sub_task.id]

		try:
			result = await self._execute_task(run, execution)
		except Exception as e:
			execution.status = ExecutionStatus.FAILED
			execution.end_time = datetime.now()
			execution.error = str(e) or type(e).__name__
			logger.error(f"Task failed: {execution.error}")
			return OrchestrationResult(
				success=False,
				completed_tasks=[],
				failed_tasks=[execution],
				final_result=f"Task execution failed: {execution.error}",
			)

		execution.status = ExecutionStatus.COMPLETED
		execution.result = result
		return OrchestrationResult(
			success=True,
			completed_tasks=[execution],
			failed_tasks=[],
			final_result=result,
		)

	async def _execute_sub_tasks(self, run: OrchestrationRun, sub_tasks: list[SubTask]) -> OrchestrationResult:
		# sorted() is stable, so equal priorities keep decomposition order
		for sub_task in sorted(sub_tasks, key=lambda task: task.priority):
			execution = run.executions[sub_task.id]

			if not run.dependencies_met(sub_task):
				logger.info(f"Skipping {sub_task.id}: waiting on {', '.join(sub_task.dependencies)}")
				run.skipped.append(execution)
				continue

			await self._run_with_retries(run, execution)

		final_result = build_final_report(run.completed, run.failed, run.results, run.skipped)
		return OrchestrationResult(
			success=not run.failed,
			completed_tasks=run.completed,
			failed_tasks=run.failed,
			final_result=final_result,
			skipped_tasks=run.skipped,
		)

	async def _run_with_retries(self, run: OrchestrationRun, execution: TaskExecution) -> None:
		sub_task = execution.sub_task
		while True:
			logger.info(f"Starting sub-task {sub_task.id} ({sub_task.mode} mode)")
			try:
				result = await self._execute_task(run, execution)
			except Exception as e:
				execution.end_time = datetime.now()
				execution.error = str(e) or type(e).__name__
				logger.error(f"Sub-task {sub_task.id} failed: {execution.error}")

				if execution.retry_count < self.config.retry_attempts:
					execution.retry_count += 1
					execution.status = ExecutionStatus.PENDING
					logger.info(f"Retry {execution.retry_count}/{self.config.retry_attempts}: {sub_task.id}")
					continue

				execution.status = ExecutionStatus.FAILED
				run.failed.append(execution)
				return

			execution.status = ExecutionStatus.COMPLETED
			execution.result = result
			execution.error = None
			run.completed.append(execution)
			run.results.append(result)
			if self.config.preserve_all_results:
				run.task_results.append(result)
			logger.info(f"Sub-task {sub_task.id} completed")
			return

	async def _execute_task(self, run: OrchestrationRun, execution: TaskExecution) -> str:
		sub_task = execution.sub_task
		execution.status = ExecutionStatus.RUNNING
		execution.start_time = datetime.now()
		execution.instruction = self.build_task_instruction(run, sub_task)

		coro = self.executor.execute(
			sub_task.description,
			sub_task.mode,
			execution.instruction,
			sub_task.estimated_complexity,
		)
		timeout = self.config.timeout_minutes * 60 if self.config.timeout_minutes and self.config.timeout_minutes > 0 else None

		try:
			result = await asyncio.wait_for(coro, timeout=timeout)
		except asyncio.TimeoutError:
			raise AgentTimeoutError(f"Sub-task {sub_task.id} timed out after {self.config.timeout_minutes} minutes")

		execution.end_time = datetime.now()
		return result

	def build_task_instruction(self, run: OrchestrationRun, sub_task: SubTask) -> str:
		"""
		Instruction packet for one sub-task.

		When auto-context is on and earlier sub-tasks produced results, a
		context digest is appended. Context failures only drop the digest.
		"""
		context_section = ""
		if self.config.enable_auto_context and run.task_results:
			try:
				generated = create_context_for_subtask(
					run.task_results,
					sub_task.description,
					sub_task.mode,
					self.config.max_context_tokens,
					strategy=self.config.context_strategy,
				)
			except Exception as e:
				logger.warning(f"Context generation failed for {sub_task.id}, continuing without it: {e}")
			else:
				context_section = f"\n\n**Relevant information from previous tasks:**\n{generated.optimized_context}"
				logger.info(f"Context for {sub_task.id}: {generated.metadata.estimated_tokens} tokens")

		custom_instructions = self.modes.instructions_for(sub_task.mode)
		instructions_section = f"\n\n**Mode instructions:**\n{custom_instructions}" if custom_instructions else ""

		return f"""🎯 **Auto-Orchestration** - please create a new task:

**Mode**: {mode_emoji(sub_task.mode)} `{sub_task.mode}`
**Task ID**: {sub_task.id}
**Task**: {sub_task.description}

---
**📊 Task details:**
- **Execution mode**: **{sub_task.mode} mode**
- **Priority**: {sub_task.priority}
- **Estimated complexity**: {sub_task.estimated_complexity}
- **Dependencies**: {', '.join(sub_task.dependencies) or 'none'}
- **Task type**: auto-orchestration (decomposed by task analysis)

This task was generated by the auto-orchestrator to run in **{sub_task.mode} mode**.{instructions_section}{context_section}"""


def create_auto_orchestrator(
	config: Optional[OrchestrationConfig] = None,
	**kwargs: Any,
) -> AutoOrchestrator:
	"""Build an orchestrator; keyword arguments go to AutoOrchestrator."""
	return AutoOrchestrator(config=config, **kwargs)
