"""Markdown report rendered at the end of an orchestration run."""

import math
from typing import TYPE_CHECKING, Sequence

from ..modes.registry import mode_emoji

if TYPE_CHECKING:
	from .engine import TaskExecution


def success_rate(completed: int, failed: int) -> int:
	"""Completed share of attempted sub-tasks as a whole percentage (0 when nothing ran)."""
	total = completed + failed
	if total == 0:
		return 0
	return math.floor(completed / total * 100 + 0.5)


def _task_lines(execution: "TaskExecution", icon: str) -> list[str]:
	task = execution.sub_task
	lines = [
		f"### {icon} {task.id} - **{task.mode} mode**",
		f"- **Description**: {task.description} ({task.mode})",
		f"- **Mode**: `{task.mode}`",
		f"- **Priority**: {task.priority}",
		f"- **Estimated complexity**: {task.estimated_complexity}",
	]
	if task.dependencies:
		lines.append(f"- **Dependencies**: {', '.join(task.dependencies)}")
	return lines


def build_final_report(
	completed: Sequence["TaskExecution"],
	failed: Sequence["TaskExecution"],
	results: Sequence[str],
	skipped: Sequence["TaskExecution"] = (),
) -> str:
	"""
	Render the orchestration report.

	Always renders, whatever the outcome: the summary block, one section
	per completed and failed sub-task, skipped sub-tasks when there are any,
	and the raw results joined under the integrated results heading.
	"""
	lines = [
		"# Auto-Orchestration Result",
		"",
		"## Execution Summary",
		f"- Completed tasks: {len(completed)}",
		f"- Failed tasks: {len(failed)}",
		f"- Success rate: {success_rate(len(completed), len(failed))}%",
		"",
	]

	if completed:
		lines.append("## Completed Tasks")
		for execution in completed:
			lines.extend(_task_lines(execution, mode_emoji(execution.sub_task.mode)))
			lines.append(f"- **Result**: {execution.result}")
			lines.append("")

	if failed:
		lines.append("## Failed Tasks")
		for execution in failed:
			lines.extend(_task_lines(execution, "❌"))
			lines.append(f"- **Error**: {execution.error}")
			lines.append("")

	if skipped:
		lines.append("## Skipped Tasks")
		for execution in skipped:
			lines.extend(_task_lines(execution, "⏳"))
			lines.append("- **Status**: not run, dependencies were not met in this pass")
			lines.append("")

	lines.append("## Integrated Results")
	lines.append("\n\n".join(results))

	return "\n".join(lines)
