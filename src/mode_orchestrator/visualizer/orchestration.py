"""Rich views for orchestration results."""

from typing import Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.tree import Tree

from ..modes.registry import mode_emoji
from ..orchestrator.engine import OrchestrationResult
from ..orchestrator.report import success_rate
from ..utils import truncate
from .utils import format_duration, status_icon


def render_orchestration_tree(result: OrchestrationResult, console: Optional[Console] = None) -> None:
	"""Render each sub-task with its final status as a Rich Tree."""
	console = console or Console()

	completed = len(result.completed_tasks)
	failed = len(result.failed_tasks)
	outcome = "[green]success[/green]" if result.success else "[red]failed[/red]"

	tree = Tree(
		f"[bold]Orchestration[/bold] {outcome}  "
		f"[dim]({completed} completed, {failed} failed, "
		f"{success_rate(completed, failed)}%, {format_duration(result.total_execution_time)})[/dim]"
	)

	for execution in result.completed_tasks + result.failed_tasks:
		task = execution.sub_task
		branch = tree.add(
			f"{status_icon(execution.status)} [bold]{task.id}[/bold] "
			f"{mode_emoji(task.mode)} {task.mode} [dim]- {escape(task.description)}[/dim]"
		)
		if execution.retry_count:
			branch.add(f"[yellow]retries: {execution.retry_count}[/yellow]")
		if execution.error:
			branch.add(f"[red]{escape(truncate(execution.error, 100))}[/red]")
		elif execution.result:
			branch.add(f"[dim]{escape(truncate(execution.result, 100))}[/dim]")

	for execution in result.skipped_tasks:
		task = execution.sub_task
		tree.add(
			f"[dim][-] {task.id} {task.mode} - skipped, waiting on "
			f"{', '.join(task.dependencies)}[/dim]"
		)

	console.print(tree)


def render_orchestration_report(result: OrchestrationResult, console: Optional[Console] = None) -> None:
	"""Render the Markdown report inside a panel."""
	console = console or Console()
	border = "green" if result.success else "red"
	console.print(Panel(Markdown(result.final_result), title="Report", border_style=border))
