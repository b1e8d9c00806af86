"""Rich views for task analysis results."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from ..analyzer import TaskAnalysisResult
from ..modes.registry import mode_emoji
from .utils import confidence_style


def render_task_analysis(analysis: TaskAnalysisResult, console: Optional[Console] = None) -> None:
	"""Render complexity, mode recommendation and sub-tasks."""
	console = console or Console()

	complexity = analysis.complexity
	recommendation = analysis.recommended_mode
	level_style = "magenta" if complexity.is_complex else "green"
	style = confidence_style(recommendation.confidence)

	lines = [
		f"[bold]Complexity:[/bold] [{level_style}]{complexity.level.value}[/{level_style}] (score {complexity.score})",
		f"[bold]Recommended mode:[/bold] {mode_emoji(recommendation.mode)} {recommendation.mode} "
		f"[{style}]({recommendation.confidence:.0f}%)[/{style}]",
		f"[dim]{escape(recommendation.reasoning)}[/dim]",
		f"[bold]Requires orchestration:[/bold] {'yes' if analysis.requires_orchestration else 'no'}",
	]
	if analysis.used_dynamic_decomposition:
		lines.append("[bold]Decomposition:[/bold] dynamic (agent)")

	if complexity.reasons:
		lines.append("")
		lines.append("[bold]Reasons:[/bold]")
		for reason in complexity.reasons:
			lines.append(f"  - {reason}")

	console.print(Panel("\n".join(lines), title="Task Analysis", border_style="cyan"))

	if not analysis.sub_tasks:
		return

	table = Table(title="Sub-tasks")
	table.add_column("ID", style="cyan")
	table.add_column("Mode")
	table.add_column("Priority", justify="right")
	table.add_column("Complexity", justify="right")
	table.add_column("Depends on")
	table.add_column("Description")

	for task in analysis.sub_tasks:
		table.add_row(
			task.id,
			f"{mode_emoji(task.mode)} {task.mode}",
			str(task.priority),
			str(task.estimated_complexity),
			", ".join(task.dependencies) or "-",
			escape(task.description),
		)

	console.print(table)
