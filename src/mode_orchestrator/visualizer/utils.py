"""Shared utilities for visualizer views."""

from ..orchestrator.engine import ExecutionStatus


def format_duration(milliseconds: float | None) -> str:
	"""Format a duration given in ms for display. e.g. '45ms', '1.2s', '2m 3s'."""
	if milliseconds is None:
		return "-"
	seconds = milliseconds / 1000
	if seconds < 0.001:
		return "<1ms"
	if seconds < 1.0:
		return f"{seconds * 1000:.0f}ms"
	if seconds < 60.0:
		return f"{seconds:.1f}s"
	minutes = int(seconds // 60)
	secs = seconds % 60
	return f"{minutes}m {secs:.0f}s"


def confidence_style(confidence: float) -> str:
	"""Rich style for a 0-100 confidence value."""
	if confidence >= 70:
		return "green"
	if confidence >= 40:
		return "yellow"
	return "red"


STATUS_ICONS = {
	ExecutionStatus.PENDING: "[dim][ ][/dim]",
	ExecutionStatus.RUNNING: "[yellow][~][/yellow]",
	ExecutionStatus.COMPLETED: "[green]\\[x][/green]",
	ExecutionStatus.FAILED: "[red][!][/red]",
}


def status_icon(status: ExecutionStatus) -> str:
	return STATUS_ICONS.get(status, "[ ]")
