"""Visualizer package - Rich terminal views for analyses, runs and context digests."""

from .analysis import render_task_analysis
from .context import render_generated_context
from .orchestration import render_orchestration_report, render_orchestration_tree

__all__ = [
	"render_task_analysis",
	"render_generated_context",
	"render_orchestration_report",
	"render_orchestration_tree",
]
