"""Rich views for generated context digests."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..context.generator import ContextValidation
from ..context.models import GeneratedContext


def render_generated_context(
	generated: GeneratedContext,
	console: Optional[Console] = None,
	validation: Optional[ContextValidation] = None,
) -> None:
	"""Render a digest, its metadata and (in debug mode) the filtering steps."""
	console = console or Console()
	metadata = generated.metadata

	table = Table(title="Context Metadata", show_header=False)
	table.add_column("Field", style="cyan")
	table.add_column("Value")
	table.add_row("Items analyzed", str(metadata.original_item_count))
	table.add_row("Items kept", str(metadata.filtered_item_count))
	table.add_row("Estimated tokens", str(metadata.estimated_tokens))
	table.add_row("Compression ratio", f"{metadata.compression_ratio:.3f}")
	table.add_row("Included types", ", ".join(metadata.included_types) or "-")
	console.print(table)

	console.print(Panel(Text(generated.optimized_context or "(empty)"), title="Digest", border_style="cyan"))

	if generated.debug_info:
		steps = "\n".join(f"{i}. {escape(step)}" for i, step in enumerate(generated.debug_info.filtering_steps, 1))
		console.print(Panel(steps, title="Filtering Steps", border_style="dim"))

	if validation is not None and not validation.is_valid:
		lines = [f"[red]- {escape(issue)}[/red]" for issue in validation.issues]
		lines += [f"[yellow]> {suggestion}[/yellow]" for suggestion in validation.suggestions]
		console.print(Panel("\n".join(lines), title="Validation", border_style="red"))
