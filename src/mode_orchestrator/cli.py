"""CLI for mode-orchestrator: analyze, orchestrate, context, detect, prepare, modes and serve commands."""

import argparse
import asyncio
import json
import sys
from dataclasses import asdict
from pathlib import Path

from rich.console import Console

from .analyzer import analyze_task
from .boomerang import create_new_task_instruction, detect_boomerang_task
from .config import Config, get_config
from .context.generator import ContextGenerationConfig, generate_optimized_context, validate_context_generation
from .context.strategies import DEFAULT_CONTEXT_CONFIG
from .errors import ModeLoaderError, PromptInputError
from .logging_config import setup_logging
from .modes import CustomModeLoader
from .modes.registry import BUILTIN_MODES, MODE_DESCRIPTIONS, mode_emoji, mode_token_limit
from .orchestrator import AutoOrchestrator
from .prompt import PromptInput, prepare_prompt

console = Console()


def _load_custom_modes(config: Config) -> dict[str, str]:
	try:
		return CustomModeLoader(config.modes_dir).load_custom_prompts()
	except ModeLoaderError as e:
		console.print(f"[yellow]Warning:[/yellow] {e} ({e.file_path})")
		return {}


def cmd_analyze(args: argparse.Namespace) -> None:
	"""Analyze a task and show complexity, mode and sub-tasks."""
	from .visualizer import render_task_analysis

	config = get_config()
	if args.agent:
		config.use_agent = True
	executor = config.create_executor()

	analysis = asyncio.run(analyze_task(
		args.task,
		enable_dynamic=args.dynamic,
		custom_modes=_load_custom_modes(config),
		agent=executor.runner,
	))

	if args.json:
		print(json.dumps(analysis.to_dict(), indent=2, ensure_ascii=False))
	else:
		render_task_analysis(analysis, console=console)


def cmd_orchestrate(args: argparse.Namespace) -> None:
	"""Run a task through the orchestrator."""
	from .visualizer import render_orchestration_report, render_orchestration_tree

	config = get_config()
	if args.agent:
		config.use_agent = True

	orchestrator = AutoOrchestrator(
		config=config.orchestration_config(
			retry_attempts=args.retries,
			enable_auto_context=False if args.no_context else None,
		),
		executor=config.create_executor(simulated_delay_seconds=args.delay),
		custom_modes=_load_custom_modes(config),
	)
	result = asyncio.run(orchestrator.orchestrate_task(args.task))

	if args.json:
		print(json.dumps(result.to_dict(), indent=2, ensure_ascii=False))
	else:
		render_orchestration_tree(result, console=console)
		render_orchestration_report(result, console=console)

	if not result.success:
		sys.exit(1)


def cmd_context(args: argparse.Namespace) -> None:
	"""Build a context digest from result files (or stdin)."""
	from .visualizer import render_generated_context

	if args.file:
		results = [Path(path).read_text(encoding="utf-8") for path in args.file]
	else:
		results = [sys.stdin.read()]

	config = get_config()
	max_tokens = args.max_tokens or mode_token_limit(args.mode)
	generated = generate_optimized_context(
		results,
		args.mode,
		args.goal,
		config=ContextGenerationConfig(max_tokens=max_tokens),
		enable_debug=args.debug,
		strategy=args.strategy or config.context_strategy,
	)
	validation = validate_context_generation(generated, max_tokens)

	if args.json:
		print(json.dumps({
			"optimized_context": generated.optimized_context,
			"metadata": generated.metadata.to_dict(),
			"is_valid": validation.is_valid,
			"issues": validation.issues,
		}, indent=2, ensure_ascii=False))
	else:
		render_generated_context(generated, console=console, validation=validation)


def cmd_detect(args: argparse.Namespace) -> None:
	"""Check text for a /<mode> boomerang trigger."""
	config = get_config()
	trigger = detect_boomerang_task(args.text, _load_custom_modes(config))
	if trigger is None:
		console.print("[dim]No boomerang trigger found.[/dim]")
		sys.exit(1)

	if args.json:
		print(json.dumps(asdict(trigger), indent=2, ensure_ascii=False))
	else:
		console.print(create_new_task_instruction(trigger), markup=False)


def cmd_prepare(args: argparse.Namespace) -> None:
	"""Prepare the prompt file handed to the agent."""
	config = get_config()
	if args.auto_orchestrate:
		config.auto_orchestration = True

	try:
		prepared = asyncio.run(prepare_prompt(
			PromptInput(prompt=args.prompt or "", prompt_file=args.prompt_file or ""),
			config,
		))
	except PromptInputError as e:
		console.print(f"[red]Error:[/red] {e}")
		sys.exit(1)

	console.print(f"[bold]Prompt file:[/bold] {prepared.path}")
	console.print(f"[bold]Source:[/bold] {prepared.type}")
	if prepared.is_boomerang_task and prepared.boomerang_config:
		console.print(f"[bold]Boomerang:[/bold] {prepared.boomerang_config.target_mode} mode")
	if prepared.is_auto_orchestrated:
		console.print("[bold]Auto-orchestrated:[/bold] yes")


def cmd_modes(args: argparse.Namespace) -> None:
	"""List built-in modes and any custom instructions."""
	from rich.table import Table

	config = get_config()
	custom = _load_custom_modes(config)

	table = Table(title="Modes")
	table.add_column("Mode", style="cyan")
	table.add_column("Token Limit", justify="right")
	table.add_column("Custom", justify="center")
	table.add_column("Description")

	for mode in BUILTIN_MODES:
		table.add_row(
			f"{mode_emoji(mode)} {mode}",
			str(mode_token_limit(mode)),
			"[green]yes[/green]" if mode in custom else "[dim]no[/dim]",
			MODE_DESCRIPTIONS[mode],
		)

	console.print(table)
	console.print(f"[dim]Custom modes directory: {config.modes_dir}[/dim]")


def cmd_serve(args: argparse.Namespace) -> None:
	"""Run the MCP server (stdio transport)."""
	from .server import mcp
	mcp.run()


def main() -> None:
	"""CLI entry point."""
	parser = argparse.ArgumentParser(
		prog="mode-orchestrator",
		description="Task analysis, mode routing and context-aware orchestration for coding agents",
	)
	parser.add_argument("--log-level", type=str, default=None, help="DEBUG, INFO, WARNING or ERROR (default: $LOG_LEVEL or INFO)")
	subparsers = parser.add_subparsers(dest="command")

	# analyze
	analyze_parser = subparsers.add_parser("analyze", help="Analyze task complexity and recommend a mode")
	analyze_parser.add_argument("task", help="Task description")
	analyze_parser.add_argument("--dynamic", action="store_true", help="Let the agent decompose complex tasks")
	analyze_parser.add_argument("--agent", action="store_true", help="Use the Claude CLI as the agent")
	analyze_parser.add_argument("--json", action="store_true", help="Print JSON instead of tables")
	analyze_parser.set_defaults(func=cmd_analyze)

	# orchestrate
	orchestrate_parser = subparsers.add_parser("orchestrate", help="Analyze and run a task")
	orchestrate_parser.add_argument("task", help="Task description")
	orchestrate_parser.add_argument("--retries", type=int, default=None, help="Retry budget per sub-task")
	orchestrate_parser.add_argument("--no-context", action="store_true", help="Do not pass context digests between sub-tasks")
	orchestrate_parser.add_argument("--delay", type=float, default=None, help="Simulated seconds per complexity point")
	orchestrate_parser.add_argument("--agent", action="store_true", help="Run sub-tasks through the Claude CLI")
	orchestrate_parser.add_argument("--json", action="store_true", help="Print JSON instead of the report")
	orchestrate_parser.set_defaults(func=cmd_orchestrate)

	# context
	context_parser = subparsers.add_parser("context", help="Build a context digest from prior results")
	context_parser.add_argument("--mode", default="code", help="Mode of the next task (default: code)")
	context_parser.add_argument("--goal", default="", help="Description of the next task")
	context_parser.add_argument("--file", action="append", help="Result file (repeatable; default: stdin)")
	context_parser.add_argument("--max-tokens", type=int, default=None, help="Token budget (default: mode limit)")
	context_parser.add_argument(
		"--strategy",
		choices=sorted(DEFAULT_CONTEXT_CONFIG.strategies),
		default=None,
		help="Context strategy (default: configured strategy)",
	)
	context_parser.add_argument("--debug", action="store_true", help="Show filtering steps")
	context_parser.add_argument("--json", action="store_true", help="Print JSON")
	context_parser.set_defaults(func=cmd_context)

	# detect
	detect_parser = subparsers.add_parser("detect", help="Detect a /<mode> boomerang trigger")
	detect_parser.add_argument("text", help="Prompt text")
	detect_parser.add_argument("--json", action="store_true", help="Print JSON")
	detect_parser.set_defaults(func=cmd_detect)

	# prepare
	prepare_parser = subparsers.add_parser("prepare", help="Prepare the agent prompt file")
	prepare_parser.add_argument("--prompt", type=str, default=None, help="Inline prompt")
	prepare_parser.add_argument("--prompt-file", type=str, default=None, help="Path to a prompt file")
	prepare_parser.add_argument("--auto-orchestrate", action="store_true", help="Orchestrate complex tasks")
	prepare_parser.set_defaults(func=cmd_prepare)

	# modes
	modes_parser = subparsers.add_parser("modes", help="List modes")
	modes_parser.set_defaults(func=cmd_modes)

	# serve
	serve_parser = subparsers.add_parser("serve", help="Run MCP server (stdio)")
	serve_parser.set_defaults(func=cmd_serve)

	args = parser.parse_args()

	if not args.command:
		parser.print_help()
		sys.exit(1)

	config = get_config()
	setup_logging(args.log_level, config.log_dir)

	args.func(args)


if __name__ == "__main__":
	main()
