"""Configuration system using platformdirs for cross-platform paths."""

import os
import tempfile
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Optional

import platformdirs

from .context.strategies import BALANCED
from .executor import ClaudeCLIRunner, TaskExecutor
from .orchestrator.engine import OrchestrationConfig

APP_NAME = "mode-orchestrator"
APP_AUTHOR = "mode-orchestrator"

_FALSE_VALUES = ("false", "0", "no", "off")


@dataclass
class Config:
	"""Central configuration with XDG/platform conventions."""

	config_dir: Path = field(default_factory=lambda: Path(platformdirs.user_config_dir(APP_NAME)))
	data_dir: Path = field(default_factory=lambda: Path(platformdirs.user_data_dir(APP_NAME)))

	# Derived paths
	log_dir: Path = field(init=False)

	# User-configurable
	modes_dir: Path = field(default_factory=lambda: Path(".claude/modes"))
	work_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()) / APP_NAME)

	dynamic_decomposition: bool = True
	auto_orchestration: bool = False
	context_strategy: str = BALANCED

	max_concurrent_tasks: int = 3
	timeout_minutes: float = 30
	retry_attempts: int = 2
	enable_auto_context: bool = True
	max_context_tokens: int = 1500
	preserve_all_results: bool = True
	simulated_delay_seconds: float = 1.0

	use_agent: bool = False
	agent_executable: str = "claude"

	def __post_init__(self) -> None:
		self.log_dir = self.data_dir / "logs"

	def ensure_dirs(self) -> None:
		"""Create all required directories."""
		self.config_dir.mkdir(parents=True, exist_ok=True)
		self.data_dir.mkdir(parents=True, exist_ok=True)
		self.log_dir.mkdir(parents=True, exist_ok=True)

	def orchestration_config(self, **overrides) -> OrchestrationConfig:
		"""OrchestrationConfig built from this config, with optional per-call overrides."""
		values = {
			"max_concurrent_tasks": self.max_concurrent_tasks,
			"timeout_minutes": self.timeout_minutes,
			"retry_attempts": self.retry_attempts,
			"enable_auto_context": self.enable_auto_context,
			"max_context_tokens": self.max_context_tokens,
			"preserve_all_results": self.preserve_all_results,
			"enable_dynamic": self.dynamic_decomposition,
			"context_strategy": self.context_strategy,
		}
		values.update({k: v for k, v in overrides.items() if v is not None})
		return OrchestrationConfig(**values)

	def create_executor(self, simulated_delay_seconds: Optional[float] = None) -> TaskExecutor:
		"""Agent-backed executor when use_agent is set, simulated otherwise."""
		runner = None
		if self.use_agent:
			runner = ClaudeCLIRunner(
				executable=self.agent_executable,
				timeout=self.timeout_minutes * 60 if self.timeout_minutes > 0 else 600,
			)
		delay = self.simulated_delay_seconds if simulated_delay_seconds is None else simulated_delay_seconds
		return TaskExecutor(runner=runner, simulated_delay_seconds=delay)


def _env_flag(value: str) -> bool:
	return value.strip().lower() not in _FALSE_VALUES


def _apply_env_overrides(config: Config) -> Config:
	"""Apply MODE_ORCHESTRATOR_* and CLAUDE_* environment variable overrides."""
	env_map = {
		"MODE_ORCHESTRATOR_CONFIG_DIR": "config_dir",
		"MODE_ORCHESTRATOR_DATA_DIR": "data_dir",
		"MODE_ORCHESTRATOR_MODES_DIR": "modes_dir",
		"MODE_ORCHESTRATOR_WORK_DIR": "work_dir",
	}
	for env_key, attr in env_map.items():
		val = os.getenv(env_key)
		if val:
			setattr(config, attr, Path(val))

	dynamic = os.getenv("CLAUDE_DYNAMIC_DECOMPOSITION")
	if dynamic is not None:
		config.dynamic_decomposition = _env_flag(dynamic)

	# Only the exact value "1" turns auto-orchestration on
	auto = os.getenv("CLAUDE_AUTO_ORCHESTRATION")
	if auto is not None:
		config.auto_orchestration = auto.strip() == "1"

	use_agent = os.getenv("MODE_ORCHESTRATOR_USE_AGENT")
	if use_agent is not None:
		config.use_agent = _env_flag(use_agent)

	# Recompute derived paths after overrides
	config.__post_init__()
	return config


def _apply_toml(config: Config) -> Config:
	"""Apply config.toml overrides if file exists."""
	toml_path = config.config_dir / "config.toml"
	if not toml_path.exists():
		return config

	with open(toml_path, "rb") as f:
		data = tomllib.load(f)

	path_fields = {"config_dir", "data_dir", "modes_dir", "work_dir"}
	settable = {f.name for f in fields(config) if f.init}
	for key, val in data.items():
		if key in settable:
			if key in path_fields:
				setattr(config, key, Path(os.path.expanduser(val)))
			else:
				setattr(config, key, val)

	# Recompute derived paths after toml overrides
	config.__post_init__()
	return config


def load_config() -> Config:
	"""Load config with precedence: env vars > config.toml > defaults."""
	config = Config()
	config = _apply_env_dirs(config)
	config = _apply_toml(config)
	config = _apply_env_overrides(config)
	config.ensure_dirs()
	return config


def _apply_env_dirs(config: Config) -> Config:
	"""Honor a config dir override before looking for config.toml in it."""
	config_dir = os.getenv("MODE_ORCHESTRATOR_CONFIG_DIR")
	if config_dir:
		config.config_dir = Path(config_dir)
	return config


# Singleton
_config: Config | None = None


def get_config() -> Config:
	"""Get or create the global config instance."""
	global _config
	if _config is None:
		_config = load_config()
	return _config


def reset_config() -> None:
	"""Drop the cached config so the next get_config() reloads it."""
	global _config
	_config = None
