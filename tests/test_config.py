"""Tests for the configuration system."""

import os
from pathlib import Path
from unittest.mock import patch

from mode_orchestrator import config as config_module
from mode_orchestrator.config import Config, _apply_env_overrides, _apply_toml, get_config, load_config, reset_config
from mode_orchestrator.executor import ClaudeCLIRunner


def test_config_defaults():
	"""Config should have sensible defaults."""
	config = Config()
	assert config.config_dir.is_absolute()
	assert config.data_dir.is_absolute()
	assert config.log_dir == config.data_dir / "logs"
	assert config.modes_dir == Path(".claude/modes")
	assert config.dynamic_decomposition is True
	assert config.auto_orchestration is False
	assert config.context_strategy == "balanced"
	assert config.retry_attempts == 2
	assert config.use_agent is False


def test_config_env_overrides():
	"""Environment variables should override defaults."""
	config = Config()
	with patch.dict(os.environ, {
		"MODE_ORCHESTRATOR_DATA_DIR": "/tmp/test-data",
		"MODE_ORCHESTRATOR_MODES_DIR": "/tmp/test-modes",
	}):
		config = _apply_env_overrides(config)
		assert config.data_dir == Path("/tmp/test-data")
		assert config.modes_dir == Path("/tmp/test-modes")
		# Derived paths should be recomputed
		assert config.log_dir == Path("/tmp/test-data/logs")


def test_dynamic_decomposition_env_flag():
	"""false/0 disable dynamic decomposition, anything else keeps it on."""
	for value, expected in (("false", False), ("0", False), ("FALSE", False), ("true", True), ("1", True)):
		with patch.dict(os.environ, {"CLAUDE_DYNAMIC_DECOMPOSITION": value}):
			assert _apply_env_overrides(Config()).dynamic_decomposition is expected


def test_auto_orchestration_requires_exact_one():
	with patch.dict(os.environ, {"CLAUDE_AUTO_ORCHESTRATION": "1"}):
		assert _apply_env_overrides(Config()).auto_orchestration is True
	with patch.dict(os.environ, {"CLAUDE_AUTO_ORCHESTRATION": "true"}):
		assert _apply_env_overrides(Config()).auto_orchestration is False


def test_config_ensure_dirs(tmp_path: Path):
	"""ensure_dirs should create all required directories."""
	config = Config(
		config_dir=tmp_path / "config",
		data_dir=tmp_path / "data",
	)
	assert not config.config_dir.exists()

	config.ensure_dirs()

	assert config.config_dir.exists()
	assert config.data_dir.exists()
	assert config.log_dir.exists()


def test_toml_overrides(tmp_path: Path):
	"""config.toml values apply to init fields only."""
	config_dir = tmp_path / "config"
	config_dir.mkdir()
	(config_dir / "config.toml").write_text(
		'retry_attempts = 5\n'
		'context_strategy = "minimal"\n'
		'modes_dir = "~/modes"\n'
		'log_dir = "/ignored"\n'
		'unknown_key = 1\n'
	)

	config = _apply_toml(Config(config_dir=config_dir, data_dir=tmp_path / "data"))

	assert config.retry_attempts == 5
	assert config.context_strategy == "minimal"
	assert config.modes_dir == Path(os.path.expanduser("~/modes"))
	assert config.log_dir == tmp_path / "data" / "logs"
	assert not hasattr(config, "unknown_key")


def test_load_config_precedence(tmp_path: Path):
	"""Environment beats config.toml, which beats defaults."""
	config_dir = tmp_path / "config"
	config_dir.mkdir()
	(config_dir / "config.toml").write_text("dynamic_decomposition = true\nretry_attempts = 4\n")

	with patch.dict(os.environ, {
		"MODE_ORCHESTRATOR_CONFIG_DIR": str(config_dir),
		"MODE_ORCHESTRATOR_DATA_DIR": str(tmp_path / "data"),
		"CLAUDE_DYNAMIC_DECOMPOSITION": "false",
	}):
		config = load_config()

	assert config.retry_attempts == 4
	assert config.dynamic_decomposition is False
	assert config.data_dir.exists()


def test_get_config_is_cached(tmp_path: Path):
	with patch.dict(os.environ, {
		"MODE_ORCHESTRATOR_CONFIG_DIR": str(tmp_path / "config"),
		"MODE_ORCHESTRATOR_DATA_DIR": str(tmp_path / "data"),
	}):
		reset_config()
		try:
			assert get_config() is get_config()
		finally:
			reset_config()
	assert config_module._config is None


class TestDerivedObjects:
	def test_orchestration_config_uses_fields(self, config: Config):
		config.retry_attempts = 1
		config.context_strategy = "minimal"
		orchestration = config.orchestration_config()
		assert orchestration.retry_attempts == 1
		assert orchestration.context_strategy == "minimal"
		assert orchestration.enable_dynamic is config.dynamic_decomposition

	def test_orchestration_config_ignores_none_overrides(self, config: Config):
		orchestration = config.orchestration_config(retry_attempts=None, enable_auto_context=False)
		assert orchestration.retry_attempts == config.retry_attempts
		assert orchestration.enable_auto_context is False

	def test_create_executor_simulated_by_default(self, config: Config):
		executor = config.create_executor()
		assert executor.is_simulated
		assert executor.simulated_delay_seconds == 0

	def test_create_executor_delay_override(self, config: Config):
		assert config.create_executor(simulated_delay_seconds=2.5).simulated_delay_seconds == 2.5

	def test_create_executor_with_agent(self, config: Config):
		config.use_agent = True
		config.agent_executable = "/opt/bin/claude"
		executor = config.create_executor()
		assert isinstance(executor.runner, ClaudeCLIRunner)
		assert executor.runner.executable == "/opt/bin/claude"
		assert executor.runner.timeout == config.timeout_minutes * 60
