"""Shared fixtures."""

from pathlib import Path

import pytest

from mode_orchestrator.config import Config


@pytest.fixture
def config(tmp_path: Path) -> Config:
	"""Config rooted in tmp_path with instant simulated execution."""
	return Config(
		config_dir=tmp_path / "config",
		data_dir=tmp_path / "data",
		modes_dir=tmp_path / "modes",
		work_dir=tmp_path / "work",
		simulated_delay_seconds=0,
	)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
	for key in (
		"CLAUDE_DYNAMIC_DECOMPOSITION",
		"CLAUDE_AUTO_ORCHESTRATION",
		"MODE_ORCHESTRATOR_USE_AGENT",
		"MODE_ORCHESTRATOR_CONFIG_DIR",
		"MODE_ORCHESTRATOR_DATA_DIR",
		"MODE_ORCHESTRATOR_MODES_DIR",
		"MODE_ORCHESTRATOR_WORK_DIR",
	):
		monkeypatch.delenv(key, raising=False)
