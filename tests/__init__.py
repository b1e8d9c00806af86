"""Tests for mode-orchestrator."""
