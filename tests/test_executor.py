"""Tests for the agent runner boundary and the task executor."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from mode_orchestrator.errors import AgentRunnerError, AgentTimeoutError
from mode_orchestrator.executor import ClaudeCLIRunner, TaskExecutor, parse_agent_output


def _mock_process(stdout: bytes = b"", stderr: bytes = b"", returncode: int = 0) -> MagicMock:
	process = MagicMock()
	process.communicate = AsyncMock(return_value=(stdout, stderr))
	process.returncode = returncode
	process.wait = AsyncMock(return_value=returncode)
	return process


class TestParseAgentOutput:
	def test_entry_list(self):
		raw = json.dumps([
			{"type": "tool_use", "name": "Read"},
			{"type": "text", "text": "Hello "},
			{"type": "text", "text": "world"},
		])
		assert parse_agent_output(raw) == "Hello world"

	def test_result_object(self):
		assert parse_agent_output(json.dumps({"type": "result", "result": "done"})) == "done"

	def test_raw_text(self):
		assert parse_agent_output("  plain output \n") == "plain output"

	def test_other_json_is_raw(self):
		assert parse_agent_output('{"other": 1}') == '{"other": 1}'


class TestClaudeCLIRunner:
	def test_build_command(self):
		runner = ClaudeCLIRunner(executable="claude", extra_args=["--model", "sonnet"])
		assert runner.build_command() == ["claude", "--print", "--output-format", "json", "--model", "sonnet"]
		assert runner.build_command(max_turns=1, allowed_tools=["a", "b"]) == [
			"claude", "--print", "--output-format", "json",
			"--max-turns", "1", "--allowedTools", "a,b",
			"--model", "sonnet",
		]

	@pytest.mark.asyncio
	async def test_run_sends_prompt_on_stdin(self):
		process = _mock_process(stdout=json.dumps({"result": "all good"}).encode())
		runner = ClaudeCLIRunner(cwd="/tmp")

		with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)) as create:
			result = await runner.run("do the thing", max_turns=2)

		assert result == "all good"
		process.communicate.assert_awaited_once_with(b"do the thing")
		args, kwargs = create.call_args
		assert args[:2] == ("claude", "--print")
		assert "--max-turns" in args
		assert kwargs["cwd"] == "/tmp"

	@pytest.mark.asyncio
	async def test_nonzero_exit(self):
		process = _mock_process(stderr=b"auth failed", returncode=1)
		with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
			with pytest.raises(AgentRunnerError, match="auth failed"):
				await ClaudeCLIRunner().run("prompt")

	@pytest.mark.asyncio
	async def test_empty_output(self):
		process = _mock_process(stdout=b"[]")
		with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
			with pytest.raises(AgentRunnerError, match="no output"):
				await ClaudeCLIRunner().run("prompt")

	@pytest.mark.asyncio
	async def test_missing_executable(self):
		with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError())):
			with pytest.raises(AgentRunnerError, match="not found"):
				await ClaudeCLIRunner(executable="nope").run("prompt")

	@pytest.mark.asyncio
	async def test_timeout_kills_process(self):
		async def hang(_input):
			await asyncio.sleep(10)

		process = _mock_process()
		process.communicate = hang
		with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
			with pytest.raises(AgentTimeoutError):
				await ClaudeCLIRunner(timeout=0.01).run("prompt")

		process.kill.assert_called_once()
		process.wait.assert_awaited_once()


class TestTaskExecutor:
	@pytest.mark.asyncio
	async def test_simulated(self):
		executor = TaskExecutor(simulated_delay_seconds=0)
		assert executor.is_simulated
		result = await executor.execute("Write docs", "ask", "instruction", estimated_complexity=3)
		assert result == "Completed task 'Write docs' in ask mode."

	@pytest.mark.asyncio
	async def test_simulated_delay_scales_with_complexity(self):
		executor = TaskExecutor(simulated_delay_seconds=0.5)
		with patch("mode_orchestrator.executor.asyncio.sleep", AsyncMock()) as sleep:
			await executor.execute("x", "code", "instruction", estimated_complexity=4)
		sleep.assert_awaited_once_with(2.0)

	@pytest.mark.asyncio
	async def test_runner_receives_instruction(self):
		runner = MagicMock()
		runner.run = AsyncMock(return_value="agent says hi")
		executor = TaskExecutor(runner=runner)

		assert not executor.is_simulated
		assert await executor.execute("x", "code", "full instruction") == "agent says hi"
		runner.run.assert_awaited_once_with("full instruction")

	def test_describe(self):
		assert TaskExecutor(simulated_delay_seconds=0.2).describe() == {
			"runner": None,
			"simulated": True,
			"simulated_delay_seconds": 0.2,
		}


class TestUndecodableOutput:
	@pytest.mark.asyncio
	async def test_invalid_utf8_is_replaced(self):
		process = _mock_process(stdout=b"\xff\xfe not utf8", stderr=b"")
		with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
			result = await ClaudeCLIRunner().run("prompt")
		assert result.endswith("not utf8")
		assert "�" in result

	@pytest.mark.asyncio
	async def test_invalid_utf8_on_stderr(self):
		process = _mock_process(stderr=b"\xff broken", returncode=2)
		with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=process)):
			with pytest.raises(AgentRunnerError, match="broken"):
				await ClaudeCLIRunner().run("prompt")

	@pytest.mark.asyncio
	async def test_spawn_permission_error(self):
		with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=PermissionError("denied"))):
			with pytest.raises(AgentRunnerError, match="Could not start agent CLI"):
				await ClaudeCLIRunner(executable="/not/executable").run("prompt")
