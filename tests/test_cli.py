"""Tests for the CLI entry point and its subcommands."""

import json
from unittest.mock import MagicMock, patch

import pytest
import yaml
from click.testing import CliRunner

from conftest import FakeDesktop, FakeElement
from desktop_agent.cli import CliState, main
from desktop_agent.desktop import CommandOutput
from desktop_agent.llm import LLMResponse, ModelUnavailable, ToolCall


@pytest.fixture()
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.dump({
        "model": "litellm/gpt-4o",
        "api_base": "http://localhost:4000",
        "output_dir": str(tmp_path),
        "draw_pacing": 0.0,
    }))
    return path


@pytest.fixture()
def desktop():
    return FakeDesktop()


@pytest.fixture()
def invoke(config_file, desktop):
    runner = CliRunner()

    def _invoke(*args, **kwargs):
        return runner.invoke(
            main,
            ["--config", str(config_file), *args],
            obj=CliState(desktop=desktop),
            catch_exceptions=False,
            **kwargs,
        )

    return _invoke


@pytest.fixture()
def mock_llm_client():
    """Mock LLMClient to prevent real network calls in CLI tests."""
    with patch("desktop_agent.cli.LLMClient") as mock_cls:
        client = mock_cls.return_value
        client.model = "litellm/gpt-4o"
        client.verify_connection.return_value = None
        client.send_message_stream.side_effect = lambda *a, **kw: iter([])
        client.last_response = LLMResponse(content="Done.")
        yield client


class TestMainGroup:

    def test_help_lists_commands(self):
        result = CliRunner().invoke(main, ["--help"])
        assert result.exit_code == 0
        for command in ("screenshot", "click", "find", "calc", "chat", "agent", "artist", "demo"):
            assert command in result.output

    def test_version(self):
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "desktop-agent" in result.output

    def test_invalid_config_exits_1(self, tmp_path, desktop):
        bad = tmp_path / "bad.yaml"
        bad.write_text(yaml.dump({"max_tool_rounds": 0}))
        result = CliRunner().invoke(main, ["--config", str(bad), "calc", "1+1"], obj=CliState(desktop=desktop))
        assert result.exit_code == 1

    def test_missing_config_file_uses_defaults(self, tmp_path, desktop):
        result = CliRunner().invoke(
            main, ["--config", str(tmp_path / "none.yaml"), "--json", "calc", "1+1"], obj=CliState(desktop=desktop)
        )
        assert result.exit_code == 0


class TestDirectCommands:

    def test_calc_json(self, invoke):
        result = invoke("--json", "calc", "2+2")
        assert result.exit_code == 0
        assert json.loads(result.output) == {
            "success": True,
            "message": "2+2 = 4",
            "result": "4",
            "expression": "2+2",
            "method": "programmatic",
        }

    def test_calc_joins_words(self, invoke):
        result = invoke("--json", "calc", "2", "*", "(3", "+", "4)")
        assert json.loads(result.output)["result"] == "14"

    def test_calc_invalid_expression_exits_1(self, invoke):
        assert invoke("calc", "2 +* 3").exit_code == 1

    def test_click_missing_element_exits_1(self, invoke):
        result = invoke("--json", "click", "name:DoesNotExist")
        assert result.exit_code == 1
        payload = json.loads(result.output)
        assert payload["success"] is False
        assert "name:DoesNotExist" in payload["error"]

    def test_click_existing_element(self, invoke, desktop):
        desktop.add("name:Seven", FakeElement("Seven"))
        result = invoke("click", "name:Seven", "--action", "double_click")
        assert result.exit_code == 0
        assert desktop.log == [("double_click", "Seven")]

    def test_find_with_no_matches(self, invoke):
        result = invoke("--json", "find", "role:Button")
        assert result.exit_code == 0
        payload = json.loads(result.output)
        assert payload["count"] == 0
        assert payload["elements"] == []

    def test_find_limit_out_of_range_exits_1(self, invoke):
        assert invoke("find", "role:Button", "--limit", "0").exit_code == 1

    def test_type(self, invoke, desktop):
        result = invoke("type", "hello", "world", "--clipboard")
        assert result.exit_code == 0
        assert desktop.log == [("type", "hello world", True)]

    def test_open(self, invoke, desktop):
        assert invoke("open", "notepad").exit_code == 0
        assert desktop.log == [("open_app", "notepad")]

    def test_run(self, invoke, desktop):
        result = invoke("--json", "run", "echo", "hi", "--timeout", "5")
        assert result.exit_code == 0
        assert json.loads(result.output)["exit_code"] == 0
        assert desktop.log[0][2] == 5

    def test_run_output_with_brackets(self, invoke, desktop):
        desktop.command_output = CommandOutput(0, "[/x] done\n", "[bold]warn")
        result = invoke("run", "echo", "x")
        assert result.exit_code == 0
        assert "[/x] done" in result.output
        assert "[bold]warn" in result.output

    def test_calc_error_with_brackets_exits_1(self, invoke):
        result = invoke("calc", "[/x]")
        assert result.exit_code == 1
        assert "[/x]" in result.output

    def test_screenshot_with_ocr(self, invoke):
        result = invoke("--json", "screenshot", "--ocr")
        assert json.loads(result.output)["extracted_text"] == "Hello World from OCR"

    def test_ocr_missing_file_exits_1(self, invoke, tmp_path):
        assert invoke("ocr", str(tmp_path / "nope.png")).exit_code == 1

    def test_web(self, invoke, desktop):
        assert invoke("web", "example.com").exit_code == 0
        assert desktop.log == [("open_url", "https://example.com", None)]


class TestModelCommands:

    def test_chat_plain_answer(self, invoke, mock_llm_client):
        result = invoke("chat", "hello")
        assert result.exit_code == 0
        mock_llm_client.verify_connection.assert_called_once()
        messages = mock_llm_client.send_message_stream.call_args[0][0]
        assert messages[0]["role"] == "system"
        assert messages[-1] == {"role": "user", "content": "hello"}

    def test_chat_runs_requested_tool(self, invoke, mock_llm_client, desktop):
        mock_llm_client.last_response = LLMResponse(
            tool_calls=[ToolCall(id="c1", name="open_app", arguments={"app_name": "notepad"})]
        )
        result = invoke("chat", "open", "notepad")
        assert result.exit_code == 0
        assert desktop.log == [("open_app", "notepad")]

    def test_chat_unknown_tool_exits_1(self, invoke, mock_llm_client, desktop):
        mock_llm_client.last_response = LLMResponse(
            tool_calls=[ToolCall(id="c1", name="format_disk", arguments={})]
        )
        assert invoke("chat", "wipe").exit_code == 1
        assert desktop.log == []

    def test_unreachable_model_exits_1(self, invoke, mock_llm_client):
        mock_llm_client.verify_connection.side_effect = ModelUnavailable("Cannot connect to the model server.")
        result = invoke("chat", "hello")
        assert result.exit_code == 1
        mock_llm_client.send_message_stream.assert_not_called()

    def test_talk_loops_until_exit(self, invoke, mock_llm_client):
        with patch("desktop_agent.cli.PromptSession") as mock_session_cls:
            mock_session_cls.return_value.prompt.side_effect = ["", "hi", "exit"]
            result = invoke("talk")
        assert result.exit_code == 0
        assert mock_llm_client.send_message_stream.call_count == 1

    def test_agent_shell_exits_on_eof(self, invoke, mock_llm_client):
        with patch("desktop_agent.commands.PromptSession") as mock_session_cls:
            mock_session_cls.return_value.prompt.side_effect = ["calc 6*7", EOFError()]
            result = invoke("agent")
        assert result.exit_code == 0
        assert "6*7 = 42" in result.output


class TestArtistCommands:

    def test_test_draw(self, invoke, desktop):
        result = invoke("artist", "test-draw")
        assert result.exit_code == 0
        assert desktop.log[0][0] == "press"
        assert desktop.log[-1] == ("release",)

    def test_test_vision_falls_back_without_model(self, invoke, tmp_path):
        with patch("desktop_agent.cli.LLMClient") as mock_cls:
            mock_cls.return_value.describe_image.side_effect = ModelUnavailable("Cannot connect")
            result = invoke("artist", "test-vision")
        assert result.exit_code == 0
        assert list(tmp_path.glob("artwork_*.png"))

    def test_create_with_unreachable_model_exits_1(self, invoke, mock_llm_client):
        mock_llm_client.verify_connection.side_effect = ModelUnavailable("down")
        assert invoke("artist", "create", "a", "star").exit_code == 1


class TestDemoCommand:

    def test_explore(self, invoke):
        assert invoke("demo", "explore").exit_code == 0

    def test_unknown_demo(self, invoke):
        result = CliRunner().invoke(main, ["demo", "minesweeper"])
        assert result.exit_code == 2


class TestSetupCommand:

    @pytest.fixture()
    def ollama_commands(self, desktop):
        calls = []
        outputs = {
            "ollama --version": CommandOutput(0, "ollama version is 0.5.7\n", ""),
            "ollama list": CommandOutput(0, "NAME ID SIZE MODIFIED\n", ""),
        }

        def run_command(windows_command=None, unix_command=None, timeout=None):
            command = unix_command or windows_command
            calls.append(command)
            return outputs.get(command, CommandOutput(0, "success\n", ""))

        desktop.run_command = run_command
        return calls

    def test_pulls_vision_model_with_yes(self, invoke, ollama_commands):
        result = invoke("setup", "--yes")
        assert result.exit_code == 0
        assert ollama_commands == ["ollama --version", "ollama list", "ollama pull gemma3:4b-it-q4_K_M"]
        assert "Skipping litellm/gpt-4o" in result.output
        assert "Setup complete!" in result.output

    def test_declining_keeps_going(self, invoke, ollama_commands):
        with patch("desktop_agent.ollama_setup.confirm", return_value=False):
            result = invoke("setup")
        assert result.exit_code == 0
        assert "ollama pull" not in " ".join(ollama_commands)

    def test_missing_ollama_exits_1(self, invoke, desktop):
        desktop.command_output = CommandOutput(127, "", "ollama: not found")
        result = invoke("setup")
        assert result.exit_code == 1
        assert "curl -fsSL https://ollama.ai/install.sh | sh" in result.output
