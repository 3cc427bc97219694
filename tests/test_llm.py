"""Tests for LLM client connectivity, streaming and tool-call assembly."""

import base64
from unittest.mock import MagicMock, patch

import litellm
import pytest

from desktop_agent.config import OLLAMA_DEFAULT_API_BASE, AgentConfig
from desktop_agent.llm import LLMClient, LLMResponse, ModelUnavailable


@pytest.fixture()
def config():
    return AgentConfig(model="litellm/gpt-4o", api_base="http://localhost:4000")


@pytest.fixture()
def ollama_config():
    return AgentConfig(model="ollama_chat/deepseek-r1:1.5b")


@pytest.fixture()
def sample_messages():
    return [
        {"role": "system", "content": "You control a desktop."},
        {"role": "user", "content": "Take a screenshot"},
    ]


def _make_stream_chunks(texts):
    """Create mock streaming chunks from a list of text deltas."""
    chunks = []
    for text in texts:
        chunk = MagicMock()
        chunk.choices = [MagicMock()]
        chunk.choices[0].delta.content = text
        chunks.append(chunk)
    return chunks


def _assembled(content="", tool_calls=()):
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    calls = []
    for call_id, name, arguments in tool_calls:
        tc = MagicMock()
        tc.id = call_id
        tc.function.name = name
        tc.function.arguments = arguments
        calls.append(tc)
    response.choices[0].message.tool_calls = calls
    return response


def _drain(generator):
    """Exhaust a generator, returning (yielded items, return value)."""
    items = []
    while True:
        try:
            items.append(next(generator))
        except StopIteration as stop:
            return items, stop.value


class TestLLMClientInit:

    def test_stores_config_values(self, config):
        client = LLMClient(config)
        assert client.model == "litellm/gpt-4o"
        assert client.api_base == "http://localhost:4000"
        assert client.api_key is None
        assert client.last_response is None

    def test_model_override(self, config):
        assert LLMClient(config, model="ollama_chat/gemma3").model == "ollama_chat/gemma3"

    def test_ollama_vision_model_uses_local_server_without_api_base(self):
        config = AgentConfig(model="openai/gpt-4o")
        assert LLMClient(config).api_base is None
        assert LLMClient(config, model="ollama_chat/gemma3").api_base == OLLAMA_DEFAULT_API_BASE


class TestVerifyConnection:

    @patch("desktop_agent.llm.litellm.completion")
    def test_success(self, mock_completion, config):
        mock_completion.return_value = MagicMock()
        LLMClient(config).verify_connection()
        kwargs = mock_completion.call_args[1]
        assert kwargs["model"] == "litellm/gpt-4o"
        assert kwargs["api_base"] == "http://localhost:4000"

    @patch("desktop_agent.llm.litellm.completion")
    def test_unreachable_server(self, mock_completion, config):
        mock_completion.side_effect = litellm.APIConnectionError(
            message="Connection refused",
            model="litellm/gpt-4o",
            llm_provider="openai",
        )
        with pytest.raises(ModelUnavailable) as exc_info:
            LLMClient(config).verify_connection()
        assert "http://localhost:4000" in str(exc_info.value)
        assert isinstance(exc_info.value, ConnectionError)

    @patch("desktop_agent.llm.litellm.completion")
    def test_ollama_hint(self, mock_completion, ollama_config):
        mock_completion.side_effect = litellm.APIConnectionError(
            message="Connection refused",
            model="ollama_chat/deepseek-r1:1.5b",
            llm_provider="ollama",
        )
        with pytest.raises(ModelUnavailable, match="ollama pull deepseek-r1:1.5b"):
            LLMClient(ollama_config).verify_connection()

    @patch("desktop_agent.llm.litellm.completion")
    def test_auth_error(self, mock_completion, config):
        mock_completion.side_effect = litellm.AuthenticationError(
            message="Invalid API key",
            model="litellm/gpt-4o",
            llm_provider="openai",
        )
        with pytest.raises(ModelUnavailable, match="Authentication failed"):
            LLMClient(config).verify_connection()

    @patch("desktop_agent.llm.litellm.completion")
    def test_timeout(self, mock_completion, config):
        mock_completion.side_effect = litellm.Timeout(
            message="Request timed out",
            model="litellm/gpt-4o",
            llm_provider="openai",
        )
        with pytest.raises(ModelUnavailable, match="timed out"):
            LLMClient(config).verify_connection()

    @patch("desktop_agent.llm.litellm.completion")
    def test_unexpected_error(self, mock_completion, config):
        mock_completion.side_effect = RuntimeError("kaboom")
        with pytest.raises(ModelUnavailable, match="RuntimeError: kaboom"):
            LLMClient(config).verify_connection()


class TestSendMessageStream:

    @patch("desktop_agent.llm.litellm.stream_chunk_builder")
    @patch("desktop_agent.llm.litellm.completion")
    def test_yields_text_deltas_in_order(self, mock_completion, mock_builder, config, sample_messages):
        mock_completion.return_value = iter(_make_stream_chunks([None, "Hello", " world"]))
        mock_builder.return_value = _assembled("Hello world")

        client = LLMClient(config)
        deltas, response = _drain(client.send_message_stream(sample_messages))

        assert deltas == ["Hello", " world"]
        assert response.content == "Hello world"
        assert response.tool_calls == []
        assert client.last_response is response

    @patch("desktop_agent.llm.litellm.stream_chunk_builder")
    @patch("desktop_agent.llm.litellm.completion")
    def test_passes_tools(self, mock_completion, mock_builder, config, sample_messages):
        mock_completion.return_value = iter(_make_stream_chunks(["ok"]))
        mock_builder.return_value = _assembled("ok")
        tools = [{"type": "function", "function": {"name": "ocr"}}]

        list(LLMClient(config).send_message_stream(sample_messages, tools=tools))

        kwargs = mock_completion.call_args[1]
        assert kwargs["tools"] == tools
        assert kwargs["stream"] is True

    @patch("desktop_agent.llm.litellm.stream_chunk_builder")
    @patch("desktop_agent.llm.litellm.completion")
    def test_omits_empty_tool_list(self, mock_completion, mock_builder, config, sample_messages):
        mock_completion.return_value = iter(_make_stream_chunks(["ok"]))
        mock_builder.return_value = _assembled("ok")
        list(LLMClient(config).send_message_stream(sample_messages, tools=[]))
        assert "tools" not in mock_completion.call_args[1]

    @patch("desktop_agent.llm.litellm.stream_chunk_builder")
    @patch("desktop_agent.llm.litellm.completion")
    def test_assembles_tool_calls(self, mock_completion, mock_builder, config, sample_messages):
        mock_completion.return_value = iter(_make_stream_chunks([None]))
        mock_builder.return_value = _assembled(None, [
            ("call_1", "calculate", '{"expression": "2+2"}'),
            ("call_2", "screenshot", ""),
            ("call_3", "click_element", '{"selector": '),
        ])

        client = LLMClient(config)
        list(client.send_message_stream(sample_messages))
        response = client.last_response

        assert response.content == ""
        assert [tc.name for tc in response.tool_calls] == ["calculate", "screenshot", "click_element"]
        assert response.tool_calls[0].arguments == {"expression": "2+2"}
        assert response.tool_calls[1].arguments == {}
        # malformed JSON is passed through for the registry to reject
        assert response.tool_calls[2].arguments == '{"selector": '

    @patch("desktop_agent.llm.litellm.completion")
    def test_connection_error_while_streaming(self, mock_completion, config, sample_messages):
        mock_completion.side_effect = litellm.APIConnectionError(
            message="Connection refused",
            model="litellm/gpt-4o",
            llm_provider="openai",
        )
        client = LLMClient(config)
        with pytest.raises(ModelUnavailable):
            list(client.send_message_stream(sample_messages))
        assert client.last_response is None


class TestGenerate:

    @patch("desktop_agent.llm.litellm.completion")
    def test_uses_think_temperature(self, mock_completion, config):
        mock_completion.return_value = _assembled("Step 1: open Paint")
        answer = LLMClient(config).generate("how do I draw?")
        assert answer == "Step 1: open Paint"
        kwargs = mock_completion.call_args[1]
        assert kwargs["temperature"] == config.think_temperature
        assert kwargs["messages"] == [{"role": "user", "content": "how do I draw?"}]

    @patch("desktop_agent.llm.litellm.completion")
    def test_error_is_mapped(self, mock_completion, config):
        mock_completion.side_effect = RuntimeError("down")
        with pytest.raises(ModelUnavailable):
            LLMClient(config).generate("hi")


class TestDescribeImage:

    @patch("desktop_agent.llm.litellm.completion")
    def test_sends_png_as_data_uri(self, mock_completion, config):
        mock_completion.return_value = _assembled("A red circle")
        answer = LLMClient(config, model="ollama_chat/gemma3").describe_image("What is drawn?", b"\x89PNG")

        assert answer == "A red circle"
        content = mock_completion.call_args[1]["messages"][0]["content"]
        assert content[0] == {"type": "text", "text": "What is drawn?"}
        url = content[1]["image_url"]["url"]
        assert url == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode("ascii")
        assert mock_completion.call_args[1]["model"] == "ollama_chat/gemma3"

    @patch("desktop_agent.llm.litellm.completion")
    def test_unreachable_vision_model_is_connection_error(self, mock_completion, config):
        mock_completion.side_effect = litellm.APIConnectionError(
            message="Connection refused",
            model="ollama_chat/gemma3",
            llm_provider="ollama",
        )
        with pytest.raises(ConnectionError):
            LLMClient(config).describe_image("?", b"png")


def test_llm_response_defaults():
    response = LLMResponse()
    assert response.content == ""
    assert response.tool_calls == []
