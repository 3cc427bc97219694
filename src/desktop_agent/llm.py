"""LiteLLM client wrapper - connectivity verification and LLM communication."""

import base64
import json
import logging
import traceback
from collections.abc import Generator
from dataclasses import dataclass, field
from typing import Any

import litellm

from desktop_agent.config import OLLAMA_DEFAULT_API_BASE, AgentConfig, is_ollama_model

_log = logging.getLogger(__name__)


class ModelUnavailable(ConnectionError):
    """The inference backend is unreachable or rejected the request."""


@dataclass
class ToolCall:
    """A tool invocation requested by the model.

    ``arguments`` is the decoded JSON object, or the raw string when the
    model produced something that is not valid JSON.
    """

    id: str
    name: str
    arguments: Any


@dataclass
class LLMResponse:
    """Assembled response from streaming LLM completion."""

    content: str = ""
    tool_calls: list[ToolCall] = field(default_factory=list)


def _decode_arguments(raw: Any) -> Any:
    if isinstance(raw, str):
        if not raw.strip():
            return {}
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            return raw
    return raw


class LLMClient:
    """LiteLLM client for model communication."""

    def __init__(self, config: AgentConfig, model: str | None = None) -> None:
        self.model = model or config.model
        self.api_base = config.api_base
        if self.api_base is None and is_ollama_model(self.model):
            self.api_base = OLLAMA_DEFAULT_API_BASE
        self.api_key = config.api_key
        self.temperature = config.temperature
        self.think_temperature = config.think_temperature
        self.max_output_tokens = config.max_output_tokens
        self.top_p = config.top_p
        self.last_response: LLMResponse | None = None

    @property
    def _server(self) -> str:
        return self.api_base or "provider default"

    def _setup_hint(self) -> str:
        if is_ollama_model(self.model):
            name = self.model.split("/", 1)[1]
            return (
                f"Setup instructions:\n"
                f"  1. Install Ollama: curl -fsSL https://ollama.ai/install.sh | sh\n"
                f"  2. Pull the model: ollama pull {name}\n"
                f"  3. Ensure Ollama is running: ollama serve"
            )
        return f"Verify api_base in ~/.desktop-agent/config.yaml and that the server is running."

    def _handle_llm_error(self, error: Exception) -> None:
        """Convert exceptions from LiteLLM calls to ModelUnavailable with clear messages.

        Raises:
            ModelUnavailable: Always. With differentiated messages for connectivity,
                authentication, timeout, server errors, and unexpected failures.
        """
        if isinstance(error, litellm.AuthenticationError):
            raise ModelUnavailable(
                f"Authentication failed connecting to the model server.\n\n"
                f"  Server: {self._server}\n"
                f"  Error: {error.message}\n\n"
                f"Check your api_key in ~/.desktop-agent/config.yaml"
            ) from None
        if isinstance(error, litellm.APIConnectionError):
            raise ModelUnavailable(
                f"Cannot connect to the model server.\n\n"
                f"  Server: {self._server}\n"
                f"  Model:  {self.model}\n"
                f"  Error: {error.message}\n\n"
                f"{self._setup_hint()}"
            ) from None
        if isinstance(error, litellm.Timeout):
            raise ModelUnavailable(
                f"Connection to the model server timed out.\n\n"
                f"  Server: {self._server}\n\n"
                f"The server may be overloaded or unreachable."
            ) from None
        if isinstance(error, litellm.APIError):
            raise ModelUnavailable(
                f"Model request failed (status {error.status_code}).\n\n"
                f"  Server: {self._server}\n"
                f"  Model:  {self.model}\n"
                f"  Error: {error.message}\n\n"
                f"{self._setup_hint()}"
            ) from None
        tb = traceback.format_exception(type(error), error, error.__traceback__)
        _log.debug("Unexpected LLM failure:\n%s", "".join(tb))
        raise ModelUnavailable(
            f"Unexpected error talking to the model server.\n\n"
            f"  Server: {self._server}\n"
            f"  Error: {type(error).__name__}: {error}"
        ) from None

    def verify_connection(self) -> None:
        """Verify the model answers a tiny request.

        Raises:
            ModelUnavailable: If the server is unreachable or the model is missing.
        """
        try:
            litellm.completion(
                model=self.model,
                messages=[{"role": "user", "content": "Hello! Are you working correctly?"}],
                api_base=self.api_base,
                api_key=self.api_key,
                max_tokens=10,
                timeout=30,
            )
        except Exception as e:
            self._handle_llm_error(e)

    def send_message_stream(
        self,
        messages: list[dict],
        tools: list[dict] | None = None,
    ) -> Generator[str, None, LLMResponse]:
        """Stream a completion response, yielding text deltas.

        After the generator is exhausted, the return value (accessible via
        StopIteration.value) is an LLMResponse with the full text and any
        tool calls; it is also stored on ``self.last_response``.

        Raises:
            ModelUnavailable: With differentiated messages for connectivity,
                authentication, timeout, and server errors.
        """
        self.last_response = None
        chunks = []
        assembled = None
        kwargs: dict[str, Any] = {}
        if tools:
            kwargs["tools"] = tools
        try:
            response_stream = litellm.completion(
                model=self.model,
                messages=messages,
                api_base=self.api_base,
                api_key=self.api_key,
                stream=True,
                timeout=300,
                temperature=self.temperature,
                max_tokens=self.max_output_tokens,
                top_p=self.top_p,
                **kwargs,
            )
            for chunk in response_stream:
                chunks.append(chunk)
                delta = chunk.choices[0].delta
                if delta.content:
                    yield delta.content
            assembled = litellm.stream_chunk_builder(chunks, messages=messages)
        except Exception as e:
            self._handle_llm_error(e)

        result = LLMResponse()
        if assembled is not None:
            message = assembled.choices[0].message
            result.content = message.content or ""
            for tc in message.tool_calls or []:
                result.tool_calls.append(ToolCall(
                    id=tc.id,
                    name=tc.function.name,
                    arguments=_decode_arguments(tc.function.arguments),
                ))
        self.last_response = result
        return result

    def generate(self, prompt: str, temperature: float | None = None, max_tokens: int | None = None) -> str:
        """Single non-streaming completion for a plain prompt."""
        try:
            response = litellm.completion(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                api_base=self.api_base,
                api_key=self.api_key,
                temperature=self.think_temperature if temperature is None else temperature,
                max_tokens=max_tokens or self.max_output_tokens,
                timeout=300,
            )
        except Exception as e:
            self._handle_llm_error(e)
        return response.choices[0].message.content or ""

    def describe_image(self, prompt: str, image_png: bytes, max_tokens: int = 500) -> str:
        """Ask a vision-capable model about a PNG image."""
        encoded = base64.b64encode(image_png).decode("ascii")
        messages = [{
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{encoded}"}},
            ],
        }]
        try:
            response = litellm.completion(
                model=self.model,
                messages=messages,
                api_base=self.api_base,
                api_key=self.api_key,
                temperature=self.think_temperature,
                max_tokens=max_tokens,
                timeout=300,
            )
        except Exception as e:
            self._handle_llm_error(e)
        return response.choices[0].message.content or ""
