"""Agent - tool-calling dispatch loop."""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from desktop_agent.conversation import ConversationManager
from desktop_agent.llm import LLMClient, LLMResponse, ToolCall
from desktop_agent.renderer import Renderer
from desktop_agent.tool_result import ToolResult
from desktop_agent.tools import ToolError, ToolRegistry
from desktop_agent.utils import truncate_output

_log = logging.getLogger(__name__)


@dataclass
class TurnOutcome:
    """What one user turn produced.

    ``results`` pairs every executed call with its result, in execution
    order. ``error`` is set when the turn ended on an unknown tool or
    invalid arguments.
    """

    text: str = ""
    results: list[tuple[ToolCall, ToolResult]] = field(default_factory=list)
    error: ToolError | None = None
    rounds: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None


class Agent:
    """Sends the conversation plus the tool registry to the model and runs what it asks for."""

    def __init__(
        self,
        llm_client: LLMClient,
        registry: ToolRegistry,
        conversation: ConversationManager,
        renderer: Renderer,
        max_tool_rounds: int = 8,
        history_window: int = 0,
    ) -> None:
        """Initialize the agent.

        Args:
            llm_client: LLM client for streaming completions
            registry: Tools offered to the model
            conversation: Message history sent with every request
            renderer: Terminal output
            max_tool_rounds: Upper bound on model calls in multi-turn mode
            history_window: Keep only this many past user turns (0 keeps all)
        """
        self.llm_client = llm_client
        self.registry = registry
        self.conversation = conversation
        self.renderer = renderer
        self.max_tool_rounds = max_tool_rounds
        self.history_window = history_window

    def _stream(self) -> LLMResponse:
        """Stream one completion to the terminal and return the assembled response."""
        messages = self.conversation.get_messages()
        tools = self.registry.to_openai_tools()
        with self.renderer.render_streaming_live() as display:
            for delta in self.llm_client.send_message_stream(messages, tools=tools):
                display.update(delta)
        return self.llm_client.last_response or LLMResponse()

    def _validate_batch(self, tool_calls: list[ToolCall]) -> list[tuple[ToolCall, dict[str, Any]]]:
        """Resolve and validate every call before any of them runs.

        Raises:
            ToolNotFound: The model named a tool that is not registered.
            InvalidArguments: Arguments are missing, mistyped or out of range.
        """
        return [(tc, self.registry.validate(tc.name, tc.arguments)) for tc in tool_calls]

    def _execute(self, tool_call: ToolCall, args: dict[str, Any]) -> ToolResult:
        self.renderer.render_tool_panel(tool_call.name, args)
        handler = self.registry.resolve(tool_call.name).handler
        with self.renderer.status_spinner(f"[dim] Running {tool_call.name}...[/dim]"):
            result = handler(args)
        self.renderer.render_tool_result(result)
        return result

    def run(self, user_input: str, multi_turn: bool = False) -> TurnOutcome:
        """Run one user turn.

        In single-turn mode the loop ends once the requested tools have run
        and their results are shown. In multi-turn mode each result is fed
        back to the model until it answers without tool calls or
        ``max_tool_rounds`` is reached.

        Raises:
            ModelUnavailable: The model server could not be reached.
        """
        if self.history_window > 0:
            self.conversation.trim_to_window(self.history_window)
        self.conversation.add_message("user", user_input)
        outcome = TurnOutcome()

        while True:
            response = self._stream()
            outcome.rounds += 1
            if response.content:
                outcome.text = f"{outcome.text}\n{response.content}" if outcome.text else response.content

            if not response.tool_calls:
                self.conversation.add_message("assistant", response.content)
                return outcome

            try:
                batch = self._validate_batch(response.tool_calls)
            except ToolError as e:
                _log.info("Turn ended: %s", e)
                self.renderer.print_error(f"Error: {e}")
                self.conversation.add_message("assistant", response.content)
                outcome.error = e
                return outcome

            self.conversation.add_assistant_tool_call(
                response.content,
                [{"id": tc.id, "name": tc.name, "arguments": args} for tc, args in batch],
            )
            for tc, args in batch:
                result = self._execute(tc, args)
                outcome.results.append((tc, result))
                self.conversation.add_tool_result(
                    tc.id, truncate_output(json.dumps(result.to_dict(), default=str))
                )

            if not multi_turn:
                return outcome
            if outcome.rounds >= self.max_tool_rounds:
                self.renderer.print_warning(
                    f"\nStopped: reached {self.max_tool_rounds} tool rounds without a final answer."
                )
                return outcome
