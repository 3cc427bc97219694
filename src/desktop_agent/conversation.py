"""Conversation management for LLM context."""

import json
from typing import Any


class ConversationManager:
    """Manages message history for LLM context.

    History lives only for the duration of the process.
    """

    def __init__(self, system_prompt: str) -> None:
        """Initialize with system prompt (never dropped).

        Args:
            system_prompt: The system prompt to use
        """
        self._system_prompt = system_prompt
        self._messages: list[dict[str, Any]] = [
            {"role": "system", "content": system_prompt}
        ]

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    def add_message(self, role: str, content: str, **kwargs: Any) -> None:
        """Add a message to the conversation history.

        Args:
            role: One of "user", "assistant", "tool"
            content: The message content
            **kwargs: Additional fields (e.g. tool_calls, tool_call_id)
        """
        message: dict[str, Any] = {"role": role, "content": content}
        message.update(kwargs)
        self._messages.append(message)

    def add_assistant_tool_call(self, content: str, tool_calls: list[dict]) -> None:
        """Add an assistant message that includes native tool_calls.

        Args:
            content: Text content from the assistant (may be empty)
            tool_calls: List of tool call dicts with id, name, arguments
        """
        message: dict[str, Any] = {
            "role": "assistant",
            "content": content or None,
            "tool_calls": [
                {
                    "id": tc["id"],
                    "type": "function",
                    "function": {
                        "name": tc["name"],
                        "arguments": tc["arguments"] if isinstance(tc["arguments"], str)
                        else json.dumps(tc["arguments"]),
                    },
                }
                for tc in tool_calls
            ],
        }
        self._messages.append(message)

    def add_tool_result(self, tool_call_id: str, content: str) -> None:
        """Add a tool result message.

        Args:
            tool_call_id: The ID of the tool call this is responding to
            content: The tool execution result
        """
        self._messages.append({
            "role": "tool",
            "tool_call_id": tool_call_id,
            "content": content,
        })

    def get_messages(self) -> list[dict[str, Any]]:
        """Return all messages for LLM API."""
        return self._messages.copy()

    def trim_to_window(self, max_user_turns: int) -> None:
        """Keep the system prompt plus the last ``max_user_turns`` user turns.

        A turn starts at a user message and runs up to the next one, so tool
        call/result pairs are never split.
        """
        if max_user_turns < 1:
            return
        user_indices = [i for i, m in enumerate(self._messages) if m["role"] == "user"]
        if len(user_indices) <= max_user_turns:
            return
        cut = user_indices[-max_user_turns]
        self._messages = [self._messages[0]] + self._messages[cut:]

    def reset(self) -> None:
        """Drop everything except the system prompt."""
        self._messages = [{"role": "system", "content": self._system_prompt}]

    def __len__(self) -> int:
        return len(self._messages) - 1
