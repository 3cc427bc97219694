"""Shared per-process state handed to tools and the dispatch loop."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from desktop_agent.config import AgentConfig
from desktop_agent.conversation import ConversationManager
from desktop_agent.desktop import Desktop


@dataclass
class AgentContext:
    """Everything a tool or loop needs, passed explicitly instead of globals.

    ``history`` holds summaries of past chat/think exchanges for the
    interactive shell; ``conversation`` is the message list sent to the model.
    """

    config: AgentConfig
    desktop: Desktop
    conversation: Optional[ConversationManager] = None
    history: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def create(cls, config: AgentConfig, desktop: Desktop | None = None) -> "AgentContext":
        return cls(
            config=config,
            desktop=desktop or Desktop(locate_timeout=config.locate_timeout),
        )

    @property
    def output_dir(self) -> Path:
        return Path(self.config.output_dir)

    def record(self, entry_type: str, **fields: Any) -> None:
        self.history.append({"type": entry_type, **fields})

    def recent_history(self) -> list[dict[str, Any]]:
        """The last ``history_window`` shell exchanges, oldest first."""
        window = self.config.history_window
        return self.history[-window:] if window > 0 else []

    def reset(self) -> None:
        """Forget history and conversation; keep config and facade."""
        self.history.clear()
        if self.conversation is not None:
            self.conversation.reset()
