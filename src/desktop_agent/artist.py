"""Vision artist - drawing agent that paints in MS Paint and checks its work."""

import logging
from typing import Any

from desktop_agent.agent import Agent, TurnOutcome
from desktop_agent.context import AgentContext
from desktop_agent.conversation import ConversationManager
from desktop_agent.llm import LLMClient
from desktop_agent.renderer import Renderer
from desktop_agent.system_prompt import ARTIST_PROMPT
from desktop_agent.tool_result import ToolResult
from desktop_agent.tools import ToolError, build_artist_tools

_log = logging.getLogger(__name__)

DEFAULT_DESCRIPTION = "geometric abstract art"
DEMO_DESCRIPTION = "colorful composition with stars and circles"


class VisionArtist:
    """Runs the artist tool registry, either through the model or one tool at a time."""

    def __init__(
        self,
        context: AgentContext,
        llm_client: LLMClient,
        renderer: Renderer,
        vision_client: LLMClient | None = None,
    ) -> None:
        self.context = context
        self.llm_client = llm_client
        self.renderer = renderer
        analyzer = vision_client.describe_image if vision_client is not None else None
        self.registry = build_artist_tools(context, analyzer)

    def create_artwork(self, description: str = DEFAULT_DESCRIPTION) -> TurnOutcome:
        """Let the model draw ``description``, feeding tool results back each round.

        Raises:
            ModelUnavailable: The model server could not be reached.
        """
        self.renderer.print_info(f"Vision AI artist creating: {description}")
        self.renderer.render_separator()

        prompt = f"{ARTIST_PROMPT}\nGoal: Create {description} with vision verification."
        agent = Agent(
            self.llm_client,
            self.registry,
            ConversationManager(prompt),
            self.renderer,
            max_tool_rounds=self.context.config.max_tool_rounds,
        )
        outcome = agent.run(
            f"Create {description} artwork in MS Paint. Follow the workflow: open paint, "
            f"setup brush, draw shapes, capture and analyze each step to verify quality.",
            multi_turn=True,
        )

        for _, result in outcome.results:
            if result.success and result.get("analysis"):
                self.renderer.render_panel(result.get("analysis"), title="Vision Analysis")

        if outcome.ok:
            self.renderer.print_success("Artwork completed")
        _log.info("Artist finished after %d rounds, %d tool calls", outcome.rounds, len(outcome.results))
        return outcome

    def test_tool(self, name: str, params: dict[str, Any] | None = None) -> ToolResult | None:
        """Run a single artist tool directly, without the model.

        Returns None when the tool is unknown or the arguments are invalid.
        """
        self.renderer.print_info(f"Testing {name}...")
        try:
            result = self.registry.execute(name, params or {})
        except ToolError as e:
            self.renderer.print_error(str(e))
            return None
        self.renderer.render_tool_result(result)
        if result.success and result.get("analysis"):
            self.renderer.render_panel(result.get("analysis"), title="Analysis")
        return result
