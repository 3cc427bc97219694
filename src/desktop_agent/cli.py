"""Desktop-Agent CLI entry point."""

import json
import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import click

# --- Early init: truststore must be set before importing litellm/httpx ---
try:
    import truststore
    truststore.inject_into_ssl()
except Exception:
    pass
# --- End early init ---

import litellm
from prompt_toolkit import PromptSession
from rich.logging import RichHandler

from desktop_agent import __version__
from desktop_agent.agent import Agent
from desktop_agent.artist import DEFAULT_DESCRIPTION, DEMO_DESCRIPTION, VisionArtist
from desktop_agent.commands import Shell, run_shell
from desktop_agent.config import AgentConfig, ConfigError, apply_cli_overrides, load_config
from desktop_agent.context import AgentContext
from desktop_agent.conversation import ConversationManager
from desktop_agent.demos import DEMOS
from desktop_agent.desktop import Desktop
from desktop_agent.llm import LLMClient, ModelUnavailable
from desktop_agent.ollama_setup import run_setup
from desktop_agent.renderer import Renderer
from desktop_agent.system_prompt import build_system_prompt
from desktop_agent.tools import ToolError, build_tools

litellm.suppress_debug_info = True

USER_PROMPT = "You   > "

_log = logging.getLogger(__name__)


@dataclass
class CliState:
    """Objects shared by every subcommand; tests may pre-seed ``desktop``."""

    config: AgentConfig | None = None
    desktop: Desktop | None = None
    renderer: Renderer = field(default_factory=Renderer)
    json_output: bool = False

    def context(self) -> AgentContext:
        return AgentContext.create(self.config, self.desktop)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(show_path=False, rich_tracebacks=verbose)],
        force=True,
    )
    os.environ["LITELLM_LOG"] = "DEBUG" if verbose else "ERROR"
    for noisy in ("LiteLLM", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.INFO if verbose else logging.WARNING)


def _connect(state: CliState, model: str | None = None) -> LLMClient:
    """Create an LLM client and check the model answers; exit 1 with guidance if not."""
    llm_client = LLMClient(state.config, model=model)
    try:
        with state.renderer.status_spinner(f"[dim]Checking {llm_client.model} availability...[/dim]"):
            llm_client.verify_connection()
    except ModelUnavailable as e:
        state.renderer.print_error(f"{llm_client.model} not available")
        state.renderer.render_panel(str(e), title="Setup", style="yellow")
        sys.exit(1)
    state.renderer.print_success(f"{llm_client.model} is ready!")
    return llm_client


def _run_tool(state: CliState, name: str, args: dict[str, Any]) -> None:
    """Run one desktop tool directly; exit 1 on invalid arguments or a failed result."""
    registry = build_tools(state.context())
    try:
        result = registry.execute(name, args)
    except ToolError as e:
        state.renderer.print_error(f"Error: {e}")
        sys.exit(1)
    if state.json_output:
        click.echo(json.dumps(result.to_dict(), default=str, indent=2))
    else:
        state.renderer.render_tool_result(result, verbose=True)
    if not result.success:
        sys.exit(1)


def _make_agent(state: CliState, llm_client: LLMClient, context: AgentContext) -> Agent:
    context.conversation = ConversationManager(build_system_prompt())
    return Agent(
        llm_client,
        build_tools(context),
        context.conversation,
        state.renderer,
        max_tool_rounds=state.config.max_tool_rounds,
        history_window=state.config.history_window,
    )


@click.group()
@click.option("--model", default=None, help="Override LLM model (e.g., ollama_chat/deepseek-r1:1.5b)")
@click.option("--api-base", default=None, help="Override the inference API base URL")
@click.option("--config", "config_path", type=click.Path(path_type=Path), default=None,
              help="Config file (default: ~/.desktop-agent/config.yaml)")
@click.option("--json", "json_output", is_flag=True, help="Print tool results as JSON")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.version_option(__version__, prog_name="desktop-agent")
@click.pass_context
def main(ctx: click.Context, model: str | None, api_base: str | None, config_path: Path | None,
         json_output: bool, verbose: bool) -> None:
    """AI desktop agent - local LLM with desktop automation tools."""
    _setup_logging(verbose)
    state = ctx.ensure_object(CliState)
    state.json_output = json_output

    try:
        config = load_config(config_path)
        state.config = apply_cli_overrides(config, model=model, api_base=api_base)
    except ConfigError as e:
        click.echo(str(e), err=True)
        sys.exit(1)
    _log.debug("Loaded %s", state.config)


# ── direct commands ────────────────────────────────────────────────────────

@main.command()
@click.option("--ocr", "with_ocr", is_flag=True, help="Extract text with OCR")
@click.option("--save", "save_path", default=None, help="Save the screenshot as PNG")
@click.pass_obj
def screenshot(state: CliState, with_ocr: bool, save_path: str | None) -> None:
    """Take a desktop screenshot."""
    args: dict[str, Any] = {"with_ocr": with_ocr}
    if save_path:
        args["save_path"] = save_path
    _run_tool(state, "screenshot", args)


@main.command("click")
@click.argument("selector")
@click.option("--action", type=click.Choice(["click", "double_click", "right_click"]), default="click")
@click.pass_obj
def click_element(state: CliState, selector: str, action: str) -> None:
    """Click a UI element, e.g. "name:Seven"."""
    _run_tool(state, "click_element", {"selector": selector, "action": action})


@main.command()
@click.argument("selector")
@click.option("--limit", type=int, default=5, show_default=True)
@click.pass_obj
def find(state: CliState, selector: str, limit: int) -> None:
    """Find UI elements, e.g. "role:Button"."""
    _run_tool(state, "find_elements", {"selector": selector, "limit": limit})


@main.command("open")
@click.argument("app_name")
@click.pass_obj
def open_app(state: CliState, app_name: str) -> None:
    """Launch an application."""
    _run_tool(state, "open_app", {"app_name": app_name})


@main.command("type")
@click.argument("text", nargs=-1, required=True)
@click.option("--selector", default=None, help="Element to type into (default: focused element)")
@click.option("--clipboard", "use_clipboard", is_flag=True, help="Paste through the clipboard")
@click.pass_obj
def type_text(state: CliState, text: tuple[str, ...], selector: str | None, use_clipboard: bool) -> None:
    """Type text."""
    args: dict[str, Any] = {"text": " ".join(text), "use_clipboard": use_clipboard}
    if selector:
        args["selector"] = selector
    _run_tool(state, "type_text", args)


@main.command()
@click.argument("expression", nargs=-1, required=True)
@click.option("--app", "use_app", is_flag=True, help="Also open the Calculator app")
@click.pass_obj
def calc(state: CliState, expression: tuple[str, ...], use_app: bool) -> None:
    """Evaluate a mathematical expression."""
    _run_tool(state, "calculate", {"expression": " ".join(expression), "use_app": use_app})


@main.command()
@click.argument("command", nargs=-1, required=True)
@click.option("--timeout", "timeout_sec", type=float, default=30, show_default=True)
@click.pass_obj
def run(state: CliState, command: tuple[str, ...], timeout_sec: float) -> None:
    """Run a shell command."""
    _run_tool(state, "run_command", {"command": " ".join(command), "timeout_sec": timeout_sec})


@main.command()
@click.argument("image_path", required=False)
@click.pass_obj
def ocr(state: CliState, image_path: str | None) -> None:
    """Recognize text in an image, or on the screen."""
    _run_tool(state, "ocr", {"image_path": image_path} if image_path else {})


@main.command()
@click.argument("url")
@click.pass_obj
def web(state: CliState, url: str) -> None:
    """Open a URL in the browser."""
    _run_tool(state, "web", {"action": "open", "url": url})


# ── model-driven commands ──────────────────────────────────────────────────

@main.command()
@click.argument("message", nargs=-1, required=True)
@click.pass_obj
def chat(state: CliState, message: tuple[str, ...]) -> None:
    """Send one message; the model may call desktop tools."""
    llm_client = _connect(state)
    agent = _make_agent(state, llm_client, state.context())
    try:
        outcome = agent.run(" ".join(message))
    except ModelUnavailable as e:
        state.renderer.print_error(str(e))
        sys.exit(1)
    if not outcome.ok:
        sys.exit(1)


@main.command()
@click.pass_obj
def agent(state: CliState) -> None:
    """Interactive command shell."""
    state.renderer.render_banner(
        "desktop-agent", __version__, 'Type "help" for commands, "exit" to quit'
    )
    state.renderer.render_config({"Model": state.config.model, "API": state.config.api_base or "provider default"})
    llm_client = _connect(state)
    context = state.context()
    shell = Shell(context, build_tools(context), state.renderer, llm_client,
                  _make_agent(state, llm_client, context))
    run_shell(shell)


@main.command()
@click.pass_obj
def talk(state: CliState) -> None:
    """Multi-turn chat: tool results go back to the model until it answers."""
    llm_client = _connect(state)
    agent = _make_agent(state, llm_client, state.context())
    state.renderer.print_info('Type "exit" or "quit" to stop.')
    session = PromptSession()
    while True:
        try:
            text = session.prompt(USER_PROMPT).strip()
        except KeyboardInterrupt:
            continue
        except EOFError:
            break
        if text.lower() in ("exit", "quit"):
            break
        if not text:
            continue
        try:
            agent.run(text, multi_turn=True)
        except KeyboardInterrupt:
            state.renderer.print_warning("Interrupted")
        except ModelUnavailable as e:
            state.renderer.print_error(str(e))
    state.renderer.print_info("Goodbye!")


# ── artist ─────────────────────────────────────────────────────────────────

def _artist(state: CliState, with_model: bool = False) -> VisionArtist:
    llm_client = _connect(state) if with_model else LLMClient(state.config)
    vision = LLMClient(state.config, model=state.config.vision_model)
    return VisionArtist(state.context(), llm_client, state.renderer, vision_client=vision)


@main.group()
def artist() -> None:
    """Drawing agent for MS Paint with vision feedback."""


@artist.command()
@click.argument("description", nargs=-1)
@click.pass_obj
def create(state: CliState, description: tuple[str, ...]) -> None:
    """Create artwork from a description."""
    outcome = _artist(state, with_model=True).create_artwork(" ".join(description) or DEFAULT_DESCRIPTION)
    if not outcome.ok:
        sys.exit(1)


@artist.command("demo")
@click.pass_obj
def artist_demo(state: CliState) -> None:
    """Draw a sample composition."""
    outcome = _artist(state, with_model=True).create_artwork(DEMO_DESCRIPTION)
    if not outcome.ok:
        sys.exit(1)


def _exit_for(*results: Any) -> None:
    if any(r is None or not r.success for r in results):
        sys.exit(1)


@artist.command("test-paint")
@click.pass_obj
def test_paint(state: CliState) -> None:
    """Open Paint and set up a red brush."""
    a = _artist(state)
    _exit_for(a.test_tool("open_paint"), a.test_tool("setup_brush", {"size": "medium", "color": "red"}))


@artist.command("test-draw")
@click.pass_obj
def test_draw(state: CliState) -> None:
    """Draw a star without the model."""
    a = _artist(state)
    _exit_for(a.test_tool("draw_shape", {"shape": "star", "x": 400, "y": 300, "size": 60}))


@artist.command("test-vision")
@click.pass_obj
def test_vision(state: CliState) -> None:
    """Capture the screen and analyze it."""
    a = _artist(state)
    _exit_for(
        a.test_tool("capture_artwork", {"purpose": "test vision system"}),
        a.test_tool("analyze_artwork", {"focus": "overall composition and colors"}),
    )


# ── scripted demos ─────────────────────────────────────────────────────────

@main.command()
@click.argument("name", type=click.Choice(sorted(DEMOS)))
@click.pass_obj
def demo(state: CliState, name: str) -> None:
    """Run a scripted automation demo."""
    desktop = state.context().desktop
    kwargs = {} if name in ("calculator", "notepad") else {"ocr_timeout": state.config.ocr_timeout}
    if not DEMOS[name](desktop, state.renderer, **kwargs):
        sys.exit(1)


# ── setup ──────────────────────────────────────────────────────────────────

@main.command()
@click.option("-y", "--yes", "assume_yes", is_flag=True, help="Download missing models without asking")
@click.pass_obj
def setup(state: CliState, assume_yes: bool) -> None:
    """Check the local Ollama install and pull the configured models."""
    models = [state.config.model, state.config.vision_model]
    if not run_setup(state.context().desktop, state.renderer, models, assume_yes=assume_yes):
        sys.exit(1)


if __name__ == "__main__":
    main()
