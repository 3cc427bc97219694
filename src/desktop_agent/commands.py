"""Interactive command shell for the desktop agent."""

import json
import logging
from typing import TYPE_CHECKING, Any, Callable

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter

from desktop_agent.llm import ModelUnavailable
from desktop_agent.renderer import Renderer
from desktop_agent.system_prompt import THINK_PROMPT
from desktop_agent.tool_result import ToolResult
from desktop_agent.tools import ToolError, ToolRegistry
from desktop_agent.utils import preview

if TYPE_CHECKING:
    from desktop_agent.agent import Agent
    from desktop_agent.context import AgentContext
    from desktop_agent.llm import LLMClient

_log = logging.getLogger(__name__)

SHELL_PROMPT = "Agent > "
CHAT_PROMPT = "You   > "


class Shell:
    """State shared by the shell commands."""

    def __init__(
        self,
        context: "AgentContext",
        registry: ToolRegistry,
        renderer: Renderer,
        llm_client: "LLMClient",
        agent: "Agent",
        session: PromptSession | None = None,
    ) -> None:
        self.context = context
        self.registry = registry
        self.renderer = renderer
        self.llm_client = llm_client
        self.agent = agent
        self.session = session

    def prompt(self, message: str) -> str:
        if self.session is None:
            self.session = PromptSession()
        return self.session.prompt(message)

    def run_tool(self, name: str, args: dict[str, Any], status: str) -> ToolResult | None:
        """Run a tool through the registry, rendering its result.

        Returns None when the arguments were rejected.
        """
        try:
            with self.renderer.status_spinner(f"[dim]{status}[/dim]"):
                result = self.registry.execute(name, args)
        except ToolError as e:
            self.renderer.print_error(f"Error: {e}")
            return None
        self.renderer.render_tool_result(result)
        return result


class ShellCommand:
    """Represents a shell command."""

    def __init__(self, name: str, handler: Callable[[str, Shell], bool], help_text: str, usage: str = ""):
        self.name = name
        self.handler = handler
        self.help_text = help_text
        self.usage = usage or name


def _require(args: str, shell: Shell, message: str) -> bool:
    if not args:
        shell.renderer.print_error(message)
        return False
    return True


def cmd_help(args: str, shell: Shell) -> bool:
    """Show help message."""
    shell.renderer.render_help(
        "Available Commands",
        [(cmd.usage, cmd.help_text) for cmd in COMMANDS.values()],
    )
    return True


def cmd_screenshot(args: str, shell: Shell) -> bool:
    shell.run_tool("screenshot", {"with_ocr": True}, "Taking screenshot...")
    return True


def cmd_click(args: str, shell: Shell) -> bool:
    if _require(args, shell, 'Please specify a selector: e.g. "name:Seven", "role:Button", "text:OK"'):
        shell.run_tool("click_element", {"selector": args}, f"Clicking {args}...")
    return True


def cmd_find(args: str, shell: Shell) -> bool:
    if _require(args, shell, 'Please specify a selector: e.g. "role:Button", "name:Edit", "text:Save"'):
        shell.run_tool("find_elements", {"selector": args}, f"Finding elements with {args}...")
    return True


def cmd_app(args: str, shell: Shell) -> bool:
    if not _require(args, shell, "Please specify action: launch, list, focus, or activate"):
        return True
    action, _, app_name = args.partition(" ")
    tool_args: dict[str, Any] = {"action": action}
    if app_name.strip():
        tool_args["app_name"] = app_name.strip()
    shell.run_tool("app_control", tool_args, f"{action} {app_name or 'applications'}...")
    return True


def cmd_ocr(args: str, shell: Shell) -> bool:
    tool_args = {"image_path": args} if args else {}
    result = shell.run_tool("ocr", tool_args, "Performing OCR...")
    if result is not None and result.success and result.get("text"):
        shell.renderer.render_panel(result.get("text"), title="OCR Text")
    return True


def cmd_type(args: str, shell: Shell) -> bool:
    if _require(args, shell, "Please provide text to type"):
        shell.run_tool("type_text", {"text": args}, "Typing text...")
    return True


def cmd_calc(args: str, shell: Shell) -> bool:
    if _require(args, shell, "Please provide a mathematical expression"):
        shell.run_tool("calculate", {"expression": args}, "Calculating...")
    return True


def cmd_files(args: str, shell: Shell) -> bool:
    tool_args: dict[str, Any] = {"action": "list"}
    if args:
        tool_args["directory"] = args
    shell.run_tool("file_manager", tool_args, "Listing files...")
    return True


def cmd_web(args: str, shell: Shell) -> bool:
    if _require(args, shell, "Please provide a URL to open"):
        shell.run_tool("web", {"action": "open", "url": args}, "Opening URL...")
    return True


def cmd_run(args: str, shell: Shell) -> bool:
    if _require(args, shell, "Please provide a command to run"):
        shell.run_tool("run_command", {"command": args}, "Running command...")
    return True


def cmd_think(args: str, shell: Shell) -> bool:
    """Answer a question with the lower reasoning temperature, without tools."""
    if not _require(args, shell, "Please provide a question to think about"):
        return True
    prompt = THINK_PROMPT.format(request=args)
    recent = shell.context.recent_history()
    if recent:
        prompt = f"Previous conversation context: {json.dumps(recent)}\n\n{prompt}"
    try:
        with shell.renderer.status_spinner("[dim]Deep thinking mode...[/dim]"):
            answer = shell.llm_client.generate(prompt)
    except ModelUnavailable as e:
        shell.renderer.print_error(f"Error: {e}")
        return True
    shell.renderer.render_panel(answer, title="Deep Reasoning Result", style="blue")
    shell.context.record("thinking", question=args, response=answer)
    return True


def cmd_history(args: str, shell: Shell) -> bool:
    history = shell.context.history
    if not history:
        shell.renderer.print_warning("No conversation history yet")
        return True
    for i, entry in enumerate(history, 1):
        shell.renderer.print_info(f"{i}. [{entry['type'].upper()}]")
        if entry["type"] == "chat":
            shell.renderer.print(f"   User: {entry['user']}")
            shell.renderer.print(f"   AI: {preview(entry['ai'], 100)}")
        else:
            shell.renderer.print(f"   Question: {entry['question']}")
            shell.renderer.print(f"   Answer: {preview(entry['response'], 100)}")
    return True


def cmd_clear(args: str, shell: Shell) -> bool:
    """Clear conversation history."""
    shell.context.reset()
    shell.renderer.print_success("Conversation history cleared")
    return True


def cmd_chat(args: str, shell: Shell) -> bool:
    """Chat with the model, which may call desktop tools, until 'back'."""
    shell.renderer.print_info('Interactive chat mode. Type "back" to return to the command prompt.')
    while True:
        try:
            message = shell.prompt(CHAT_PROMPT).strip()
        except KeyboardInterrupt:
            continue
        except EOFError:
            break
        if message.lower() == "back":
            break
        if not message:
            continue
        try:
            outcome = shell.agent.run(message)
        except KeyboardInterrupt:
            shell.renderer.print_warning("Interrupted")
            continue
        except ModelUnavailable as e:
            shell.renderer.print_error(f"Error: {e}")
            continue
        shell.context.record("chat", user=message, ai=outcome.text)
    return True


def cmd_exit(args: str, shell: Shell) -> bool:
    """Exit the shell."""
    shell.renderer.print_info("Goodbye!")
    return False


COMMANDS: dict[str, ShellCommand] = {
    "help": ShellCommand("help", cmd_help, "Show this help"),
    "chat": ShellCommand("chat", cmd_chat, "Chat with the model using desktop tools"),
    "screenshot": ShellCommand("screenshot", cmd_screenshot, "Take a desktop screenshot with OCR"),
    "click": ShellCommand("click", cmd_click, 'Click a UI element (e.g. "name:Seven")', "click <selector>"),
    "find": ShellCommand("find", cmd_find, 'Find UI elements (e.g. "role:Button")', "find <selector>"),
    "app": ShellCommand("app", cmd_app, "Launch, list, focus or activate applications", "app <action> [name]"),
    "ocr": ShellCommand("ocr", cmd_ocr, "Recognize text on screen or in an image", "ocr [image_path]"),
    "type": ShellCommand("type", cmd_type, "Type text into the focused element", "type <text>"),
    "calc": ShellCommand("calc", cmd_calc, "Quick calculation", "calc <expression>"),
    "files": ShellCommand("files", cmd_files, "List a directory", "files [directory]"),
    "web": ShellCommand("web", cmd_web, "Open a URL in the browser", "web <url>"),
    "run": ShellCommand("run", cmd_run, "Run a shell command", "run <command>"),
    "think": ShellCommand("think", cmd_think, "Deep reasoning mode", "think <question>"),
    "history": ShellCommand("history", cmd_history, "Show conversation history"),
    "clear": ShellCommand("clear", cmd_clear, "Clear conversation history"),
    "exit": ShellCommand("exit", cmd_exit, "Exit the agent"),
}


def command_completer() -> WordCompleter:
    return WordCompleter(list(COMMANDS), ignore_case=True, sentence=True)


def execute_command(text: str, shell: Shell) -> bool:
    """Dispatch one line of shell input.

    Returns:
        False when the shell should exit, True otherwise.
    """
    name, _, args = text.strip().partition(" ")
    if not name:
        return True
    command = COMMANDS.get(name.lower())
    if command is None:
        shell.renderer.print_error(f"Unknown command: {name}")
        shell.renderer.print_info('Type "help" for available commands')
        return True
    _log.debug("Shell command %s %r", command.name, args)
    return command.handler(args.strip(), shell)


def run_shell(shell: Shell) -> None:
    """Read and dispatch commands until exit or EOF."""
    if shell.session is None:
        shell.session = PromptSession(completer=command_completer())
    while True:
        try:
            text = shell.prompt(SHELL_PROMPT)
        except KeyboardInterrupt:
            shell.renderer.print_info('Use Ctrl+D or type "exit" to quit.')
            continue
        except EOFError:
            shell.renderer.print_info("Goodbye!")
            break
        try:
            if not execute_command(text, shell):
                break
        except KeyboardInterrupt:
            shell.renderer.print_warning("Interrupted")
