"""First-run setup for a local Ollama server.

Checks that the ``ollama`` binary is installed, lists the models it has, and
offers to pull the configured ones that are missing.
"""

import logging

from prompt_toolkit.shortcuts import confirm

from desktop_agent.config import is_ollama_model
from desktop_agent.desktop import Desktop, FacadeError
from desktop_agent.renderer import Renderer

_log = logging.getLogger(__name__)

VERSION_TIMEOUT = 15
LIST_TIMEOUT = 30
PULL_TIMEOUT = 3600

INSTALL_INSTRUCTIONS = """Windows:
  Download from: https://ollama.ai/download

macOS/Linux:
  curl -fsSL https://ollama.ai/install.sh | sh

After installation, run "desktop-agent setup" again."""

READY_TEXT = """Start the agent:
  desktop-agent agent

Or run a demo:
  desktop-agent demo calculator

Commands available in the agent:
  help   Show all commands
  chat   Interactive chat mode
  calc   Calculator tool
  think  Deep reasoning mode"""


class SetupError(Exception):
    """Raised when Ollama cannot be queried or a model cannot be pulled."""


def _ollama(desktop: Desktop, args: str, timeout: float):
    command = f"ollama {args}"
    return desktop.run_command(windows_command=command, unix_command=command, timeout=timeout)


def ollama_model_name(model: str) -> str | None:
    """``ollama_chat/deepseek-r1:1.5b`` -> ``deepseek-r1:1.5b``; None for other providers."""
    if not is_ollama_model(model):
        return None
    return model.split("/", 1)[1]


def ollama_installed(desktop: Desktop) -> bool:
    try:
        output = _ollama(desktop, "--version", VERSION_TIMEOUT)
    except FacadeError as e:
        _log.debug("ollama --version failed: %s", e)
        return False
    return output.exit_status == 0


def installed_models(desktop: Desktop) -> list[str]:
    """Names from ``ollama list``, tags included.

    Raises:
        SetupError: If the server cannot be queried.
    """
    try:
        output = _ollama(desktop, "list", LIST_TIMEOUT)
    except FacadeError as e:
        raise SetupError(f"Cannot check Ollama models: {e}") from e
    if output.exit_status != 0:
        raise SetupError(f"Cannot check Ollama models: {output.stderr.strip() or 'is Ollama running?'}")
    lines = output.stdout.strip().splitlines()[1:]
    return [line.split()[0] for line in lines if line.strip()]


def has_model(name: str, installed: list[str]) -> bool:
    if ":" not in name:
        name = f"{name}:latest"
    return name in installed


def pull_model(desktop: Desktop, name: str) -> None:
    try:
        output = _ollama(desktop, f"pull {name}", PULL_TIMEOUT)
    except FacadeError as e:
        raise SetupError(f"Failed to download {name}: {e}") from e
    if output.exit_status != 0:
        raise SetupError(f"Failed to download {name}: {output.stderr.strip()}")


def run_setup(desktop: Desktop, renderer: Renderer, models: list[str], assume_yes: bool = False) -> bool:
    """Walk through the Ollama checks, pulling missing models on confirmation.

    Returns:
        True when Ollama is installed and every accepted pull succeeded.
    """
    renderer.print_warning("Checking system requirements...")
    with renderer.status_spinner("[dim]Looking for Ollama...[/dim]"):
        found = ollama_installed(desktop)
    if not found:
        renderer.print_error("Ollama not found")
        renderer.render_panel(INSTALL_INSTRUCTIONS, title="Ollama Installation", style="blue")
        return False
    renderer.print_success("Ollama is installed")

    try:
        with renderer.status_spinner("[dim]Listing installed models...[/dim]"):
            installed = installed_models(desktop)
    except SetupError as e:
        renderer.print_error(str(e))
        renderer.print_info("Try starting Ollama: ollama serve")
        return False

    names = []
    for model in models:
        name = ollama_model_name(model)
        if name is None:
            renderer.print_info(f"Skipping {model}: not served by Ollama")
        elif name not in names:
            names.append(name)

    for name in names:
        if has_model(name, installed):
            renderer.print_success(f"{name} is available")
            continue
        renderer.print_warning(f"{name} not found")
        if not (assume_yes or confirm(f"Download {name} now?")):
            renderer.print_info(f"Skipped. Run later: ollama pull {name}")
            continue
        try:
            with renderer.status_spinner(f"[dim]Downloading {name}, this may take several minutes...[/dim]"):
                pull_model(desktop, name)
        except SetupError as e:
            renderer.print_error(str(e))
            renderer.print_info(f"Try running manually: ollama pull {name}")
            return False
        renderer.print_success(f"{name} downloaded")

    renderer.print_success("Setup complete!")
    renderer.render_panel(READY_TEXT, title="Ready", style="green")
    return True
