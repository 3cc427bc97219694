"""Rich terminal output helpers for the CLI."""

import io
from typing import Any

from rich.align import Align
from rich.console import Console
from rich.live import Live
from rich.markdown import Markdown
from rich.panel import Panel
from rich.rule import Rule
from rich.status import Status
from rich.table import Table
from rich.text import Text

from desktop_agent.tool_result import ToolResult


class StreamingDisplay:
    """Progressive markdown streaming display using Rich Live.

    Context manager that accumulates streamed text and re-renders
    it as Rich Markdown on each update.
    """

    def __init__(self, console: Console) -> None:
        self._console = console
        self._text = ""
        self._live = Live(
            "",
            console=console,
            refresh_per_second=8,
            vertical_overflow="visible",
        )

    def __enter__(self) -> "StreamingDisplay":
        self._live.__enter__()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._live.__exit__(exc_type, exc_val, exc_tb)

    def update(self, delta: str) -> None:
        """Append new text and re-render the full markdown."""
        self._text += delta
        self._live.update(Markdown(self._text))

    @property
    def full_text(self) -> str:
        return self._text


class PlainStreamingDisplay:
    """Fallback streaming display for non-capable terminals (piped/dumb).

    Writes deltas straight to the console file instead of using Rich Live.
    """

    def __init__(self, console: Console) -> None:
        self._file = console.file
        self._text = ""

    def __enter__(self) -> "PlainStreamingDisplay":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._text.strip():
            self._file.write("\n")
            self._file.flush()

    def update(self, delta: str) -> None:
        self._text += delta
        self._file.write(delta)
        self._file.flush()

    @property
    def full_text(self) -> str:
        return self._text


def _format_value(value: Any, limit: int = 50) -> str:
    value_str = str(value)
    if len(value_str) > limit:
        value_str = value_str[: limit - 3] + "..."
    return value_str


class Renderer:
    """Render markdown, tool activity and styled status/error output in terminal."""

    def __init__(self, output_file: io.TextIOBase | None = None) -> None:
        if output_file is not None:
            self.console = Console(file=output_file, highlight=False, width=120)
        else:
            self.console = Console()

    def render_streaming_live(self) -> "StreamingDisplay | PlainStreamingDisplay":
        """Return a streaming display context manager.

        Rich Live for interactive terminals, plain writes for piped/dumb ones.
        """
        if self.console.is_terminal:
            return StreamingDisplay(self.console)
        return PlainStreamingDisplay(self.console)

    def print(self, message: str = "") -> None:
        self.console.print(Text(message), highlight=False)

    def print_error(self, message: str) -> None:
        """Print a styled error message."""
        self.console.print(Text(message, style="red"), highlight=False)

    def print_info(self, message: str) -> None:
        """Print a styled informational message."""
        self.console.print(Text(message, style="dim"), highlight=False)

    def print_warning(self, message: str) -> None:
        """Print a styled warning message."""
        self.console.print(Text(message, style="yellow"), highlight=False)

    def print_success(self, message: str) -> None:
        """Print a styled success message."""
        self.console.print(Text(message, style="green"), highlight=False)

    def status_spinner(self, message: str) -> Status:
        return self.console.status(message)

    def render_separator(self) -> None:
        """Render a dim horizontal rule as a separator."""
        self.console.print(Rule(style="dim"))

    def render_banner(self, title: str, version: str, subtitle: str = "") -> None:
        """Render the application banner.

        Args:
            title: Name shown in bold.
            version: Application version string.
            subtitle: Optional second line.
        """
        content = Text.assemble(
            (title, "bold cyan"),
            ("  v" + version, "dim"),
        )
        if subtitle:
            content.append("\n" + subtitle, style="dim")
        self.console.print(Panel(
            Align.left(content),
            border_style="cyan dim",
            expand=False,
            padding=(0, 2),
        ))

    def render_config(self, config_items: dict) -> None:
        """Render configuration items one per line, left-aligned."""
        for key, value in config_items.items():
            line = Text.assemble(
                (f"{key}: ", "dim"),
                (str(value), "#888888"),
            )
            self.console.print(line, highlight=False)

    def render_panel(self, body: str, title: str = "", style: str = "cyan") -> None:
        """Render text inside a box, e.g. OCR output or setup guidance."""
        self.console.print(Panel(
            Text(body),
            title=title or None,
            border_style=style,
            expand=False,
        ))

    def render_tool_panel(self, tool_name: str, tool_args: dict) -> None:
        """Render a compact inline display for a tool about to run."""
        self.console.print(Text.assemble(("◆", "bold cyan"), " ", (tool_name, "cyan")))
        for key, value in tool_args.items():
            self._print_field(key, _format_value(value))

    def _print_field(self, key: str, value: str) -> None:
        self.console.print(Text.assemble("  ", (key, "dim"), ": ", value), highlight=False)

    def render_tool_result(self, result: ToolResult, verbose: bool = False) -> None:
        """Render a tool result: message and payload on success, error on failure.

        Long payload values are shortened unless ``verbose`` is set; the
        ``elements`` payload of find_elements is shown as a table.
        """
        if not result.success:
            self.print_error(f"  ✗ {result.error}")
            return

        self.print_success(f"  ✓ {result.message}")
        for key, value in result.data.items():
            if key == "elements" and isinstance(value, list):
                if value:
                    self.render_elements(value)
                continue
            if key == "warnings":
                for warning in value:
                    self.print_warning(f"  ! {warning}")
                continue
            shown = str(value) if verbose else _format_value(value, 200)
            self._print_field(key, shown)

    def render_elements(self, elements: list[dict]) -> None:
        """Render element descriptions as a table."""
        table = Table(show_header=True, header_style="bold cyan", expand=False)
        table.add_column("#", style="dim", justify="right")
        table.add_column("Name")
        table.add_column("Role", style="cyan")
        table.add_column("Text", style="dim")
        table.add_column("Visible", justify="center")
        for i, element in enumerate(elements, 1):
            table.add_row(
                str(i),
                Text(_format_value(element.get("name") or "(unnamed)", 40)),
                Text(str(element.get("role", ""))),
                Text(_format_value(element.get("text", ""), 40)),
                "✓" if element.get("visible") else "✗",
            )
        self.console.print(table)

    def render_help(self, title: str, commands: list[tuple[str, str]]) -> None:
        """Render a two-column command reference."""
        table = Table(title=title, show_header=False, expand=False, box=None, padding=(0, 2))
        table.add_column("Command", style="bold cyan")
        table.add_column("Description")
        for usage, description in commands:
            table.add_row(usage, description)
        self.console.print(Panel(table, border_style="cyan dim", expand=False))
