"""Shared pytest fixtures and helpers for desktop_agent tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from desktop_agent.config import AgentConfig
from desktop_agent.context import AgentContext
from desktop_agent.desktop import (
    AppInfo,
    Bounds,
    CommandOutput,
    ElementNotFound,
    FacadeError,
    Screenshot,
    parse_selector,
)
from desktop_agent.tool_result import ToolResult
from desktop_agent.tools import build_tools

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 2048


class FakeElement:
    """Stand-in for desktop_agent.desktop.Element that records what was done to it."""

    def __init__(self, name: str = "", role: str = "Button", text: str = "",
                 visible: bool = True, enabled: bool = True, log: list | None = None,
                 fail_with: Exception | None = None) -> None:
        self._name = name
        self._role = role
        self._text = text
        self._visible = visible
        self._enabled = enabled
        self.log = log if log is not None else []
        self.fail_with = fail_with

    def _act(self, *entry: Any) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.log.append(entry)

    def name(self) -> str:
        return self._name

    def role(self) -> str:
        return self._role

    def class_name(self) -> str:
        return ""

    def process_id(self) -> int:
        return 1234

    def text(self, max_depth: int = 1) -> str:
        return self._text

    def bounds(self) -> Bounds:
        return Bounds(0, 0, 100, 50)

    def is_visible(self) -> bool:
        return self._visible

    def is_enabled(self) -> bool:
        return self._enabled

    def click(self) -> None:
        self._act("click", self._name)

    def double_click(self) -> None:
        self._act("double_click", self._name)

    def right_click(self) -> None:
        self._act("right_click", self._name)

    def focus(self) -> None:
        self._act("focus", self._name)

    def type_text(self, text: str, use_clipboard: bool = False) -> None:
        self._act("type", text, use_clipboard)

    def mouse_click_and_hold(self, x: int, y: int) -> None:
        self._act("press", x, y)

    def mouse_move(self, x: int, y: int) -> None:
        self._act("move", x, y)

    def mouse_release(self) -> None:
        self.log.append(("release",))

    def describe(self, text_depth: int = 1) -> dict[str, Any]:
        return {
            "name": self._name or "Unknown",
            "role": self._role,
            "text": self._text,
            "visible": self._visible,
            "enabled": self._enabled,
        }


class FakeLocator:
    def __init__(self, desktop: "FakeDesktop", selector: str) -> None:
        self._desktop = desktop
        self.selector = selector

    def locator(self, selector: str) -> "FakeLocator":
        return FakeLocator(self._desktop, selector)

    def all(self) -> list[FakeElement]:
        return list(self._desktop.elements.get(self.selector, []))

    def first(self, timeout: float | None = None) -> FakeElement:
        matches = self.all()
        if not matches:
            raise ElementNotFound(f"No element found for selector '{self.selector}'")
        return matches[0]

    def click(self) -> None:
        self.first().click()

    def type_text(self, text: str, use_clipboard: bool = False) -> None:
        self.first().type_text(text, use_clipboard)

    def text(self, max_depth: int = 1) -> str:
        return self.first().text(max_depth)

    def expect_visible(self, timeout: float | None = None) -> FakeElement:
        return self.first(timeout)


class FakeDesktop:
    """In-memory facade: elements are keyed by their exact selector string."""

    def __init__(self) -> None:
        self.log: list[tuple] = []
        self.elements: dict[str, list[FakeElement]] = {}
        self.focused = FakeElement("focused element", "Unknown", log=self.log)
        self.ocr_text = "Hello World from OCR"
        self.command_output = CommandOutput(0, "ok\n", "")
        self.browser: FakeElement | None = None
        self.fail_launch = False

    def add(self, selector: str, *elements: FakeElement) -> None:
        for element in elements:
            element.log = self.log
        self.elements.setdefault(selector, []).extend(elements)

    def locator(self, selector: str) -> FakeLocator:
        parse_selector(selector)
        return FakeLocator(self, selector)

    def focused_element(self) -> FakeElement:
        return self.focused

    def capture_screen(self, monitor: int = 1) -> Screenshot:
        self.log.append(("capture",))
        return Screenshot(width=1920, height=1080, image_data=PNG_BYTES)

    def ocr_screenshot(self, screenshot: Screenshot) -> str:
        return self.ocr_text

    def ocr_image_path(self, path: str | Path) -> str:
        if not Path(path).is_file():
            raise FacadeError(f"Image not found: {path}")
        return self.ocr_text

    def active_monitor_name(self) -> str:
        return "Monitor 1 (1920x1080 at 0,0)"

    def open_application(self, name: str, wait: float = 2.0) -> AppInfo:
        if self.fail_launch:
            raise FacadeError(f"Could not launch '{name}'")
        self.log.append(("open_app", name))
        return AppInfo(name=name, role="Window", pid=42)

    def applications(self) -> list[FakeElement]:
        return [FakeElement("Notepad", "Window"), FakeElement("Calculator", "Window")]

    def application(self, name: str) -> FakeElement:
        for app in self.applications():
            if name.lower() in app.name().lower():
                app.log = self.log
                return app
        raise ElementNotFound(f"No application window matching '{name}'")

    def activate_application(self, name: str) -> FakeElement:
        app = self.application(name)
        app.focus()
        return app

    def current_window(self) -> FakeElement:
        return FakeElement("Untitled - Notepad", "Window")

    def current_application(self) -> AppInfo:
        return AppInfo(name="Notepad", role="Window", pid=42)

    def current_browser_window(self) -> FakeElement:
        if self.browser is None:
            raise ElementNotFound("No browser window found")
        return self.browser

    def run_command(self, windows_command=None, unix_command=None, timeout=None) -> CommandOutput:
        self.log.append(("run", windows_command or unix_command, timeout))
        return self.command_output

    def open_url(self, url: str, browser: str | None = None) -> None:
        self.log.append(("open_url", url, browser))

    def open_file(self, path: str | Path) -> None:
        self.log.append(("open_file", str(path)))


@pytest.fixture
def desktop():
    return FakeDesktop()


@pytest.fixture
def config(tmp_path):
    return AgentConfig(output_dir=tmp_path, draw_pacing=0.0, ocr_timeout=2.0)


@pytest.fixture
def context(config, desktop):
    return AgentContext.create(config, desktop)


@pytest.fixture
def registry(context):
    return build_tools(context)


# ── Plain helper functions ─────────────────────────────────────────────────
# Each test file imports these directly:
#   from conftest import assert_ok, assert_fail

def assert_ok(result: ToolResult) -> None:
    assert result.ok, f"Expected success but got error: {result.error}"


def assert_fail(result: ToolResult, contains: str | None = None) -> None:
    assert not result.ok, f"Expected failure but result succeeded: {result.message}"
    if contains:
        assert contains in result.error, f"Expected {contains!r} in error {result.error!r}"
