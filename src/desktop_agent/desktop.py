"""Desktop automation facade.

Wraps the accessibility tree (pywinauto, UIA backend), input injection
(pyautogui), screen capture (mss + Pillow) and OCR (pytesseract) behind one
``Desktop`` object. Every backend failure surfaces as a ``FacadeError`` so the
tool layer has a single exception family to translate into results.

Backends are imported on first use: pywinauto only exists on Windows, and a
headless machine can still run commands, open URLs and evaluate expressions.
"""

from __future__ import annotations

import contextlib
import io
import logging
import os
import subprocess
import sys
import threading
import time
import webbrowser
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterator, Optional, TypeVar

_log = logging.getLogger(__name__)

T = TypeVar("T")

SELECTOR_KINDS = ("role", "name", "text", "window", "automationid", "classname")

BROWSER_MARKERS = ("chrome", "firefox", "edge", "mozilla", "opera", "brave", "safari")


class FacadeError(Exception):
    """Any failure reported by the desktop automation layer."""


class ElementNotFound(FacadeError):
    """No UI element matched a selector."""


class FacadeTimeout(FacadeError):
    """A facade operation did not finish in time."""


class InvalidSelector(FacadeError):
    """A selector string could not be parsed."""


class BackendUnavailable(FacadeError):
    """A required automation backend is not installed or not supported here."""


@contextlib.contextmanager
def _facade_errors(action: str) -> Iterator[None]:
    try:
        yield
    except FacadeError:
        raise
    except Exception as exc:
        raise FacadeError(f"{action} failed: {exc}") from exc


def _import_backend(module: str) -> Any:
    import importlib

    try:
        return importlib.import_module(module)
    except ImportError as exc:
        raise BackendUnavailable(
            f"Automation backend '{module}' is not available on this system ({exc})"
        ) from exc


@dataclass(frozen=True)
class Selector:
    """A ``kind:value`` UI element query such as ``role:Button``."""

    kind: str
    value: str

    def __str__(self) -> str:
        return f"{self.kind}:{self.value}"


def parse_selector(raw: str) -> Selector:
    """Parse ``kind:value``; a bare string is treated as a name selector.

    Raises:
        InvalidSelector: If the string is empty, the kind is unknown, or the
            value is missing.
    """
    text = (raw or "").strip()
    if not text:
        raise InvalidSelector("Selector must not be empty")
    if ":" not in text:
        return Selector("name", text)
    kind, _, value = text.partition(":")
    kind = kind.strip().lower()
    value = value.strip()
    if kind not in SELECTOR_KINDS:
        raise InvalidSelector(
            f"Unknown selector kind '{kind}'. Expected one of: {', '.join(SELECTOR_KINDS)}"
        )
    if not value:
        raise InvalidSelector(f"Selector '{raw}' has no value")
    return Selector(kind, value)


@dataclass(frozen=True)
class Bounds:
    x: int
    y: int
    width: int
    height: int

    def as_dict(self) -> dict[str, int]:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height}


@dataclass(frozen=True)
class Screenshot:
    width: int
    height: int
    image_data: bytes  # PNG encoded

    @property
    def size_kb(self) -> int:
        return round(len(self.image_data) / 1024)

    def save(self, path: str | Path) -> Path:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(self.image_data)
        return target


@dataclass(frozen=True)
class CommandOutput:
    exit_status: int
    stdout: str
    stderr: str


@dataclass(frozen=True)
class AppInfo:
    name: str
    role: str
    pid: Optional[int] = None


def run_with_timeout(fn: Callable[[], T], timeout: float, what: str = "operation") -> T:
    """Race ``fn`` against a timer; whichever finishes first decides.

    The call runs on a daemon thread. On timeout the thread is abandoned and
    its eventual result is discarded.

    Raises:
        FacadeTimeout: If ``fn`` has not returned after ``timeout`` seconds.
    """
    outcome: dict[str, Any] = {}

    def _target() -> None:
        try:
            outcome["value"] = fn()
        except BaseException as exc:  # re-raised on the caller's thread
            outcome["error"] = exc

    worker = threading.Thread(target=_target, name=f"facade-{what}", daemon=True)
    worker.start()
    worker.join(timeout)
    if worker.is_alive():
        raise FacadeTimeout(f"{what} timed out after {timeout:g} seconds")
    if "error" in outcome:
        raise outcome["error"]
    return outcome["value"]


class Element:
    """A UI element found through a selector.

    ``wrapper`` is a pywinauto control wrapper. An element without a wrapper
    stands for "whatever has keyboard focus": it can receive typed text and
    mouse gestures but has no accessibility properties.
    """

    def __init__(self, wrapper: Any = None, desktop: "Desktop | None" = None) -> None:
        self._wrapper = wrapper
        self._desktop = desktop

    def _require_wrapper(self) -> Any:
        if self._wrapper is None:
            raise FacadeError("Element has no accessibility handle")
        return self._wrapper

    @property
    def _info(self) -> Any:
        return self._require_wrapper().element_info

    def name(self) -> str:
        if self._wrapper is None:
            return "focused element"
        with _facade_errors("Reading element name"):
            return self._info.name or self._wrapper.window_text() or ""

    def role(self) -> str:
        if self._wrapper is None:
            return "Unknown"
        with _facade_errors("Reading element role"):
            return self._info.control_type or ""

    def class_name(self) -> str:
        with _facade_errors("Reading class name"):
            return self._info.class_name or ""

    def process_id(self) -> Optional[int]:
        with _facade_errors("Reading process id"):
            return getattr(self._info, "process_id", None)

    def text(self, max_depth: int = 1) -> str:
        """Collect visible text of this element and its descendants."""
        wrapper = self._require_wrapper()
        parts: list[str] = []

        def _walk(node: Any, depth: int) -> None:
            value = node.window_text()
            if value and value not in parts:
                parts.append(value)
            if depth >= max_depth:
                return
            for child in node.children():
                _walk(child, depth + 1)

        with _facade_errors("Reading element text"):
            _walk(wrapper, 0)
        return " ".join(parts)

    def bounds(self) -> Bounds:
        with _facade_errors("Reading element bounds"):
            rect = self._require_wrapper().rectangle()
            return Bounds(rect.left, rect.top, rect.width(), rect.height())

    def is_visible(self) -> bool:
        with _facade_errors("Reading visibility"):
            return bool(self._require_wrapper().is_visible())

    def is_enabled(self) -> bool:
        with _facade_errors("Reading enabled state"):
            return bool(self._require_wrapper().is_enabled())

    def click(self) -> None:
        with _facade_errors("Click"):
            self._require_wrapper().click_input()

    def double_click(self) -> None:
        with _facade_errors("Double click"):
            self._require_wrapper().double_click_input()

    def right_click(self) -> None:
        with _facade_errors("Right click"):
            self._require_wrapper().right_click_input()

    def focus(self) -> None:
        with _facade_errors("Focus"):
            self._require_wrapper().set_focus()

    def type_text(self, text: str, use_clipboard: bool = False) -> None:
        """Type into this element (or the focused one), optionally via paste."""
        pyautogui = _import_backend("pyautogui")
        with _facade_errors("Typing text"):
            if self._wrapper is not None:
                self._wrapper.set_focus()
            if use_clipboard or not text.isascii():
                _set_clipboard(text)
                paste_mod = "command" if sys.platform == "darwin" else "ctrl"
                pyautogui.hotkey(paste_mod, "v")
            else:
                pyautogui.write(text, interval=0.02)

    def mouse_click_and_hold(self, x: int, y: int) -> None:
        pyautogui = _import_backend("pyautogui")
        with _facade_errors("Mouse press"):
            pyautogui.moveTo(x, y)
            pyautogui.mouseDown()

    def mouse_move(self, x: int, y: int) -> None:
        pyautogui = _import_backend("pyautogui")
        with _facade_errors("Mouse move"):
            pyautogui.moveTo(x, y)

    def mouse_release(self) -> None:
        pyautogui = _import_backend("pyautogui")
        with _facade_errors("Mouse release"):
            pyautogui.mouseUp()

    def describe(self, text_depth: int = 1) -> dict[str, Any]:
        """Summary used in tool payloads."""
        return {
            "name": self.name() or "Unknown",
            "role": self.role(),
            "text": self.text(text_depth),
            "visible": self.is_visible(),
            "enabled": self.is_enabled(),
        }

    def __repr__(self) -> str:
        if self._wrapper is None:
            return "Element(<focused>)"
        return f"Element(name={self.name()!r}, role={self.role()!r})"


class Locator:
    """A lazy, possibly chained element query."""

    def __init__(self, desktop: "Desktop", selectors: list[Selector]) -> None:
        self._desktop = desktop
        self._selectors = selectors

    @property
    def selector(self) -> str:
        return " >> ".join(str(s) for s in self._selectors)

    def locator(self, selector: str) -> "Locator":
        return Locator(self._desktop, self._selectors + [parse_selector(selector)])

    def all(self) -> list[Element]:
        """Every current match; an empty list when nothing matches."""
        return [Element(w, self._desktop) for w in self._desktop._search(self._selectors)]

    def first(self, timeout: float | None = None) -> Element:
        """Wait up to ``timeout`` seconds for a match.

        Raises:
            ElementNotFound: If nothing matched in time.
        """
        wait = self._desktop.locate_timeout if timeout is None else timeout
        deadline = time.monotonic() + wait
        while True:
            matches = self._desktop._search(self._selectors)
            if matches:
                return Element(matches[0], self._desktop)
            if time.monotonic() >= deadline:
                raise ElementNotFound(f"No element found for selector '{self.selector}'")
            time.sleep(0.25)

    def click(self) -> None:
        self.first().click()

    def type_text(self, text: str, use_clipboard: bool = False) -> None:
        self.first().type_text(text, use_clipboard)

    def text(self, max_depth: int = 1) -> str:
        return self.first().text(max_depth)

    def expect_visible(self, timeout: float | None = None) -> Element:
        element = self.first(timeout)
        if not element.is_visible():
            raise FacadeError(f"Element '{self.selector}' is not visible")
        return element


def _matches(info: Any, selector: Selector) -> bool:
    value = selector.value.lower()
    if selector.kind == "role":
        return (info.control_type or "").lower() == value
    if selector.kind in ("name", "window"):
        return (info.name or "").lower() == value
    if selector.kind == "text":
        return value in (info.name or "").lower()
    if selector.kind == "automationid":
        return (info.automation_id or "").lower() == value
    if selector.kind == "classname":
        return (info.class_name or "").lower() == value
    return False


def _png_screenshot(image: Any) -> Screenshot:
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return Screenshot(width=image.width, height=image.height, image_data=buf.getvalue())


def _set_clipboard(text: str) -> None:
    """Put Unicode text on the system clipboard."""
    if sys.platform == "win32":
        win32clipboard = _import_backend("win32clipboard")
        win32clipboard.OpenClipboard()
        try:
            win32clipboard.EmptyClipboard()
            win32clipboard.SetClipboardText(text, win32clipboard.CF_UNICODETEXT)
        finally:
            win32clipboard.CloseClipboard()
        return
    cmd = ["pbcopy"] if sys.platform == "darwin" else ["xclip", "-selection", "clipboard"]
    subprocess.run(cmd, input=text.encode("utf-8"), check=True, timeout=5)


class Desktop:
    """Process-wide entry point to desktop automation."""

    def __init__(self, backend: str = "uia", locate_timeout: float = 5.0) -> None:
        self.backend = backend
        self.locate_timeout = locate_timeout

    # ── element lookup ────────────────────────────────────────────────────

    def _root(self) -> Any:
        pywinauto = _import_backend("pywinauto")
        with _facade_errors("Connecting to accessibility tree"):
            return pywinauto.Desktop(backend=self.backend)

    def _windows(self, **kwargs: Any) -> list[Any]:
        with _facade_errors("Listing windows"):
            return [w for w in self._root().windows(**kwargs) if w.window_text()]

    def _search(self, selectors: list[Selector]) -> list[Any]:
        scopes: list[Any] | None = None
        for selector in selectors:
            found: list[Any] = []
            with _facade_errors(f"Searching for '{selector}'"):
                if selector.kind == "window":
                    pool = self._windows() if scopes is None else [c for s in scopes for c in s.children()]
                    needle = selector.value.lower()
                    found = [w for w in pool if needle in w.window_text().lower()]
                else:
                    roots = self._windows() if scopes is None else scopes
                    kwargs = {"control_type": selector.value} if selector.kind == "role" else {}
                    for root in roots:
                        candidates = [root] if scopes is None and _matches(root.element_info, selector) else []
                        candidates += root.descendants(**kwargs)
                        found += [c for c in candidates if _matches(c.element_info, selector)]
            _log.debug("Selector %s matched %d element(s)", selector, len(found))
            if not found:
                return []
            scopes = found
        return scopes or []

    def locator(self, selector: str) -> Locator:
        return Locator(self, [parse_selector(selector)])

    def focused_element(self) -> Element:
        return Element(None, self)

    # ── screen & OCR ──────────────────────────────────────────────────────

    def capture_screen(self, monitor: int = 1) -> Screenshot:
        mss = _import_backend("mss")
        image_mod = _import_backend("PIL.Image")
        with _facade_errors("Screen capture"):
            with mss.mss() as sct:
                raw = sct.grab(sct.monitors[monitor])
                image = image_mod.frombytes("RGB", raw.size, raw.bgra, "raw", "BGRX")
            return _png_screenshot(image)

    def ocr_screenshot(self, screenshot: Screenshot) -> str:
        image_mod = _import_backend("PIL.Image")
        with _facade_errors("Opening screenshot"):
            image = image_mod.open(io.BytesIO(screenshot.image_data))
        return self._ocr(image)

    def ocr_image_path(self, path: str | Path) -> str:
        image_mod = _import_backend("PIL.Image")
        source = Path(path)
        if not source.is_file():
            raise FacadeError(f"Image not found: {source}")
        with _facade_errors("Opening image"):
            image = image_mod.open(source)
        return self._ocr(image)

    def _ocr(self, image: Any) -> str:
        pytesseract = _import_backend("pytesseract")
        with _facade_errors("OCR"):
            return pytesseract.image_to_string(image).strip()

    def active_monitor_name(self) -> str:
        mss = _import_backend("mss")
        with _facade_errors("Reading monitor info"):
            with mss.mss() as sct:
                mon = sct.monitors[1]
            return f"Monitor 1 ({mon['width']}x{mon['height']} at {mon['left']},{mon['top']})"

    # ── applications & windows ────────────────────────────────────────────

    def open_application(self, name: str, wait: float = 2.0) -> AppInfo:
        """Launch an application and report the window it opened, if any."""
        if not name.strip():
            raise FacadeError("Application name must not be empty")
        if sys.platform == "darwin":
            cmd = ["open", "-a", name]
        else:
            cmd = [name]
        try:
            proc = subprocess.Popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except OSError as exc:
            raise FacadeError(f"Could not launch '{name}': {exc}") from exc
        _log.info("Launched %s (pid %s)", name, proc.pid)

        deadline = time.monotonic() + wait
        while time.monotonic() < deadline:
            try:
                window = self.application(name)
            except FacadeError:
                time.sleep(0.25)
                continue
            return AppInfo(name=window.name(), role=window.role(), pid=window.process_id())
        return AppInfo(name=name, role="Process", pid=proc.pid)

    def applications(self) -> list[Element]:
        return [Element(w, self) for w in self._windows()]

    def application(self, name: str) -> Element:
        needle = name.lower()
        for window in self._windows():
            if needle in window.window_text().lower():
                return Element(window, self)
        raise ElementNotFound(f"No application window matching '{name}'")

    def activate_application(self, name: str) -> Element:
        window = self.application(name)
        window.focus()
        return window

    def current_window(self) -> Element:
        active = self._windows(active_only=True)
        if not active:
            raise ElementNotFound("No active window")
        return Element(active[0], self)

    def current_application(self) -> AppInfo:
        window = self.current_window()
        return AppInfo(name=window.name(), role=window.role(), pid=window.process_id())

    def current_browser_window(self) -> Element:
        windows = self.applications()
        try:
            active = self.current_window()
            windows.insert(0, active)
        except FacadeError:
            pass
        for window in windows:
            label = f"{window.name()} {window.class_name()}".lower()
            if any(marker in label for marker in BROWSER_MARKERS):
                return window
        raise ElementNotFound("No browser window found")

    # ── commands, URLs, files ─────────────────────────────────────────────

    def run_command(
        self,
        windows_command: str | None = None,
        unix_command: str | None = None,
        timeout: float | None = None,
    ) -> CommandOutput:
        command = windows_command if sys.platform == "win32" else unix_command
        if not command:
            raise FacadeError(f"No command provided for platform '{sys.platform}'")
        try:
            proc = subprocess.run(
                command,
                shell=True,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            raise FacadeTimeout(f"Command timed out after {timeout:g} seconds: {command}") from None
        except OSError as exc:
            raise FacadeError(f"Command execution failed: {exc}") from exc
        return CommandOutput(exit_status=proc.returncode, stdout=proc.stdout, stderr=proc.stderr)

    def open_url(self, url: str, browser: str | None = None) -> None:
        with _facade_errors("Opening URL"):
            controller = webbrowser.get(browser) if browser else webbrowser
            if not controller.open(url):
                raise FacadeError(f"No browser could open {url}")

    def open_file(self, path: str | Path) -> None:
        target = Path(path)
        if not target.exists():
            raise FacadeError(f"File not found: {target}")
        with _facade_errors("Opening file"):
            if sys.platform == "win32":
                os.startfile(str(target))  # type: ignore[attr-defined]
            elif sys.platform == "darwin":
                subprocess.Popen(["open", str(target)])
            else:
                subprocess.Popen(["xdg-open", str(target)])
