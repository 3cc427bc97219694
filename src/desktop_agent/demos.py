"""Scripted desktop automation demos.

Each demo drives the facade directly, step by step, and prints what it
sees. A demo returns True when every required step succeeded.
"""

import time
from datetime import datetime
from typing import Callable

from desktop_agent.desktop import Desktop, FacadeError, run_with_timeout
from desktop_agent.renderer import Renderer
from desktop_agent.utils import preview

CALCULATOR_SEQUENCE = (("name:Seven", "7"), ("name:Plus", "+"), ("name:Three", "3"), ("name:Equals", "="))

NOTEPAD_TEXT = """Hello from desktop-agent!

This is a demonstration of:
- Opening applications
- Finding UI elements
- Typing text
- Getting element properties

Current time: {now}
"""

DEMO_URL = "https://github.com"
EXPLORE_ROLES = (("Button", "buttons"), ("Text", "text elements"), ("Edit", "edit controls"))


def calculator_demo(desktop: Desktop, renderer: Renderer) -> bool:
    """Compute 7 + 3 by clicking Calculator buttons and read the display."""
    renderer.print_info("Calculator automation demo")
    try:
        renderer.print("Opening Calculator...")
        desktop.open_application("calc")
        time.sleep(2)
        desktop.locator("window:Calculator").expect_visible()

        renderer.print("Performing calculation: 7 + 3 = ?")
        for selector, label in CALCULATOR_SEQUENCE:
            desktop.locator(selector).click()
            renderer.print(f"  Clicked: {label}")
        time.sleep(1)

        result = desktop.locator("automationid:CalculatorResults").text()
        renderer.print_success(f"Calculation result: {result}")

        shot = desktop.capture_screen()
        renderer.print(f"Screenshot captured: {shot.width}x{shot.height}")
    except FacadeError as e:
        renderer.print_error(f"Calculator automation failed: {e}")
        return False
    renderer.print_success("Calculator automation completed!")
    return True


def notepad_demo(desktop: Desktop, renderer: Renderer) -> bool:
    """Type a note into Notepad and read it back with the editor's properties."""
    renderer.print_info("Notepad automation demo")
    try:
        renderer.print("Opening Notepad...")
        desktop.open_application("notepad")
        time.sleep(2)
        desktop.locator("window:Notepad").expect_visible()

        editor = desktop.locator("window:Notepad").locator("role:Edit")
        renderer.print("Typing text...")
        editor.type_text(NOTEPAD_TEXT.format(now=datetime.now().strftime("%Y-%m-%d %H:%M:%S")))
        time.sleep(1)

        element = editor.first()
        renderer.render_panel(preview(element.text(), 100), title="Text content preview")
        renderer.render_config({
            "bounds": element.bounds().as_dict(),
            "visible": element.is_visible(),
            "role": element.role(),
            "name": element.name(),
        })
    except FacadeError as e:
        renderer.print_error(f"Notepad automation failed: {e}")
        return False
    renderer.print_success("Notepad automation completed!")
    return True


def _count(renderer: Renderer, what: str, find: Callable[[], list]) -> None:
    try:
        found = find()
    except FacadeError as e:
        renderer.print_warning(f"  Could not find {what}: {e}")
        return
    renderer.print(f"  Found {len(found)} {what}")
    for i, element in enumerate(found[:3], 1):
        renderer.print(f"   - {i}: \"{element.name()}\" ({element.role()})")


def browser_demo(desktop: Desktop, renderer: Renderer, url: str = DEMO_URL, ocr_timeout: float = 10.0) -> bool:
    """Open a page, identify the browser window, OCR it and count links and buttons."""
    renderer.print_info("Browser automation demo")
    try:
        renderer.print(f"Opening {url}...")
        desktop.open_url(url)
        time.sleep(3)

        window = desktop.current_browser_window()
        renderer.print(f"Browser window: \"{window.name()}\"")

        shot = desktop.capture_screen()
        renderer.print(f"Screenshot: {shot.width}x{shot.height}")
    except FacadeError as e:
        renderer.print_error(f"Browser automation failed: {e}")
        return False

    try:
        text = run_with_timeout(lambda: desktop.ocr_screenshot(shot), ocr_timeout, what="OCR")
        renderer.render_panel(preview(text, 200), title="OCR detected text")
    except FacadeError as e:
        renderer.print_warning(f"OCR failed: {e}")

    _count(renderer, "links", desktop.locator("role:Hyperlink").all)
    _count(renderer, "buttons", desktop.locator("role:Button").all)
    renderer.print_success("Browser automation completed!")
    return True


def explore_demo(desktop: Desktop, renderer: Renderer, ocr_timeout: float = 10.0) -> bool:
    """Survey the desktop with several selectors, window info and a bounded OCR pass.

    Every step is independent: a failure is reported and the next one runs.
    """
    renderer.print_info("Element explorer - testing different selectors")
    for role, label in EXPLORE_ROLES:
        _count(renderer, label, desktop.locator(f"role:{role}").all)

    renderer.print("Current window:")
    try:
        window = desktop.current_window()
        renderer.print(f"  \"{window.name()}\" ({window.role()})")
        bounds = window.bounds()
        renderer.print(f"  Bounds: {bounds.x}, {bounds.y}, {bounds.width}x{bounds.height}")
        renderer.print(f"  Visible: {window.is_visible()}")
    except FacadeError as e:
        renderer.print_warning(f"  Error getting current window: {e}")

    try:
        app = desktop.current_application()
        renderer.print(f"Current app: \"{app.name}\" ({app.role})")
    except FacadeError as e:
        renderer.print_warning(f"Error getting current application: {e}")

    try:
        renderer.print(f"Active monitor: {desktop.active_monitor_name()}")
    except FacadeError as e:
        renderer.print_warning(f"Error getting monitor info: {e}")

    try:
        shot = desktop.capture_screen()
        text = run_with_timeout(lambda: desktop.ocr_screenshot(shot), ocr_timeout, what="OCR")
        renderer.print(f"OCR result preview: \"{preview(text, 100)}\"")
    except FacadeError as e:
        renderer.print_warning(f"OCR failed or timed out: {e}")

    renderer.print_success("Element exploration completed!")
    return True


DEMOS: dict[str, Callable[..., bool]] = {
    "calculator": calculator_demo,
    "notepad": notepad_demo,
    "browser": browser_demo,
    "explore": explore_demo,
}
