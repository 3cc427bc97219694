"""Parametric shape generators and drag-gesture replay.

Each generator is a pure function of ``(center, size)`` returning the ordered
points of a single stroke. Coordinates are floats; callers round them when
handing them to the mouse.
"""

from __future__ import annotations

import logging
import math
import time
from typing import Callable, Protocol

_log = logging.getLogger(__name__)

Point = tuple[float, float]


def circle(center: Point, radius: float) -> list[Point]:
    x, y = center
    points = []
    for deg in range(0, 361, 10):
        angle = math.radians(deg)
        points.append((x + radius * math.cos(angle), y + radius * math.sin(angle)))
    return points


def square(center: Point, size: float) -> list[Point]:
    x, y = center
    half = size / 2
    return [
        (x - half, y - half),
        (x + half, y - half),
        (x + half, y + half),
        (x - half, y + half),
        (x - half, y - half),
    ]


def star(center: Point, size: float) -> list[Point]:
    """Five-pointed star: outer radius ``size``, inner radius ``size / 2``."""
    x, y = center
    points = []
    for i in range(11):
        angle = math.radians(i * 36) - math.pi / 2
        radius = size if i % 2 == 0 else size / 2
        points.append((x + radius * math.cos(angle), y + radius * math.sin(angle)))
    return points


def heart(center: Point, size: float) -> list[Point]:
    x, y = center
    scale = size / 20
    points = []
    for deg in range(0, 360, 10):
        t = math.radians(deg)
        px = x + scale * 16 * math.sin(t) ** 3
        py = y - scale * (13 * math.cos(t) - 5 * math.cos(2 * t) - 2 * math.cos(3 * t) - math.cos(4 * t))
        points.append((px, py))
    return points


def triangle(center: Point, size: float) -> list[Point]:
    x, y = center
    height = size * math.sqrt(3) / 2
    return [
        (x, y - height / 2),
        (x - size / 2, y + height / 2),
        (x + size / 2, y + height / 2),
        (x, y - height / 2),
    ]


def spiral(center: Point, size: float) -> list[Point]:
    x, y = center
    points = []
    for deg in range(0, 720, 15):
        angle = math.radians(deg)
        radius = deg / 720 * size
        points.append((x + radius * math.cos(angle), y + radius * math.sin(angle)))
    return points


def line(center: Point, size: float) -> list[Point]:
    x, y = center
    return [(x - size / 2, y), (x + size / 2, y)]


SHAPES: dict[str, Callable[[Point, float], list[Point]]] = {
    "circle": circle,
    "square": square,
    "star": star,
    "heart": heart,
    "triangle": triangle,
    "spiral": spiral,
    "line": line,
}


def shape_points(shape: str, center: Point, size: float) -> list[Point]:
    """Return the stroke for a named shape.

    Raises:
        ValueError: If the shape name is unknown or ``size`` is not positive.
    """
    generator = SHAPES.get(shape)
    if generator is None:
        raise ValueError(f"Unknown shape '{shape}'. Expected one of: {', '.join(SHAPES)}")
    if size <= 0:
        raise ValueError("Shape size must be positive")
    return generator(center, size)


class GestureTarget(Protocol):
    def mouse_click_and_hold(self, x: int, y: int) -> None: ...
    def mouse_move(self, x: int, y: int) -> None: ...
    def mouse_release(self) -> None: ...


def replay_gesture(
    target: GestureTarget,
    points: list[Point],
    pacing: float = 0.05,
    press_delay: float = 0.1,
    sleep: Callable[[float], None] = time.sleep,
) -> int:
    """Press at the first point, drag through the rest, release at the last.

    Returns the number of points visited. The button is released even when a
    move fails, so the canvas is never left in a held state.
    """
    if not points:
        return 0

    start_x, start_y = points[0]
    target.mouse_click_and_hold(round(start_x), round(start_y))
    visited = 1
    try:
        sleep(press_delay)
        for px, py in points[1:]:
            target.mouse_move(round(px), round(py))
            visited += 1
            if pacing:
                sleep(pacing)
    finally:
        target.mouse_release()
    _log.debug("Replayed gesture through %d points", visited)
    return visited
