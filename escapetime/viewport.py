"""Viewport state and the per-frame updates applied by the coordinator."""

from __future__ import annotations

from dataclasses import dataclass, replace
from fractions import Fraction
from typing import Any, Callable, Optional

ZOOM_FACTOR = Fraction(4, 5)
DEFAULT_SCALE = 1.5
DEFAULT_CENTER = (-0.5, 0.0)

ZOOM_DIRECTIONS = ("in", "out")


@dataclass(frozen=True)
class Viewport:
    """Visible region of the plane: a center point and a scale factor."""

    scale: Any
    center_x: Any
    center_y: Any

    @classmethod
    def create(
        cls,
        scale=DEFAULT_SCALE,
        center: tuple = DEFAULT_CENTER,
        number: Callable = float,
    ) -> "Viewport":
        return cls(scale=number(scale), center_x=number(center[0]), center_y=number(center[1]))

    @property
    def center(self) -> tuple:
        return self.center_x, self.center_y


@dataclass(frozen=True)
class FrameInput:
    """Input state sampled once per frame by the input collaborator."""

    up: bool = False
    down: bool = False
    left: bool = False
    right: bool = False
    zoom: Optional[str] = None

    def __post_init__(self) -> None:
        if self.zoom is not None and self.zoom not in ZOOM_DIRECTIONS:
            raise ValueError(f"Unknown zoom direction '{self.zoom}'. Valid choices: {', '.join(ZOOM_DIRECTIONS)}.")


def apply_pan(viewport: Viewport, frame_input: FrameInput, elapsed, number: Callable = float) -> Viewport:
    """Move the center by ``scale * elapsed`` for every active direction."""

    step = viewport.scale * number(elapsed)
    center_x = viewport.center_x
    center_y = viewport.center_y
    if frame_input.up:
        center_y = center_y + step
    if frame_input.down:
        center_y = center_y - step
    if frame_input.right:
        center_x = center_x + step
    if frame_input.left:
        center_x = center_x - step
    return replace(viewport, center_x=center_x, center_y=center_y)


def apply_zoom(viewport: Viewport, direction: Optional[str], number: Callable = float) -> Viewport:
    if direction is None:
        return viewport
    factor = number(ZOOM_FACTOR)
    if direction == "in":
        return replace(viewport, scale=viewport.scale * factor)
    if direction == "out":
        return replace(viewport, scale=viewport.scale / factor)
    raise ValueError(f"Unknown zoom direction '{direction}'.")


def advance(viewport: Viewport, frame_input: FrameInput, elapsed, number: Callable = float) -> Viewport:
    """Apply one frame worth of input: pan first, then zoom."""

    viewport = apply_pan(viewport, frame_input, elapsed, number)
    return apply_zoom(viewport, frame_input.zoom, number)
