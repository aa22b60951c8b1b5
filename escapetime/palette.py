"""Iteration count to RGBA color mapping."""

from __future__ import annotations

import numpy as np

from .renderer import MAX_ITERATIONS

HUE_STEP = 0.01
# Red, green and blue sit 120 degrees apart on the six-segment hue circle.
CHANNEL_PHASES = (5.0, 3.0, 1.0)
INSIDE_COLOR = (0, 0, 0, 255)


def hue_to_rgb(hue: np.ndarray) -> np.ndarray:
    """Piecewise-linear rainbow ramp; ``hue`` wraps every 1.0."""

    hue = np.asarray(hue, dtype=np.float64)
    channels = []
    for phase in CHANNEL_PHASES:
        k = np.mod(phase + hue * 6, 6)
        channels.append(1 - np.clip(np.minimum(k, 4 - k), 0, 1))
    return np.stack(channels, axis=-1)


def colorize(counts: np.ndarray, max_iterations: int = MAX_ITERATIONS) -> np.ndarray:
    """Convert iteration counts to an ``(n, 4)`` uint8 RGBA array."""

    counts = np.asarray(counts)
    rgb = hue_to_rgb(counts * HUE_STEP)
    rgb = np.rint(np.clip(rgb * 255.999, 0, 255))

    rgba = np.empty(counts.shape + (4,), dtype=np.uint8)
    rgba[..., :3] = rgb.astype(np.uint8)
    rgba[..., 3] = 255
    rgba[counts >= max_iterations] = INSIDE_COLOR
    return rgba


def map_color(iterations: int, max_iterations: int = MAX_ITERATIONS) -> tuple[int, int, int, int]:
    rgba = colorize(np.array([iterations]), max_iterations)[0]
    return tuple(int(channel) for channel in rgba)
