"""Public API for the parallel escape-time renderer."""

from .exact import PrecisionExhaustedError, RationalKernel
from .palette import colorize, map_color
from .partition import (
    Partition,
    compute_partitions,
    index_to_pixel,
    index_to_sample,
    pixel_to_index,
    pixel_to_plane,
    plane_to_pixel,
)
from .presentation import frame_to_image
from .renderer import MAX_ITERATIONS, FloatKernel, IterationResult, RenderParameters
from .viewport import FrameInput, Viewport, advance, apply_pan, apply_zoom
from .workers import FrameCoordinator, RenderError, WorkerUnit, make_kernel, new_pixel_buffer

__all__ = [
    "FloatKernel",
    "FrameCoordinator",
    "FrameInput",
    "IterationResult",
    "MAX_ITERATIONS",
    "Partition",
    "PrecisionExhaustedError",
    "RationalKernel",
    "RenderError",
    "RenderParameters",
    "Viewport",
    "WorkerUnit",
    "advance",
    "apply_pan",
    "apply_zoom",
    "colorize",
    "compute_partitions",
    "frame_to_image",
    "index_to_pixel",
    "index_to_sample",
    "make_kernel",
    "map_color",
    "new_pixel_buffer",
    "pixel_to_index",
    "pixel_to_plane",
    "plane_to_pixel",
]
