"""Hand-off of a completed pixel buffer to an image surface."""

from __future__ import annotations

import numpy as np
import PIL.Image

from .renderer import RenderParameters


def frame_to_image(buffer: np.ndarray, params: RenderParameters) -> PIL.Image.Image:
    """Wrap a completed RGBA buffer as an image, top row first."""

    frame = np.ascontiguousarray(buffer).reshape(params.height, params.width, 4)
    return PIL.Image.fromarray(frame.copy())
