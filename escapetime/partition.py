"""Mapping between pixel buffer indices, screen pixels and the complex plane."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

import numpy as np


@dataclass(frozen=True)
class Partition:
    """Half-open range ``[start, end)`` of pixel buffer indices owned by one worker."""

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start

    def indices(self) -> range:
        return range(self.start, self.end)


def compute_partitions(total: int, workers: int) -> list[Partition]:
    """Split ``total`` pixels into ``workers`` contiguous partitions.

    Every partition gets ``total // workers`` pixels and the remainder is
    folded into the last one.
    """

    if workers < 1:
        raise ValueError(f"workers must be at least 1, got {workers}.")
    if total < 0:
        raise ValueError(f"total must not be negative, got {total}.")

    size = total // workers
    partitions = []
    for worker in range(workers):
        start = worker * size
        end = total if worker == workers - 1 else start + size
        partitions.append(Partition(start, end))
    return partitions


def index_to_pixel(index: int, width: int, height: int) -> tuple[int, int]:
    """Screen ``(x, y)`` of a buffer index; y counts up from the bottom row."""

    total = width * height
    return index % width, (total - index - 1) // width


def pixel_to_index(x: int, y: int, width: int, height: int) -> int:
    return (height - 1 - y) * width + x


def pixel_to_plane(x, y, width: int, height: int, number: Callable = float):
    """Map a screen pixel onto the unit plane, correcting aspect on x only."""

    plane_x = (number(x) / width * 2 - 1) * (number(width) / height)
    plane_y = number(y) / height * 2 - 1
    return plane_x, plane_y


def plane_to_pixel(plane_x, plane_y, width: int, height: int) -> tuple[int, int]:
    aspect = width / height
    x = (plane_x / aspect + 1) / 2 * width
    y = (plane_y + 1) / 2 * height
    return int(round(x)), int(round(y))


def index_to_sample(index: int, viewport, width: int, height: int, number: Callable = float):
    """Complex sample ``plane * scale + center`` for one buffer index."""

    x, y = index_to_pixel(index, width, height)
    plane_x, plane_y = pixel_to_plane(x, y, width, height, number)
    return (
        plane_x * viewport.scale + viewport.center_x,
        plane_y * viewport.scale + viewport.center_y,
    )


def partition_samples(partition: Partition, viewport, width: int, height: int) -> tuple[np.ndarray, np.ndarray]:
    """Vectorised ``index_to_sample`` over a partition in float64.

    Performs the same operations in the same order as the scalar mapping so
    both produce identical samples.
    """

    total = width * height
    indices = np.arange(partition.start, partition.end, dtype=np.int64)
    xs = (indices % width).astype(np.float64)
    ys = ((total - indices - 1) // width).astype(np.float64)

    plane_x = (xs / width * 2 - 1) * (float(width) / height)
    plane_y = ys / height * 2 - 1

    scale = np.float64(viewport.scale)
    cx = plane_x * scale + np.float64(viewport.center_x)
    cy = plane_y * scale + np.float64(viewport.center_y)
    return cx, cy
