"""Render parameters and the floating-point escape-time kernel."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

import numpy as np
import tensorflow as tf

from .partition import partition_samples

HORIZON = 4
MAX_ITERATIONS = 1000
WIDTH = 640
HEIGHT = 480
FALLBACK_WORKERS = 8
DEFAULT_PRECISION_BITS = 256
DEFAULT_MAX_BITS = 65536

NUMERIC_VARIANTS = ("float", "rational")


def default_worker_count() -> int:
    return os.cpu_count() or FALLBACK_WORKERS


@dataclass(frozen=True)
class RenderParameters:
    """Parameters that stay fixed for the lifetime of a render session."""

    width: int = WIDTH
    height: int = HEIGHT
    max_iterations: int = MAX_ITERATIONS
    numeric: str = "float"
    workers: Optional[int] = None
    precision_bits: Optional[int] = DEFAULT_PRECISION_BITS
    max_bits: int = DEFAULT_MAX_BITS

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Resolution must be positive, got {self.width}x{self.height}.")
        if self.max_iterations <= 0:
            raise ValueError("max_iterations must be positive.")
        if self.numeric not in NUMERIC_VARIANTS:
            raise ValueError(
                f"Unknown numeric variant '{self.numeric}'. Valid choices: {', '.join(NUMERIC_VARIANTS)}."
            )
        if self.workers is not None and self.workers < 1:
            raise ValueError("workers must be at least 1.")
        if self.precision_bits is not None and self.precision_bits < 1:
            raise ValueError("precision_bits must be at least 1 or None.")
        if self.max_bits < 1:
            raise ValueError("max_bits must be at least 1.")

    @property
    def total_pixels(self) -> int:
        return self.width * self.height

    @property
    def worker_count(self) -> int:
        return self.workers if self.workers is not None else default_worker_count()


@dataclass(frozen=True)
class IterationResult:
    """Outcome of iterating a single sample."""

    escaped: bool
    iterations: int


_VECTOR = tf.TensorSpec(shape=[None], dtype=tf.float64)


@tf.function
def _escape_step(
    i: tf.Tensor,
    cx: tf.Tensor,
    cy: tf.Tensor,
    zx: tf.Tensor,
    zy: tf.Tensor,
    ns: tf.Tensor,
    active: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Test escape at step ``i`` and advance the points that are still bounded."""

    horizon = tf.constant(HORIZON, dtype=zx.dtype)
    escaped = tf.logical_and(active, zx * zx + zy * zy >= horizon)
    ns = tf.where(escaped, tf.fill(tf.shape(ns), i), ns)
    active = tf.logical_and(active, tf.logical_not(escaped))
    zx_new = zx * zx - zy * zy + cx
    zy_new = 2.0 * zx * zy + cy
    zx = tf.where(active, zx_new, zx)
    zy = tf.where(active, zy_new, zy)
    return zx, zy, ns, active


@tf.function(input_signature=[_VECTOR, _VECTOR, _VECTOR, _VECTOR, tf.TensorSpec(shape=[], dtype=tf.int32)])
def _escape_run(cx: tf.Tensor, cy: tf.Tensor, zx: tf.Tensor, zy: tf.Tensor, max_iterations: tf.Tensor) -> tf.Tensor:
    """Iterate the recurrence using a TensorFlow while loop.

    Points that never escape keep ``max_iterations`` as their count.
    """

    i = tf.constant(0, dtype=tf.int32)
    ns = tf.fill(tf.shape(cx), max_iterations)
    active = tf.ones_like(cx, tf.bool)

    def cond(i, zx, zy, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zx, zy, ns, active):
        zx, zy, ns, active = _escape_step(i, cx, cy, zx, zy, ns, active)
        return i + 1, zx, zy, ns, active

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, zx, zy, ns, active))
    return ns


class FloatKernel:
    """Escape-time evaluation in 64-bit floating point."""

    name = "float"

    def __init__(self, max_iterations: int = MAX_ITERATIONS, *, device: str = "/CPU:0") -> None:
        self.max_iterations = max_iterations
        self.device = device
        # Trace once up front so worker threads never race on tracing.
        _escape_run.get_concrete_function()

    @staticmethod
    def number(value) -> float:
        return float(value)

    def evaluate(self, c: tuple[float, float], start: tuple[float, float] = (0.0, 0.0)) -> IterationResult:
        cx, cy = float(c[0]), float(c[1])
        zx, zy = float(start[0]), float(start[1])
        for n in range(self.max_iterations):
            if zx * zx + zy * zy >= HORIZON:
                return IterationResult(escaped=True, iterations=n)
            zx, zy = zx * zx - zy * zy + cx, 2.0 * zx * zy + cy
        return IterationResult(escaped=False, iterations=self.max_iterations)

    def escape_counts(self, partition, viewport, start, width: int, height: int) -> np.ndarray:
        """Return the iteration count of every pixel in ``partition``."""

        if len(partition) == 0:
            return np.zeros(0, dtype=np.int32)

        cx, cy = partition_samples(partition, viewport, width, height)
        zx = np.full(cx.shape, float(start[0]), dtype=np.float64)
        zy = np.full(cy.shape, float(start[1]), dtype=np.float64)

        with tf.device(self.device):
            ns = _escape_run(
                tf.convert_to_tensor(cx, dtype=tf.float64),
                tf.convert_to_tensor(cy, dtype=tf.float64),
                tf.convert_to_tensor(zx, dtype=tf.float64),
                tf.convert_to_tensor(zy, dtype=tf.float64),
                tf.constant(self.max_iterations, dtype=tf.int32),
            )
        return ns.numpy()

