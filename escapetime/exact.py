"""Escape-time evaluation in exact rational arithmetic.

Every value is a :class:`fractions.Fraction`, which is kept in lowest terms
after each operation. Squaring still doubles the size of a denominator on
every iteration, so coordinates are rounded onto a dyadic grid once their
denominator outgrows it. The grid keeps ``precision_bits`` binary digits
below the pixel spacing of the frame being rendered (or below 1 when
evaluating a lone sample), so deeper zooms get a finer grid. With
``precision_bits=None`` nothing is rounded and ``max_bits`` bounds how large
a denominator may get before the evaluation is abandoned.
"""

from __future__ import annotations

from fractions import Fraction
from typing import Optional

import numpy as np

from .partition import index_to_sample
from .renderer import DEFAULT_MAX_BITS, DEFAULT_PRECISION_BITS, HORIZON, MAX_ITERATIONS, IterationResult

ZERO = (Fraction(0), Fraction(0))


class PrecisionExhaustedError(ArithmeticError):
    """Raised when an exact evaluation outgrows its bit budget."""

    def __init__(self, index: Optional[int], iteration: int, bits: int) -> None:
        self.index = index
        self.iteration = iteration
        self.bits = bits
        where = f"pixel {index}" if index is not None else "sample"
        super().__init__(f"{where} exceeded the rational size limit at iteration {iteration} ({bits} bits)")


class RationalKernel:
    """Escape-time evaluation on pairs of :class:`~fractions.Fraction`."""

    name = "rational"

    def __init__(
        self,
        max_iterations: int = MAX_ITERATIONS,
        *,
        precision_bits: Optional[int] = DEFAULT_PRECISION_BITS,
        max_bits: int = DEFAULT_MAX_BITS,
    ) -> None:
        self.max_iterations = max_iterations
        self.precision_bits = precision_bits
        self.max_bits = max_bits
        self._grid = None if precision_bits is None else 1 << precision_bits

    @staticmethod
    def number(value) -> Fraction:
        return Fraction(value)

    def sample_grid(self, viewport, height: int) -> Optional[int]:
        """Rounding denominator for a frame: ``precision_bits`` below the pixel spacing.

        Pixels are ``2 * scale / height`` apart, so the grid grows with the
        zoom depth and neighbouring samples never collapse onto one value.
        """

        if self._grid is None:
            return None
        spacing = Fraction(2) * Fraction(viewport.scale) / height
        return self._grid << max(0, _ceil_log2(1 / spacing))

    def _limit(self, value: Fraction, index: Optional[int], iteration: int, grid: Optional[int]) -> Fraction:
        if grid is None:
            bits = value.denominator.bit_length()
            if bits > self.max_bits:
                raise PrecisionExhaustedError(index, iteration, bits)
            return value
        # Anything on or coarser than the grid is already bounded.
        if value.denominator <= grid:
            return value
        return Fraction(round(value * grid), grid)

    def evaluate(self, c, start=ZERO, *, index: Optional[int] = None, grid: Optional[int] = None) -> IterationResult:
        if grid is None:
            grid = self._grid
        cx, cy = Fraction(c[0]), Fraction(c[1])
        zx, zy = Fraction(start[0]), Fraction(start[1])
        for n in range(self.max_iterations):
            zx2 = zx * zx
            zy2 = zy * zy
            if zx2 + zy2 >= HORIZON:
                return IterationResult(escaped=True, iterations=n)
            zy = self._limit(2 * zx * zy + cy, index, n, grid)
            zx = self._limit(zx2 - zy2 + cx, index, n, grid)
        return IterationResult(escaped=False, iterations=self.max_iterations)

    def escape_counts(self, partition, viewport, start, width: int, height: int) -> np.ndarray:
        """Return the iteration count of every pixel in ``partition``."""

        grid = self.sample_grid(viewport, height)
        counts = np.empty(len(partition), dtype=np.int32)
        for offset, index in enumerate(partition.indices()):
            c = index_to_sample(index, viewport, width, height, self.number)
            counts[offset] = self.evaluate(c, start, index=index, grid=grid).iterations
        return counts


def _ceil_log2(value: Fraction) -> int:
    """Smallest ``k`` with ``2 ** k >= value`` for a positive rational."""

    k = value.numerator.bit_length() - value.denominator.bit_length()
    while Fraction(2) ** k < value:
        k += 1
    while Fraction(2) ** (k - 1) >= value:
        k -= 1
    return k
