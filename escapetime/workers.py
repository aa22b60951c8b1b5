"""Barrier-synchronised worker pool and the frame coordinator that drives it.

Each frame, the coordinator and every worker pass two barriers in order:

* ``start``: the coordinator has published the frame's viewport; workers begin.
* ``end``: every worker has written its partition; the buffer is complete.

Partitions are fixed at startup and never overlap, so workers write into the
shared pixel buffer without locks.
"""

from __future__ import annotations

import threading
import time
from typing import Optional

import numpy as np

from .exact import RationalKernel
from .palette import colorize
from .partition import Partition, compute_partitions
from .renderer import FloatKernel, RenderParameters
from .viewport import FrameInput, Viewport, advance


class RenderError(RuntimeError):
    """A worker failed while computing a frame."""


def make_kernel(params: RenderParameters):
    """Build the evaluator selected by ``params.numeric``."""

    if params.numeric == "rational":
        return RationalKernel(
            params.max_iterations,
            precision_bits=params.precision_bits,
            max_bits=params.max_bits,
        )
    return FloatKernel(params.max_iterations)


def new_pixel_buffer(params: RenderParameters) -> np.ndarray:
    return np.zeros((params.total_pixels, 4), dtype=np.uint8)


class WorkerUnit(threading.Thread):
    """Renders one fixed partition of the pixel buffer, once per frame."""

    def __init__(self, number: int, partition: Partition, coordinator: "FrameCoordinator") -> None:
        super().__init__(name=f"escapetime-worker-{number}", daemon=True)
        self.number = number
        self.partition = partition
        self.state = "WaitingToStart"
        self._coordinator = coordinator

    def render(self, viewport: Viewport, start) -> None:
        coordinator = self._coordinator
        params = coordinator.params
        counts = coordinator.kernel.escape_counts(
            self.partition, viewport, start, params.width, params.height
        )
        coordinator.buffer[self.partition.start:self.partition.end] = colorize(counts, params.max_iterations)

    def run(self) -> None:
        coordinator = self._coordinator
        while True:
            self.state = "WaitingToStart"
            try:
                coordinator._start_barrier.wait()
            except threading.BrokenBarrierError:
                return
            if coordinator._stopping:
                return

            self.state = "Computing"
            try:
                self.render(coordinator.viewport, coordinator.start)
            except Exception as exc:
                coordinator._record_failure(self, exc)
                return

            self.state = "WaitingForOthers"
            try:
                coordinator._end_barrier.wait()
            except threading.BrokenBarrierError:
                return


class FrameCoordinator:
    """Owns the viewport and releases the worker pool once per frame."""

    def __init__(
        self,
        params: Optional[RenderParameters] = None,
        viewport: Optional[Viewport] = None,
        *,
        buffer: Optional[np.ndarray] = None,
        start=(0, 0),
    ) -> None:
        self.params = params if params is not None else RenderParameters()
        self.kernel = make_kernel(self.params)
        self.number = self.kernel.number

        if viewport is None:
            viewport = Viewport.create(number=self.number)
        self.viewport = Viewport(
            scale=self.number(viewport.scale),
            center_x=self.number(viewport.center_x),
            center_y=self.number(viewport.center_y),
        )
        # z_0 shared by every worker for every frame.
        self.start = (self.number(start[0]), self.number(start[1]))

        if buffer is None:
            buffer = new_pixel_buffer(self.params)
        if buffer.shape != (self.params.total_pixels, 4) or buffer.dtype != np.uint8:
            raise ValueError(
                f"Pixel buffer must be uint8 with shape ({self.params.total_pixels}, 4), "
                f"got {buffer.dtype} {buffer.shape}."
            )
        self.buffer = buffer

        workers = self.params.worker_count
        self.partitions = compute_partitions(self.params.total_pixels, workers)
        self._start_barrier = threading.Barrier(workers + 1)
        self._end_barrier = threading.Barrier(workers + 1)
        self._workers = [WorkerUnit(number, partition, self) for number, partition in enumerate(self.partitions)]

        self._stopping = False
        self._started = False
        self._failure: Optional[tuple[WorkerUnit, BaseException]] = None
        self._failure_lock = threading.Lock()

        self.frames_rendered = 0
        self.last_frame_seconds = 0.0

    @property
    def workers(self) -> list[WorkerUnit]:
        return list(self._workers)

    def start(self) -> "FrameCoordinator":
        if self._started:
            return self
        self._started = True
        for worker in self._workers:
            worker.start()
        return self

    def advance(self, frame_input: FrameInput, elapsed) -> Viewport:
        """Apply one frame of input deltas. Only valid between frames."""

        self.viewport = advance(self.viewport, frame_input, elapsed, self.number)
        return self.viewport

    def render_frame(self) -> np.ndarray:
        """Release the workers for one pass and wait until the buffer is complete."""

        if self._stopping:
            raise RenderError("Coordinator has been closed.")
        self._raise_failure()
        self.start()

        began = time.perf_counter()
        try:
            self._start_barrier.wait()
            self._end_barrier.wait()
        except threading.BrokenBarrierError:
            self._raise_failure()
            raise RenderError("Frame barrier was broken before the frame completed.")

        self.last_frame_seconds = time.perf_counter() - began
        self.frames_rendered += 1
        return self.buffer

    def step(self, frame_input: FrameInput, elapsed) -> np.ndarray:
        self.advance(frame_input, elapsed)
        return self.render_frame()

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop the worker pool and wait for every worker thread to exit."""

        if self._stopping:
            return
        self._stopping = True
        if not self._started:
            return
        if self._failure is None and not self._start_barrier.broken:
            try:
                # Workers wake, see the stop flag and return.
                self._start_barrier.wait()
            except threading.BrokenBarrierError:
                pass
        else:
            self._start_barrier.abort()
            self._end_barrier.abort()
        for worker in self._workers:
            worker.join(timeout)

    def __enter__(self) -> "FrameCoordinator":
        return self.start()

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _record_failure(self, worker: WorkerUnit, exc: BaseException) -> None:
        with self._failure_lock:
            if self._failure is None:
                self._failure = (worker, exc)
        self._start_barrier.abort()
        self._end_barrier.abort()

    def _raise_failure(self) -> None:
        if self._failure is None:
            return
        worker, exc = self._failure
        partition = worker.partition
        raise RenderError(
            f"{worker.name} failed on pixels [{partition.start}, {partition.end}) "
            f"after {self.frames_rendered} frames: {exc}"
        ) from exc
