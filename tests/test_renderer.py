import numpy as np
import pytest

from escapetime import FloatKernel
from escapetime import IterationResult
from escapetime import RenderParameters
from escapetime import Viewport
from escapetime.partition import Partition
from escapetime.partition import index_to_sample
from escapetime.renderer import FALLBACK_WORKERS
from escapetime.renderer import MAX_ITERATIONS


class TestRenderParameters:
    def test_defaults(self):
        # GIVEN/WHEN
        params = RenderParameters()

        # THEN
        assert (params.width, params.height) == (640, 480)
        assert params.max_iterations == MAX_ITERATIONS == 1000
        assert params.numeric == "float"
        assert params.total_pixels == 640 * 480

    def test_worker_count_falls_back_when_cpu_count_unknown(self, monkeypatch):
        # GIVEN
        monkeypatch.setattr("escapetime.renderer.os.cpu_count", lambda: None)

        # WHEN/THEN
        assert RenderParameters().worker_count == FALLBACK_WORKERS

    def test_explicit_worker_count(self):
        assert RenderParameters(workers=3).worker_count == 3

    @pytest.mark.parametrize(
        "kwargs, message",
        [
            [{"width": 0}, "Resolution"],
            [{"height": -4}, "Resolution"],
            [{"max_iterations": 0}, "max_iterations"],
            [{"numeric": "decimal"}, "numeric variant"],
            [{"workers": 0}, "workers"],
            [{"precision_bits": 0}, "precision_bits"],
            [{"max_bits": 0}, "max_bits"],
        ],
    )
    def test_invalid_parameters(self, kwargs, message):
        with pytest.raises(ValueError, match=message):
            RenderParameters(**kwargs)


class TestFloatEvaluate:
    def test_origin_never_escapes(self):
        # GIVEN
        kernel = FloatKernel()

        # WHEN
        result = kernel.evaluate((0.0, 0.0), (0.0, 0.0))

        # THEN
        assert result == IterationResult(escaped=False, iterations=MAX_ITERATIONS)

    def test_far_point_escapes_immediately(self):
        # GIVEN
        kernel = FloatKernel()

        # WHEN
        result = kernel.evaluate((2.0, 2.0), (0.0, 0.0))

        # THEN
        assert result.escaped
        assert result.iterations in (0, 1)

    def test_escape_boundary_is_inclusive(self):
        # GIVEN
        kernel = FloatKernel()

        # WHEN
        result = kernel.evaluate((0.0, 0.0), (2.0, 0.0))

        # THEN
        assert result == IterationResult(escaped=True, iterations=0)

    def test_point_just_inside_radius_is_not_escaped_at_zero(self):
        # GIVEN
        kernel = FloatKernel()

        # WHEN
        result = kernel.evaluate((0.0, 0.0), (1.999, 0.0))

        # THEN
        assert result.escaped
        assert result.iterations == 1

    @pytest.mark.parametrize(
        "c, expected",
        [
            [(-1.0, 0.0), IterationResult(False, 50)],
            [(0.25, 0.0), IterationResult(False, 50)],
            [(-2.0, 0.0), IterationResult(True, 1)],
            [(-1.75, 0.0), IterationResult(False, 50)],
            [(1.0, 0.0), IterationResult(True, 2)],
            [(0.0, 1.5), IterationResult(True, 2)],
        ],
    )
    def test_known_points(self, c, expected):
        # GIVEN
        kernel = FloatKernel(max_iterations=50)

        # WHEN/THEN
        assert kernel.evaluate(c) == expected


class TestFloatEscapeCounts:
    def test_matches_scalar_evaluation(self):
        # GIVEN
        width, height = 40, 30
        kernel = FloatKernel(max_iterations=150)
        viewport = Viewport(scale=1.5, center_x=-0.5, center_y=0.0)
        partition = Partition(0, width * height)

        # WHEN
        counts = kernel.escape_counts(partition, viewport, (0.0, 0.0), width, height)

        # THEN
        expected = [
            kernel.evaluate(index_to_sample(index, viewport, width, height)).iterations
            for index in partition.indices()
        ]
        np.testing.assert_array_equal(counts, expected)

    def test_empty_partition(self):
        # GIVEN
        kernel = FloatKernel()

        # WHEN
        counts = kernel.escape_counts(Partition(5, 5), Viewport(1.5, 0.0, 0.0), (0.0, 0.0), 4, 4)

        # THEN
        assert counts.shape == (0,)

    def test_start_value_seeds_recurrence(self):
        # GIVEN
        kernel = FloatKernel(max_iterations=20)
        viewport = Viewport(scale=1e-9, center_x=0.0, center_y=0.0)

        # WHEN
        counts = kernel.escape_counts(Partition(0, 4), viewport, (2.0, 0.0), 2, 2)

        # THEN
        np.testing.assert_array_equal(counts, [0, 0, 0, 0])
