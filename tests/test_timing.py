"""Tests for segment time estimation."""

import numpy as np
import pytest

from conftest import make_vertices
from mav_timing.timing import (
    MIN_SEGMENT_TIME,
    MIN_SEGMENT_TIME_RAMP,
    compute_time_velocity_ramp,
    estimate_segment_times,
    estimate_segment_times_baca,
    estimate_segment_times_euclidean,
    estimate_segment_times_velocity_ramp,
)
from mav_timing.utils.vertices import create_random_vertices
from mav_timing.vertex import Vertex, derivative_order

ESTIMATORS = {
    "euclidean": lambda v: estimate_segment_times_euclidean(v, 2.0),
    "velocity_ramp": lambda v: estimate_segment_times_velocity_ramp(v, 2.0, 1.5),
    "baca": lambda v: estimate_segment_times_baca(v, 2.0, 1.5, 5.0),
    "dispatch": lambda v: estimate_segment_times(v, 2.0, 1.5, 5.0),
}


class TestSharedContract:
    @pytest.mark.parametrize("name", ESTIMATORS)
    def test_positive_durations(self, name) -> None:
        """One positive duration per segment for random paths."""
        for seed in range(5):
            vertices = create_random_vertices(
                derivative_order.JERK, 8, [-3.0, -3.0, -3.0], [3.0, 3.0, 3.0], seed
            )
            times = ESTIMATORS[name](vertices)
            assert len(times) == 8
            assert all(t > 0.0 for t in times)

    @pytest.mark.parametrize("name", ESTIMATORS)
    def test_coincident_vertices(self, name) -> None:
        """Zero length segments are clamped, never zero or NaN."""
        times = ESTIMATORS[name](make_vertices([[1, 1, 1], [1, 1, 1], [2, 1, 1]]))
        assert all(np.isfinite(t) and t > 0.0 for t in times)

    @pytest.mark.parametrize("name", ESTIMATORS)
    def test_too_few_vertices(self, name) -> None:
        with pytest.raises(ValueError):
            ESTIMATORS[name](make_vertices([[0, 0, 0]]))

    @pytest.mark.parametrize("name", ESTIMATORS)
    def test_missing_position(self, name) -> None:
        vertices = make_vertices([[0, 0, 0], [1, 0, 0]])
        vertices.append(Vertex(3))
        with pytest.raises(ValueError):
            ESTIMATORS[name](vertices)

    @pytest.mark.parametrize("name", ESTIMATORS)
    def test_mixed_dimensions(self, name) -> None:
        vertices = make_vertices([[0, 0, 0], [1, 0, 0]]) + make_vertices([[2, 0]])
        with pytest.raises(ValueError):
            ESTIMATORS[name](vertices)


class TestEuclidean:
    def test_unit_square(self, unit_square) -> None:
        assert estimate_segment_times_euclidean(unit_square, 1.0) == [1.0, 1.0, 1.0]

    def test_two_vertices(self) -> None:
        times = estimate_segment_times_euclidean(make_vertices([[0, 0, 0], [3, 4, 0]]), 2.0)
        assert times == [2.5]

    def test_floor(self) -> None:
        times = estimate_segment_times_euclidean(make_vertices([[0, 0], [0.001, 0]]), 1.0)
        assert times == [MIN_SEGMENT_TIME]


class TestDispatch:
    def test_ignores_acceleration_and_jerk(self, unit_square) -> None:
        """Always the euclidean estimate."""
        expected = estimate_segment_times_euclidean(unit_square, 1.0)
        assert estimate_segment_times(unit_square, 1.0, 0.1, 0.1) == expected
        assert estimate_segment_times(unit_square, 1.0, 100.0, 100.0) == expected


class TestVelocityRamp:
    def test_triangular_profile(self) -> None:
        """Short distance: accelerate half way, brake the other half."""
        t = compute_time_velocity_ramp(np.zeros(3), np.array([1.0, 0.0, 0.0]), 2.0, 1.0)
        assert t == pytest.approx(2.0 * np.sqrt(1.0))

    def test_trapezoidal_profile(self) -> None:
        # acc_time = 2, acc_distance = 2, cruise 6 m at 2 m/s
        t = compute_time_velocity_ramp(np.zeros(1), np.array([10.0]), 2.0, 1.0)
        assert t == pytest.approx(4.0 + 3.0)

    def test_continuous_at_boundary(self) -> None:
        v_max, a_max = 2.0, 1.0
        boundary = v_max**2 / a_max
        eps = 1e-9
        below = compute_time_velocity_ramp(np.zeros(1), np.array([boundary - eps]), v_max, a_max)
        at = compute_time_velocity_ramp(np.zeros(1), np.array([boundary]), v_max, a_max)
        triangular = 2.0 * np.sqrt(boundary / a_max)

        assert at == pytest.approx(triangular)
        assert below == pytest.approx(at, abs=1e-6)

    def test_floor(self) -> None:
        times = estimate_segment_times_velocity_ramp(make_vertices([[0, 0], [0, 0]]), 1.0, 1.0)
        assert times == [MIN_SEGMENT_TIME_RAMP]

    def test_per_segment(self, unit_square) -> None:
        times = estimate_segment_times_velocity_ramp(unit_square, 2.0, 1.0)
        assert times == pytest.approx([2.0, 2.0, 2.0])

    def test_time_factor_not_applied(self, unit_square) -> None:
        assert estimate_segment_times_velocity_ramp(
            unit_square, 2.0, 1.0, time_factor=3.0
        ) == estimate_segment_times_velocity_ramp(unit_square, 2.0, 1.0)


class TestBaca:
    def test_straight_path(self) -> None:
        """No turn at the middle vertex: only the open ends get an acceleration phase."""
        times = estimate_segment_times_baca(
            make_vertices([[0, 0, 0], [1, 0, 0], [2, 0, 0]]), 1.0, 1.0, 1.0
        )
        # ramp of 2 s capped at sqrt(1 / 1), no cruise left
        assert times == pytest.approx([1.0, 1.0])

    def test_single_segment(self) -> None:
        times = estimate_segment_times_baca(make_vertices([[0, 0, 0], [1, 0, 0]]), 1.0, 1.0, 1.0)
        assert times == pytest.approx([2.0])

    def test_reversal_and_right_angle(self) -> None:
        """Full acceleration budget at a reversal and at a right angle."""
        reversal = estimate_segment_times_baca(
            make_vertices([[0, 0], [1, 0], [0, 0]]), 1.0, 1.0, 1.0
        )
        corner = estimate_segment_times_baca(
            make_vertices([[0, 0], [1, 0], [1, 1]]), 1.0, 1.0, 1.0
        )
        assert reversal == pytest.approx([2.0, 2.0])
        assert corner == pytest.approx([2.0, 2.0])

    def test_partial_turn(self) -> None:
        """A 60 degree turn uses half of the nominal ramp."""
        vertices = make_vertices([[0, 0], [10, 0], [10 + 5, 5 * np.sqrt(3)]])
        times = estimate_segment_times_baca(vertices, 1.0, 1.0, 1.0)
        # nominal ramp 2 s, coefficient 0.5, caps sqrt(10) are not active
        assert times[0] == pytest.approx(9.0 + 2.0 + 1.0)
        assert times[1] == pytest.approx(9.0 + 1.0 + 2.0)

    def test_long_segment(self) -> None:
        times = estimate_segment_times_baca(make_vertices([[0.0], [10.0]]), 1.0, 1.0, 1.0)
        assert times == pytest.approx([9.0 + 2.0 + 2.0])

    def test_short_segment_cruise(self) -> None:
        """Too short to reach v_max: cruise time is distance / v_max."""
        times = estimate_segment_times_baca(make_vertices([[0.0], [0.5]]), 1.0, 1.0, 1.0)
        assert times == pytest.approx([0.5 + 2.0 * np.sqrt(0.5)])

    def test_jerk_phases_not_summed(self) -> None:
        """The jerk limit only enters through the nominal acceleration phase."""
        vertices = make_vertices([[0.0], [10.0]])
        slow_jerk = estimate_segment_times_baca(vertices, 1.0, 1.0, 0.01)
        # ramp capped at sqrt(10 / 1) on both ends
        assert slow_jerk == pytest.approx([9.0 + 2.0 * np.sqrt(10.0)])

    def test_floor(self) -> None:
        times = estimate_segment_times_baca(make_vertices([[0, 0], [0, 0]]), 1.0, 1.0, 1.0)
        assert times == [MIN_SEGMENT_TIME]
