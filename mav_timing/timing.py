"""Segment time allocation.

Explanation:
    Every estimator maps a vertex sequence and the vehicle's dynamic limits to one duration per
    segment (pair of consecutive vertices). Durations are clamped from below so that the
    polynomial optimization that consumes them stays well posed.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Sequence

import numpy as np

from mav_timing.vertex import Vertex, derivative_order

if TYPE_CHECKING:
    from numpy.typing import NDArray

logger = logging.getLogger(__name__)

MIN_SEGMENT_TIME = 0.01  # Euclidean and Baca floor
MIN_SEGMENT_TIME_RAMP = 0.1


def estimate_segment_times(
    vertices: Sequence[Vertex], v_max: float, a_max: float, j_max: float = 0.0
) -> list[float]:
    """General entry point for segment time estimation.

    Note:
        Currently always uses `estimate_segment_times_euclidean`, `a_max` and `j_max` are not
        taken into account.
    """
    logger.debug(
        "estimate_segment_times: using euclidean estimate, a_max=%s and j_max=%s unused",
        a_max,
        j_max,
    )
    return estimate_segment_times_euclidean(vertices, v_max)


def estimate_segment_times_euclidean(vertices: Sequence[Vertex], v_max: float) -> list[float]:
    """Straight line distance divided by the maximum velocity."""
    positions = _positions(vertices)

    segment_times = []
    for start, end in zip(positions[:-1], positions[1:]):
        distance = np.linalg.norm(end - start)
        segment_times.append(max(MIN_SEGMENT_TIME, float(distance / v_max)))

    return segment_times


def estimate_segment_times_velocity_ramp(
    vertices: Sequence[Vertex], v_max: float, a_max: float, time_factor: float = 1.0
) -> list[float]:
    """Trapezoidal velocity profile per segment.

    Args:
        vertices: Waypoints, each with a position constraint.
        v_max: Maximum velocity.
        a_max: Maximum acceleration.
        time_factor: Kept for interface compatibility, not applied.

    Returns:
        One duration per segment, at least `MIN_SEGMENT_TIME_RAMP`.
    """
    positions = _positions(vertices)

    segment_times = []
    for start, end in zip(positions[:-1], positions[1:]):
        t = compute_time_velocity_ramp(start, end, v_max, a_max)
        segment_times.append(max(MIN_SEGMENT_TIME_RAMP, t))

    return segment_times


def compute_time_velocity_ramp(
    start: NDArray[np.floating], goal: NDArray[np.floating], v_max: float, a_max: float
) -> float:
    """Time to travel from start to goal, accelerating and braking at `a_max`.

    If the distance is too short to ever reach `v_max` the profile is triangular, otherwise it
    is a trapezoid with a cruise phase at `v_max`.
    """
    distance = float(np.linalg.norm(np.asarray(goal) - np.asarray(start)))
    # time and distance needed to reach v_max from rest
    acc_time = v_max / a_max
    acc_distance = 0.5 * v_max * acc_time

    if distance < 2.0 * acc_distance:
        return 2.0 * math.sqrt(distance / a_max)
    return 2.0 * acc_time + (distance - 2.0 * acc_distance) / v_max


def estimate_segment_times_baca(
    vertices: Sequence[Vertex], v_max: float, a_max: float, j_max: float
) -> list[float]:
    """Heuristic that accounts for braking in corners.

    At each vertex the acceleration phase is scaled by how sharply the path turns there:
    `1 - max(0, dot(incoming, outgoing))` on the unit direction vectors. A straight
    continuation needs no extra time, a reversal (or an open end) the full ramp.

    Returns:
        One duration per segment, at least `MIN_SEGMENT_TIME`.
    """
    positions = _positions(vertices)
    n_segments = len(positions) - 1

    acc_time_nominal = (v_max / a_max) + (a_max / j_max)
    jerk_time_nominal = 2.0 * (a_max / j_max)

    segment_times = []
    for i in range(n_segments):
        start = positions[i]
        end = positions[i + 1]
        distance = float(np.linalg.norm(end - start))

        if i == 0:
            acc_1_coeff = 1.0
        else:
            acc_1_coeff = _turn_coefficient(positions[i - 1], start, end)

        if i == n_segments - 1:
            acc_2_coeff = 1.0
        else:
            acc_2_coeff = _turn_coefficient(start, end, positions[i + 2])

        acceleration_time_1 = acc_1_coeff * acc_time_nominal
        acceleration_time_2 = acc_2_coeff * acc_time_nominal
        jerk_time_1 = acc_1_coeff * jerk_time_nominal
        jerk_time_2 = acc_2_coeff * jerk_time_nominal

        max_acc_time = math.sqrt(distance / a_max)
        max_jerk_time = math.sqrt(v_max / j_max)
        acceleration_time_1 = min(acceleration_time_1, max_acc_time)
        acceleration_time_2 = min(acceleration_time_2, max_acc_time)
        jerk_time_1 = min(jerk_time_1, max_jerk_time)
        jerk_time_2 = min(jerk_time_2, max_jerk_time)

        cruise_distance = distance - (v_max * v_max) / a_max
        if cruise_distance < 0:
            max_velocity_time = distance / v_max
        else:
            max_velocity_time = cruise_distance / v_max

        # jerk phases are not part of the total
        t = max_velocity_time + acceleration_time_1 + acceleration_time_2
        logger.debug(
            "baca segment %d: d=%.3f coeffs=(%.3f, %.3f) jerk=(%.3f, %.3f) t=%.3f",
            i,
            distance,
            acc_1_coeff,
            acc_2_coeff,
            jerk_time_1,
            jerk_time_2,
            t,
        )
        segment_times.append(max(MIN_SEGMENT_TIME, t))

    return segment_times


def _turn_coefficient(
    before: NDArray[np.floating], at: NDArray[np.floating], after: NDArray[np.floating]
) -> float:
    vec1 = _normalized(at - before)
    vec2 = _normalized(after - at)
    scalar = max(0.0, float(np.dot(vec1, vec2)))
    return 1.0 - scalar


def _normalized(vec: NDArray[np.floating]) -> NDArray[np.floating]:
    norm = np.linalg.norm(vec)
    if norm > 0.0:
        return vec / norm
    return vec


def _positions(vertices: Sequence[Vertex]) -> list[NDArray[np.floating]]:
    """Position constraints of all vertices, validating the estimator preconditions."""
    if len(vertices) < 2:
        raise ValueError(f"At least two vertices are required, got {len(vertices)}")

    dimension = vertices[0].dimension
    positions = []
    for i, vertex in enumerate(vertices):
        if vertex.dimension != dimension:
            raise ValueError(
                f"Vertex {i} has dimension {vertex.dimension}, expected {dimension}"
            )
        position = vertex.get_constraint(derivative_order.POSITION)
        if position is None:
            raise ValueError(f"Vertex {i} has no position constraint")
        positions.append(position)
    return positions
