"""Waypoint constraints, segment time allocation and polynomial trajectory benchmarking."""

from mav_timing.timing import (
    compute_time_velocity_ramp,
    estimate_segment_times,
    estimate_segment_times_baca,
    estimate_segment_times_euclidean,
    estimate_segment_times_velocity_ramp,
)
from mav_timing.utils.vertices import (
    create_random_vertices,
    create_random_vertices_1d,
    create_square_vertices,
)
from mav_timing.vertex import (
    Vertex,
    VertexVector,
    derivative_order,
    position_derivative_to_string,
    vertices_to_string,
)

__all__ = [
    "Vertex",
    "VertexVector",
    "compute_time_velocity_ramp",
    "create_random_vertices",
    "create_random_vertices_1d",
    "create_square_vertices",
    "derivative_order",
    "estimate_segment_times",
    "estimate_segment_times_baca",
    "estimate_segment_times_euclidean",
    "estimate_segment_times_velocity_ramp",
    "position_derivative_to_string",
    "vertices_to_string",
]
