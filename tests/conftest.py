from __future__ import annotations

import numpy as np
import pytest

from mav_timing.vertex import Vertex, derivative_order


def make_vertices(positions, up_to_derivative: int = 0) -> list[Vertex]:
    """Position-only vertices; with `up_to_derivative` > 0 the ends are rest vertices."""
    positions = np.atleast_2d(np.asarray(positions, dtype=np.float64))
    vertices = []
    for position in positions:
        vertex = Vertex(len(position))
        vertex.add_constraint(derivative_order.POSITION, position)
        vertices.append(vertex)
    if up_to_derivative > 0:
        vertices[0].make_start_or_end(positions[0], up_to_derivative)
        vertices[-1].make_start_or_end(positions[-1], up_to_derivative)
    return vertices


@pytest.fixture
def unit_square() -> list[Vertex]:
    return make_vertices([[0, 0, 0], [0, 1, 0], [1, 1, 0], [1, 0, 0]])
