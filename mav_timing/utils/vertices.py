"""Vertex sequences for tests and benchmarks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from mav_timing.vertex import Vertex, derivative_order

if TYPE_CHECKING:
    from numpy.typing import ArrayLike

logger = logging.getLogger(__name__)

MIN_VERTEX_DISTANCE = 0.2


def create_random_vertices(
    maximum_derivative: int,
    n_segments: int,
    pos_min: ArrayLike,
    pos_max: ArrayLike,
    seed: int,
) -> list[Vertex]:
    """Random waypoints inside an axis aligned box.

    Consecutive waypoints are always more than `MIN_VERTEX_DISTANCE` apart. The first and last
    vertex are rest vertices up to `maximum_derivative`.

    Args:
        maximum_derivative: Highest derivative pinned to zero at start and end.
        n_segments: Number of segments, the result has one vertex more.
        pos_min: Lower corner of the sampling box.
        pos_max: Upper corner of the sampling box.
        seed: Seed of the local random generator. Equal seeds give equal sequences.

    Returns:
        The vertex sequence.
    """
    pos_min = np.atleast_1d(np.asarray(pos_min, dtype=np.float64))
    pos_max = np.atleast_1d(np.asarray(pos_max, dtype=np.float64))
    if n_segments < 1:
        raise ValueError(f"n_segments must be >= 1, got {n_segments}")
    if pos_min.shape != pos_max.shape:
        raise ValueError(f"pos_min {pos_min.shape} and pos_max {pos_max.shape} differ in size")
    if np.linalg.norm(pos_max - pos_min) < MIN_VERTEX_DISTANCE:
        raise ValueError(
            f"Sampling box too small, |pos_max - pos_min| must be >= {MIN_VERTEX_DISTANCE}"
        )
    if maximum_derivative <= 0:
        raise ValueError(f"maximum_derivative must be > 0, got {maximum_derivative}")

    generator = np.random.default_rng(seed)
    dimension = pos_min.shape[0]

    last_pos = generator.uniform(pos_min, pos_max)
    first = Vertex(dimension)
    first.make_start_or_end(last_pos, maximum_derivative)
    vertices = [first]

    rejected = 0
    for _ in range(n_segments):
        while True:
            pos = generator.uniform(pos_min, pos_max)
            if np.linalg.norm(pos - last_pos) > MIN_VERTEX_DISTANCE:
                break
            rejected += 1

        vertex = Vertex(dimension)
        vertex.add_constraint(derivative_order.POSITION, pos)
        vertices.append(vertex)
        last_pos = pos

    vertices[-1].make_start_or_end(last_pos, maximum_derivative)
    logger.debug(
        "Created %d random vertices (seed %s), rejected %d samples", len(vertices), seed, rejected
    )

    return vertices


def create_random_vertices_1d(
    maximum_derivative: int, n_segments: int, pos_min: float, pos_max: float, seed: int
) -> list[Vertex]:
    """One dimensional version of `create_random_vertices`."""
    return create_random_vertices(maximum_derivative, n_segments, [pos_min], [pos_max], seed)


def create_square_vertices(
    maximum_derivative: int, center: ArrayLike, side_length: float, rounds: int
) -> list[Vertex]:
    """Laps around a horizontal square, starting and ending at rest in the same corner.

    Returns:
        `4 * rounds + 1` vertices.
    """
    center = np.asarray(center, dtype=np.float64)
    if center.shape != (3,):
        raise ValueError(f"center must have 3 entries, got shape {center.shape}")
    if rounds < 1:
        raise ValueError(f"rounds must be >= 1, got {rounds}")

    half = side_length / 2.0
    cx, cy, cz = center
    corners = [
        np.array([cx - half, cy - half, cz]),
        np.array([cx - half, cy + half, cz]),
        np.array([cx + half, cy + half, cz]),
        np.array([cx + half, cy - half, cz]),
    ]
    corner_vertices = []
    for corner in corners:
        vertex = Vertex(3)
        vertex.add_constraint(derivative_order.POSITION, corner)
        corner_vertices.append(vertex)

    v1, v2, v3, v4 = corner_vertices
    vertices = [v1.copy()]
    vertices[0].make_start_or_end(corners[0], maximum_derivative)
    for _ in range(rounds):
        vertices.extend([v2.copy(), v3.copy(), v4.copy(), v1.copy()])
    vertices[-1].make_start_or_end(corners[0], maximum_derivative)

    return vertices
