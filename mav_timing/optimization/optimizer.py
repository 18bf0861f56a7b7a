"""Polynomial optimizer interface.

Explanation:
    An optimizer is set up from a vertex sequence, the segment times and the derivative whose
    squared integral is minimized. After a successful `solve()` the piecewise polynomial result
    is available through `get_trajectory()`. The benchmark only talks to this interface.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Sequence

import minsnap_trajectories as ms
import numpy as np

from mav_timing.vertex import Vertex, derivative_order

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

logger = logging.getLogger(__name__)

# Waypoint fields of minsnap-trajectories by derivative order
_WAYPOINT_FIELDS = {
    derivative_order.VELOCITY: "velocity",
    derivative_order.ACCELERATION: "acceleration",
    derivative_order.JERK: "jerk",
}


class Trajectory:
    """Piecewise polynomial trajectory starting at t = 0."""

    def __init__(self, polys, segment_times: Sequence[float], dimension: int):
        self._polys = polys
        self._segment_times = np.array(segment_times, dtype=np.float64)
        self._dimension = dimension

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def segment_times(self) -> list[float]:
        return self._segment_times.tolist()

    @property
    def num_segments(self) -> int:
        return len(self._segment_times)

    @property
    def max_time(self) -> float:
        return float(np.sum(self._segment_times))

    def evaluate_all(self, t: ArrayLike, num_derivatives: int) -> NDArray[np.floating]:
        """Evaluate position and the first `num_derivatives - 1` derivatives.

        Args:
            t: Sample times, clipped to [0, max_time].
            num_derivatives: Number of derivatives to compute, including the position.

        Returns:
            Array of shape (num_derivatives, len(t), dimension).
        """
        t = np.clip(np.atleast_1d(np.asarray(t, dtype=np.float64)), 0.0, self.max_time)
        return np.asarray(ms.compute_trajectory_derivatives(self._polys, t, num_derivatives))

    def evaluate(self, t: ArrayLike, order: int = derivative_order.POSITION) -> NDArray[np.floating]:
        """Evaluate a single derivative. A scalar time gives a vector of length `dimension`."""
        values = self.evaluate_all(t, order + 1)[order]
        if np.ndim(t) == 0:
            return values[0]
        return values


class PolynomialOptimizer(ABC):
    """Base class for optimizer back-ends."""

    def __init__(self, dimension: int, degree: int = 8, num_continuous_orders: int = 4):
        """Initialize the optimizer.

        Args:
            dimension: Spatial dimension of the vertices.
            degree: Polynomial degree of each segment.
            num_continuous_orders: Derivatives (starting with the position) that are continuous
                across intermediate vertices.
        """
        self.dimension = dimension
        self.degree = degree
        self.num_continuous_orders = num_continuous_orders

        self._vertices: list[Vertex] = []
        self._segment_times: NDArray[np.floating] = np.zeros(0)
        self._derivative_to_optimize = derivative_order.SNAP
        self._trajectory: Trajectory | None = None

    def setup_from_vertices(
        self,
        vertices: Sequence[Vertex],
        segment_times: Sequence[float],
        derivative_to_optimize: int,
    ) -> None:
        """Store the problem. Any previous solution is discarded."""
        if len(vertices) < 2:
            raise ValueError(f"At least two vertices are required, got {len(vertices)}")
        if len(segment_times) != len(vertices) - 1:
            raise ValueError(
                f"Got {len(segment_times)} segment times for {len(vertices) - 1} segments"
            )
        if any(t <= 0.0 for t in segment_times):
            raise ValueError(f"Segment times must be positive, got {list(segment_times)}")
        for i, vertex in enumerate(vertices):
            if vertex.dimension != self.dimension:
                raise ValueError(
                    f"Vertex {i} has dimension {vertex.dimension}, optimizer uses {self.dimension}"
                )
            if not vertex.has_constraint(derivative_order.POSITION):
                raise ValueError(f"Vertex {i} has no position constraint")
        if derivative_to_optimize < derivative_order.VELOCITY:
            raise ValueError(f"Cannot minimize derivative order {derivative_to_optimize}")

        self._vertices = [vertex.copy() for vertex in vertices]
        self._segment_times = np.array(segment_times, dtype=np.float64)
        self._derivative_to_optimize = derivative_to_optimize
        self._trajectory = None

        self._post_setup()

    def _post_setup(self):
        """Hook for derived classes."""
        pass

    @abstractmethod
    def solve(self) -> bool:
        """Compute the trajectory. Returns True on success."""
        ...

    def get_trajectory(self) -> Trajectory:
        if self._trajectory is None:
            raise RuntimeError("No trajectory available, call setup_from_vertices() and solve()")
        return self._trajectory

    def _generate(self, segment_times: NDArray[np.floating], algorithm: str) -> Trajectory:
        """Run minsnap-trajectories on the stored vertices with the given segment times."""
        refs = self._make_refs(segment_times)
        polys = ms.generate_trajectory(
            refs,
            degree=self.degree,
            idx_minimized_orders=(self._derivative_to_optimize,),
            num_continuous_orders=self.num_continuous_orders,
            algorithm=algorithm,
        )
        return Trajectory(polys, segment_times, self.dimension)

    def _make_refs(self, segment_times: NDArray[np.floating]) -> list[ms.Waypoint]:
        """Create the references for the minsnap-trajectories library."""
        times = np.concatenate(([0.0], np.cumsum(segment_times)))
        refs = []
        for time, vertex in zip(times, self._vertices):
            kwargs = {}
            for order, value in vertex.items():
                if order == derivative_order.POSITION:
                    continue
                field = _WAYPOINT_FIELDS.get(order)
                if field is None:
                    logger.warning("Dropping constraint of derivative order %d", order)
                    continue
                kwargs[field] = value
            refs.append(
                ms.Waypoint(
                    time=float(time),
                    position=vertex.get_constraint(derivative_order.POSITION),
                    **kwargs,
                )
            )
        return refs
