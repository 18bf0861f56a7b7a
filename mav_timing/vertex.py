"""Waypoint constraint model.

How it Works:
    A vertex is a single waypoint of a trajectory. It stores, per derivative order, the value
    that derivative has to take when the trajectory passes the waypoint. Position constraints
    are mandatory for the time estimators, everything above is optional. A start or end vertex
    pins all derivatives above the position to zero, i.e. the vehicle is at rest.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterator, Sequence

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray


class derivative_order:  # noqa: N801
    """Derivative orders used as constraint keys."""

    POSITION = 0
    VELOCITY = 1
    ACCELERATION = 2
    JERK = 3
    SNAP = 4
    INVALID = -1


_DERIVATIVE_NAMES = ("position", "velocity", "acceleration", "jerk", "snap")


def position_derivative_to_string(order: int) -> str:
    """Human readable name of a derivative order, "invalid" if unknown."""
    if derivative_order.POSITION <= order <= derivative_order.SNAP:
        return _DERIVATIVE_NAMES[order]
    return "invalid"


class Vertex:
    """A waypoint together with its per-derivative constraints."""

    def __init__(self, dimension: int):
        """Create an unconstrained vertex.

        Args:
            dimension: Number of spatial axes. Fixed for the lifetime of the vertex.
        """
        if dimension < 1:
            raise ValueError(f"Vertex dimension must be >= 1, got {dimension}")
        self._dimension = int(dimension)
        self._constraints: dict[int, NDArray[np.floating]] = {}

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def constraints(self) -> dict[int, NDArray[np.floating]]:
        """Copy of the constraint map, ordered by derivative order."""
        return {order: value.copy() for order, value in self.items()}

    @property
    def num_constraints(self) -> int:
        return len(self._constraints)

    def items(self) -> Iterator[tuple[int, NDArray[np.floating]]]:
        for order in sorted(self._constraints):
            yield order, self._constraints[order]

    def add_constraint(self, order: int, value: ArrayLike) -> None:
        """Add or overwrite the constraint for a derivative order.

        Args:
            order: Derivative order, see `derivative_order`.
            value: Constraint vector, one entry per axis.
        """
        value = np.array(value, dtype=np.float64).reshape(-1)
        if value.shape[0] != self._dimension:
            raise ValueError(
                f"Constraint of order {order} has {value.shape[0]} entries, "
                f"vertex dimension is {self._dimension}"
            )
        self._constraints[int(order)] = value

    def remove_constraint(self, order: int) -> bool:
        """Remove a constraint. Returns False if there was nothing to remove."""
        return self._constraints.pop(order, None) is not None

    def make_start_or_end(self, position: ArrayLike, up_to_derivative: int) -> None:
        """Turn this vertex into a rest vertex at `position`.

        All derivatives from velocity up to and including `up_to_derivative` are set to zero.
        """
        self.add_constraint(derivative_order.POSITION, position)
        for order in range(1, up_to_derivative + 1):
            self._constraints[order] = np.zeros(self._dimension)

    def get_constraint(self, order: int) -> NDArray[np.floating] | None:
        """Return a copy of the constraint value or None if the order is not constrained."""
        value = self._constraints.get(order)
        if value is None:
            return None
        return value.copy()

    def has_constraint(self, order: int) -> bool:
        return order in self._constraints

    def is_equal_tol(self, other: Vertex, tol: float) -> bool:
        """Compare two vertices with an elementwise absolute tolerance.

        Both vertices need the same set of constrained orders. Vectors of different length are
        never equal.
        """
        if self._constraints.keys() != other._constraints.keys():
            return False
        for order, value in self._constraints.items():
            other_value = other._constraints[order]
            if value.shape != other_value.shape:
                return False
            if np.any(np.abs(value - other_value) > tol):
                return False
        return True

    def get_subdimension(
        self, subdimensions: Sequence[int], max_derivative_order: int
    ) -> Vertex | None:
        """Project the vertex onto a subset of its axes.

        Args:
            subdimensions: Axis indices to keep, in the order they appear in the result.
            max_derivative_order: Constraints above this order are not copied.

        Returns:
            The projected vertex, or None if `subdimensions` is empty or an index is outside
            [0, dimension).
        """
        indices = [int(i) for i in subdimensions]
        if not indices or any(i < 0 or i >= self._dimension for i in indices):
            return None

        subvertex = Vertex(len(indices))
        for order, value in self.items():
            if order > max_derivative_order:
                continue
            subvertex.add_constraint(order, value[indices])
        return subvertex

    def copy(self) -> Vertex:
        vertex = Vertex(self._dimension)
        for order, value in self._constraints.items():
            vertex._constraints[order] = value.copy()
        return vertex

    def __str__(self) -> str:
        lines = ["constraints: "]
        for order, value in self.items():
            lines.append(
                f"  type: {position_derivative_to_string(order)}  value: {_format_vector(value)}"
            )
        return "\n".join(lines) + "\n"

    def __repr__(self) -> str:
        orders = ", ".join(position_derivative_to_string(order) for order, _ in self.items())
        return f"Vertex(dimension={self._dimension}, constraints=[{orders}])"


VertexVector = list[Vertex]


def vertices_to_string(vertices: Sequence[Vertex]) -> str:
    """Format a vertex sequence, one block per vertex."""
    return "".join(f"{vertex}\n" for vertex in vertices)


def _format_vector(value: NDArray[np.floating]) -> str:
    return "[" + ", ".join(f"{x:.4g}" for x in value) + "]"
