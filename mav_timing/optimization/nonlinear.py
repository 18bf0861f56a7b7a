"""Polynomial optimization with maximum magnitude constraints.

How it Works:
    The trajectory is solved with minsnap-trajectories (closed-form by default) for the current
    segment times. The result is sampled and, as long as a constrained derivative exceeds its
    maximum magnitude, all segment times are stretched and the problem is solved again. For a
    derivative of order k, stretching time by a factor s scales its magnitude by 1 / s^k.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from mav_timing.optimization.optimizer import PolynomialOptimizer
from mav_timing.utils.sampling import sample_times
from mav_timing.vertex import derivative_order, position_derivative_to_string

logger = logging.getLogger(__name__)


@dataclass
class NonlinearOptimizationParameters:
    """Settings of the time stretching loop."""

    max_iterations: int = 10
    max_time_scaling: float = 2.0
    sampling_interval: float = 0.05
    tolerance: float = 1e-3
    algorithm: str = "closed-form"


class NonlinearOptimizer(PolynomialOptimizer):
    """Optimizer that respects maximum velocity, acceleration, ... magnitudes."""

    def __init__(
        self,
        dimension: int,
        parameters: NonlinearOptimizationParameters | None = None,
        degree: int = 8,
        num_continuous_orders: int = 4,
    ):
        super().__init__(dimension, degree, num_continuous_orders)
        self.parameters = parameters or NonlinearOptimizationParameters()
        self._magnitude_constraints: dict[int, float] = {}
        self.iterations = 0

    def add_maximum_magnitude_constraint(self, order: int, maximum_value: float) -> None:
        """Limit the norm of a derivative over the whole trajectory."""
        if order < derivative_order.VELOCITY:
            raise ValueError(f"Magnitude constraints need order >= 1, got {order}")
        if maximum_value <= 0.0:
            raise ValueError(f"Maximum magnitude must be > 0, got {maximum_value}")
        self._magnitude_constraints[order] = float(maximum_value)

    def solve(self) -> bool:
        return self.optimize()

    def optimize(self) -> bool:
        """Solve and stretch segment times until all magnitude constraints hold.

        Returns:
            True if the final trajectory satisfies every constraint.
        """
        segment_times = self._segment_times.copy()
        params = self.parameters

        self.iterations = 0
        while True:
            try:
                trajectory = self._generate(segment_times, algorithm=params.algorithm)
            except RuntimeError as e:
                logger.warning(
                    "Polynomial solver failed in iteration %d: %s", self.iterations + 1, e
                )
                return False
            self._trajectory = trajectory
            self.iterations += 1

            scaling = self._required_time_scaling(trajectory)
            if scaling <= 1.0 + params.tolerance:
                logger.debug(
                    "Nonlinear optimization converged after %d iterations, total time %.3f s",
                    self.iterations,
                    trajectory.max_time,
                )
                return True
            if self.iterations >= params.max_iterations:
                logger.warning(
                    "Magnitude constraints still violated after %d iterations (scaling %.3f)",
                    self.iterations,
                    scaling,
                )
                return False

            segment_times = segment_times * min(scaling, params.max_time_scaling)

    def _required_time_scaling(self, trajectory) -> float:
        if not self._magnitude_constraints:
            return 1.0

        max_order = max(self._magnitude_constraints)
        times = sample_times(trajectory.max_time, self.parameters.sampling_interval)
        derivatives = trajectory.evaluate_all(times, max_order + 1)

        scaling = 1.0
        for order, maximum in self._magnitude_constraints.items():
            peak = float(np.max(np.linalg.norm(derivatives[order], axis=1)))
            if peak > maximum:
                logger.debug(
                    "%s peak %.3f above limit %.3f",
                    position_derivative_to_string(order),
                    peak,
                    maximum,
                )
                scaling = max(scaling, (peak / maximum) ** (1.0 / order))
        return scaling
