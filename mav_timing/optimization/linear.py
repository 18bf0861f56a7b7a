"""Linear (closed-form) polynomial optimization."""

from __future__ import annotations

import logging

from mav_timing.optimization.optimizer import PolynomialOptimizer

logger = logging.getLogger(__name__)


class LinearOptimizer(PolynomialOptimizer):
    """Minimum derivative trajectory for fixed segment times, solved in closed form."""

    def solve(self) -> bool:
        self._trajectory = self._generate(self._segment_times, algorithm="closed-form")
        logger.debug(
            "Linear solve: %d segments, total time %.3f s",
            self._trajectory.num_segments,
            self._trajectory.max_time,
        )
        return True
