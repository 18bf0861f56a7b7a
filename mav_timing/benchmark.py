"""Benchmark of time allocation methods.

How it Works:
    Each trial draws random waypoints (the trial number is the seed), allocates segment times and
    hands vertices and times to every registered optimizer back-end. The resulting trajectories
    are sampled and compared by duration, path length and peak velocity/acceleration.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable

import numpy as np

from mav_timing.optimization import (
    LinearOptimizer,
    NonlinearOptimizationParameters,
    NonlinearOptimizer,
    PolynomialOptimizer,
    Trajectory,
)
from mav_timing.timing import estimate_segment_times
from mav_timing.utils.sampling import compute_path_length, sample_whole_trajectory
from mav_timing.utils.vertices import create_random_vertices
from mav_timing.vertex import Vertex, derivative_order

if TYPE_CHECKING:
    from ml_collections import ConfigDict

logger = logging.getLogger(__name__)

BOUNDS_TOLERANCE = 1e-2  # relative


@dataclass
class TimeAllocationBenchmarkResult:
    # Evaluation settings
    trial_number: int = -1
    method_name: str = "none"

    # Trajectory settings
    num_segments: int = 0
    nominal_length: float = 0.0

    # Evaluation results
    optimization_success: bool = False
    bounds_violated: bool = False
    trajectory_time: float = 0.0
    trajectory_length: float = 0.0
    computation_time: float = 0.0
    v_max_actual: float = 0.0
    a_max_actual: float = 0.0


class TimeEvaluation:
    """Runs benchmark trials and collects their results."""

    def __init__(
        self,
        config: ConfigDict | dict | None = None,
        linear_optimizer: Callable[..., PolynomialOptimizer] = LinearOptimizer,
        nonlinear_optimizer: Callable[..., NonlinearOptimizer] = NonlinearOptimizer,
    ):
        """Initialize the benchmark.

        Args:
            config: Configuration with optional `benchmark` and `optimizer` sections.
            linear_optimizer: Factory for the linear back-end.
            nonlinear_optimizer: Factory for the nonlinear back-end.
        """
        benchmark = _section(config, "benchmark")
        optimizer = _section(config, "optimizer")

        # Dynamic constraints
        self.v_max = float(benchmark.get("v_max", 1.0))
        self.a_max = float(benchmark.get("a_max", 2.0))
        self.j_max = float(benchmark.get("j_max", 10.0))

        # General trajectory settings
        self.max_derivative_order = int(benchmark.get("max_derivative_order", derivative_order.JERK))
        self.dimension = int(benchmark.get("dimension", 3))
        self.position_bound = float(benchmark.get("position_bound", 5.0))
        self.sampling_interval = float(benchmark.get("sampling_interval", 0.1))

        # Optimizer settings
        self.degree = int(optimizer.get("degree", 8))
        self.num_continuous_orders = int(optimizer.get("num_continuous_orders", 4))
        self.derivative_to_optimize = int(
            optimizer.get("derivative_to_optimize", self.max_derivative_order)
        )
        self.nonlinear_parameters = NonlinearOptimizationParameters(
            max_iterations=int(optimizer.get("max_iterations", 10)),
            max_time_scaling=float(optimizer.get("max_time_scaling", 2.0)),
            algorithm=str(optimizer.get("algorithm", "closed-form")),
        )

        self._linear_optimizer = linear_optimizer
        self._nonlinear_optimizer = nonlinear_optimizer
        self.methods: dict[str, Callable[[list[Vertex]], tuple[Trajectory | None, bool]]] = {
            "linear": self.run_linear,
            "nonlinear": self.run_nonlinear,
        }

        self.results: list[TimeAllocationBenchmarkResult] = []
        self.trajectories: dict[str, Trajectory] = {}

    def run_benchmark(self, trial_number: int, num_segments: int) -> list[TimeAllocationBenchmarkResult]:
        """Run one trial with every registered method.

        Returns:
            The results of this trial, also appended to `results`.
        """
        min_pos = np.full(self.dimension, -self.position_bound)
        max_pos = -min_pos
        vertices = create_random_vertices(
            self.max_derivative_order, num_segments, min_pos, max_pos, trial_number
        )

        base = TimeAllocationBenchmarkResult(
            trial_number=trial_number,
            num_segments=num_segments,
            nominal_length=compute_nominal_length(vertices),
        )

        trial_results = []
        self.trajectories = {}
        for method_name, method in self.methods.items():
            result = dataclasses.replace(base)
            start = time.perf_counter()
            trajectory, success = method(vertices)
            result.computation_time = time.perf_counter() - start
            result.optimization_success = success
            result.method_name = method_name
            trial_results.append(result)
            if trajectory is None:
                logger.warning("Trial %d [%s]: no trajectory", trial_number, method_name)
                continue

            self.evaluate_trajectory(method_name, trajectory, result)
            self.trajectories[method_name] = trajectory
            logger.info(
                "Trial %d [%s]: time %.2f s, length %.2f m, v_max %.2f, a_max %.2f%s",
                trial_number,
                method_name,
                result.trajectory_time,
                result.trajectory_length,
                result.v_max_actual,
                result.a_max_actual,
                " (bounds violated)" if result.bounds_violated else "",
            )

        self.results.extend(trial_results)
        return trial_results

    def run_linear(self, vertices: list[Vertex]) -> tuple[Trajectory, bool]:
        segment_times = estimate_segment_times(vertices, self.v_max, self.a_max, self.j_max)

        linopt = self._linear_optimizer(
            self.dimension, degree=self.degree, num_continuous_orders=self.num_continuous_orders
        )
        linopt.setup_from_vertices(vertices, segment_times, self.derivative_to_optimize)
        success = linopt.solve()
        return linopt.get_trajectory(), success

    def run_nonlinear(self, vertices: list[Vertex]) -> tuple[Trajectory | None, bool]:
        segment_times = estimate_segment_times(vertices, self.v_max, self.a_max, self.j_max)

        nlopt = self._nonlinear_optimizer(
            self.dimension,
            self.nonlinear_parameters,
            degree=self.degree,
            num_continuous_orders=self.num_continuous_orders,
        )
        nlopt.setup_from_vertices(vertices, segment_times, self.derivative_to_optimize)
        nlopt.add_maximum_magnitude_constraint(derivative_order.VELOCITY, self.v_max)
        nlopt.add_maximum_magnitude_constraint(derivative_order.ACCELERATION, self.a_max)
        success = nlopt.optimize()
        # A solver failure in the first iteration leaves no trajectory.
        if nlopt.iterations == 0:
            return None, False
        return nlopt.get_trajectory(), success

    def evaluate_trajectory(
        self, method_name: str, trajectory: Trajectory, result: TimeAllocationBenchmarkResult
    ) -> None:
        """Fill the trajectory dependent fields of `result`."""
        result.method_name = method_name
        result.trajectory_time = trajectory.max_time

        points = sample_whole_trajectory(trajectory, self.sampling_interval)
        result.trajectory_length = compute_path_length(points.positions)
        result.v_max_actual = float(np.max(np.linalg.norm(points.velocities, axis=1)))
        result.a_max_actual = float(np.max(np.linalg.norm(points.accelerations, axis=1)))
        result.bounds_violated = (
            result.v_max_actual > self.v_max * (1.0 + BOUNDS_TOLERANCE)
            or result.a_max_actual > self.a_max * (1.0 + BOUNDS_TOLERANCE)
        )

    def summarize(self) -> dict[str, dict[str, float]]:
        """Mean values per method over all results."""
        grouped: dict[str, list[TimeAllocationBenchmarkResult]] = defaultdict(list)
        for result in self.results:
            grouped[result.method_name].append(result)

        summary = {}
        for method_name, results in grouped.items():
            summary[method_name] = {
                "trials": len(results),
                "success_rate": float(np.mean([r.optimization_success for r in results])),
                "violation_rate": float(np.mean([r.bounds_violated for r in results])),
                "trajectory_time": float(np.mean([r.trajectory_time for r in results])),
                "trajectory_length": float(np.mean([r.trajectory_length for r in results])),
                "computation_time": float(np.mean([r.computation_time for r in results])),
            }
        return summary

    def save_results(self, path: Path | str) -> None:
        """Write all results to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump([dataclasses.asdict(r) for r in self.results], f, indent=4)
        logger.info("Results saved to %s", path)


def compute_nominal_length(vertices: list[Vertex]) -> float:
    """Length of the straight line path through the vertex positions."""
    positions = [vertex.get_constraint(derivative_order.POSITION) for vertex in vertices]
    return compute_path_length(positions)


def _section(config: ConfigDict | dict | None, name: str) -> dict:
    if config is None:
        return {}
    section = config.get(name)
    if section is None:
        return {}
    if hasattr(section, "to_dict"):
        return section.to_dict()
    return dict(section)
