"""Trajectory sampling and path length."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

    from mav_timing.optimization.optimizer import Trajectory


@dataclass
class TrajectoryPoints:
    """Time stamped samples of a trajectory, one row per sample."""

    times: NDArray[np.floating]
    positions: NDArray[np.floating]
    velocities: NDArray[np.floating]
    accelerations: NDArray[np.floating]

    def __len__(self) -> int:
        return len(self.times)


def sample_times(max_time: float, sampling_interval: float) -> NDArray[np.floating]:
    """Times 0, dt, 2 dt, ... up to max_time, always ending exactly at max_time."""
    if sampling_interval <= 0.0:
        raise ValueError(f"sampling_interval must be > 0, got {sampling_interval}")
    times = np.arange(0.0, max_time, sampling_interval)
    if len(times) == 0 or max_time - times[-1] > 1e-9:
        times = np.append(times, max_time)
    return times


def sample_whole_trajectory(trajectory: Trajectory, sampling_interval: float) -> TrajectoryPoints:
    """Sample position, velocity and acceleration over the whole trajectory."""
    times = sample_times(trajectory.max_time, sampling_interval)
    pva = trajectory.evaluate_all(times, 3)
    return TrajectoryPoints(
        times=times, positions=pva[0], velocities=pva[1], accelerations=pva[2]
    )


def compute_path_length(positions: ArrayLike) -> float:
    """Length of the polyline through the given points."""
    positions = np.asarray(positions, dtype=np.float64)
    if len(positions) < 2:
        return 0.0
    return float(np.sum(np.linalg.norm(np.diff(positions, axis=0), axis=1)))
