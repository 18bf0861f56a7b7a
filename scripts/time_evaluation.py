"""Compare time allocation methods on random waypoint sequences.

Run as:

    $ python scripts/time_evaluation.py --config time_evaluation.toml --n_trials 20

The configuration file is looked up in `config/`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import fire
import numpy as np

from mav_timing.benchmark import TimeEvaluation
from mav_timing.utils import load_config
from mav_timing.utils.sampling import sample_whole_trajectory

if TYPE_CHECKING:
    from mav_timing.optimization import Trajectory


logger = logging.getLogger(__name__)


def evaluate(
    config: str = "time_evaluation.toml",
    n_trials: int = 10,
    num_segments: int = 5,
    output: str | None = None,
    plot: str | None = None,
) -> dict[str, dict[str, float]]:
    """Run the time allocation benchmark.

    Args:
        config: The path to the configuration file. Assumes the file is in `config/`.
        n_trials: Number of trials. The trial number is used as random seed.
        num_segments: Number of segments of each random waypoint sequence.
        output: Optional path of a JSON file for the individual results.
        plot: Optional path of a PNG file showing the trajectories of the last trial.

    Returns:
        Mean results per method.
    """
    config = load_config(Path(__file__).parents[1] / "config" / config)
    evaluation = TimeEvaluation(config)

    for trial_number in range(n_trials):
        evaluation.run_benchmark(trial_number, num_segments)

    summary = evaluation.summarize()
    for method_name, stats in summary.items():
        logger.info(
            f"{method_name}: success {stats['success_rate']:.0%}, "
            f"violations {stats['violation_rate']:.0%}, time {stats['trajectory_time']:.2f} s, "
            f"length {stats['trajectory_length']:.2f} m, computation {stats['computation_time']:.3f} s"
        )

    if output:
        evaluation.save_results(output)
    if plot:
        plot_trajectories(evaluation.trajectories, evaluation.sampling_interval, plot)

    return summary


def plot_trajectories(trajectories: dict[str, Trajectory], sampling_interval: float, path: str):
    """Plot the xy projection and the speed of each trajectory."""
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    fig, (ax_path, ax_speed) = plt.subplots(1, 2, figsize=(14, 6))
    for method_name, trajectory in trajectories.items():
        points = sample_whole_trajectory(trajectory, sampling_interval)
        ax_path.plot(points.positions[:, 0], points.positions[:, 1], label=method_name)
        ax_speed.plot(points.times, np.linalg.norm(points.velocities, axis=1), label=method_name)

    ax_path.set_xlabel("x [m]")
    ax_path.set_ylabel("y [m]")
    ax_path.set_title("Path (xy)")
    ax_path.axis("equal")
    ax_speed.set_xlabel("Time [s]")
    ax_speed.set_ylabel("Speed [m/s]")
    ax_speed.set_title("Speed")
    for ax in (ax_path, ax_speed):
        ax.grid(True)
        ax.legend()

    plt.tight_layout()
    plt.savefig(path, dpi=150)
    plt.close(fig)
    logger.info(f"Plot saved to {path}")


if __name__ == "__main__":
    logging.basicConfig()
    logging.getLogger("mav_timing").setLevel(logging.INFO)
    logger.setLevel(logging.INFO)
    fire.Fire(evaluate, serialize=lambda _: None)
