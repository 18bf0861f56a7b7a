from mav_timing.optimization.linear import LinearOptimizer
from mav_timing.optimization.nonlinear import NonlinearOptimizationParameters, NonlinearOptimizer
from mav_timing.optimization.optimizer import PolynomialOptimizer, Trajectory

__all__ = [
    "LinearOptimizer",
    "NonlinearOptimizationParameters",
    "NonlinearOptimizer",
    "PolynomialOptimizer",
    "Trajectory",
]
