"""
Optimizer strategies for minimizing decomposable objectives.

Both optimizers work through the same ``DecomposableFunction`` interface
and are interchangeable.
"""

from .base import BaseOptimizer, OptimizationResult
from .sgd import StochasticGradientDescent
from .lbfgs import LBFGS, two_loop_direction
from .factory import OptimizerFactory

__all__ = [
    "BaseOptimizer",
    "OptimizationResult",
    "StochasticGradientDescent",
    "LBFGS",
    "two_loop_direction",
    "OptimizerFactory",
]
