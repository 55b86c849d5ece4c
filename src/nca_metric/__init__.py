"""
NCA Metric - Core Package

Learns a linear distance transformation with Neighborhood Components
Analysis so that nearest-neighbor classification improves.

This package provides:
- The soft-neighbor objective and its exact gradient
- Interchangeable SGD and L-BFGS optimizers
- A command-line entry point and file helpers
"""

__version__ = "0.1.0"

from .algorithms import NCA, SoftmaxErrorFunction, DecomposableFunction, PcaWhitening
from .config import NCAConfig
from .optimizers import (
    BaseOptimizer,
    OptimizationResult,
    StochasticGradientDescent,
    LBFGS,
    OptimizerFactory,
)

from . import algorithms
from . import optimizers
from . import utils

__all__ = [
    "NCA",
    "SoftmaxErrorFunction",
    "DecomposableFunction",
    "PcaWhitening",
    "NCAConfig",
    "BaseOptimizer",
    "OptimizationResult",
    "StochasticGradientDescent",
    "LBFGS",
    "OptimizerFactory",
    "algorithms",
    "optimizers",
    "utils",
]
