"""
Neighborhood Components Analysis driver.

Seeds the transformation, hands the softmax error function to an optimizer
and returns the learned (D, D) matrix.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from .objective import SoftmaxErrorFunction
from .softmax import evaluate_soft_neighbors
from ..optimizers.base import BaseOptimizer, OptimizationResult
from ..optimizers.sgd import StochasticGradientDescent
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

Array2D = np.ndarray


def initial_transformation(dataset: Array2D, normalize: bool = False) -> Array2D:
    """
    Starting point for the optimization.

    Args:
        dataset: Data of shape (D, N), one point per column
        normalize: If True, return ``diag(1 / range)`` of each feature instead
            of the identity. Features with zero range get a scale of 1.

    Returns:
        (D, D) transformation
    """
    X = np.asarray(dataset, dtype=np.float64)
    d = X.shape[0]
    if not normalize:
        return np.eye(d)

    ranges = X.max(axis=1) - X.min(axis=1) if X.shape[1] else np.ones(d)
    zero = ranges == 0.0
    if np.any(zero):
        logger.warning(
            "%d feature(s) have zero range; using a scale of 1 for them",
            int(np.count_nonzero(zero)),
        )
        ranges = np.where(zero, 1.0, ranges)
    logger.info("Using normalized starting point for optimization.")
    return np.diag(1.0 / ranges)


class NCA:
    """
    Learn a distance transformation with Neighborhood Components Analysis.

    Usage:
        nca = NCA(X, labels, optimizer=LBFGS())   # X is (D, N)
        A = nca.learn_distance()
        print(nca.last_result.message)
    """

    def __init__(
        self,
        dataset: Array2D,
        labels: np.ndarray,
        optimizer: Optional[BaseOptimizer] = None,
    ):
        """
        Args:
            dataset: Data of shape (D, N), one point per column
            labels: (N,) integer labels normalized to [0, C)
            optimizer: Optimizer strategy; defaults to SGD with its defaults

        Raises:
            ValueError: If the number of labels does not match the number of points
        """
        self.function = SoftmaxErrorFunction(dataset, labels)
        self.optimizer = optimizer if optimizer is not None else StochasticGradientDescent()
        self.last_result: Optional[OptimizationResult] = None

    @property
    def dataset(self) -> Array2D:
        """Read-only (D, N) training data."""
        return self.function.dataset

    @property
    def labels(self) -> np.ndarray:
        """Read-only (N,) labels in [0, C)."""
        return self.function.labels

    def learn_distance(
        self, transformation: Optional[Array2D] = None, normalize: bool = False
    ) -> Array2D:
        """
        Optimize the transformation.

        Args:
            transformation: Starting (D, D) matrix. If None, the identity or the
                normalized diagonal (see ``initial_transformation``) is used.
            normalize: Use the normalized diagonal when no transformation is given

        Returns:
            The learned (D, D) transformation
        """
        if transformation is None:
            transformation = initial_transformation(self.dataset, normalize=normalize)

        logger.info(
            "Running NCA with %s on %d point(s) in %d dimension(s)",
            self.optimizer.get_optimizer_name(),
            self.function.num_functions(),
            self.dataset.shape[0],
        )
        result = self.optimizer.optimize(self.function, transformation)
        if not result.success:
            logger.warning("Optimizer did not finish cleanly: %s", result.message)
        self.last_result = result
        return result.transformation

    def objective(self, transformation: Array2D) -> float:
        """Soft leave-one-out accuracy ``sum_i p_i`` under *transformation*."""
        return -self.function.evaluate(transformation)

    def soft_accuracy(self, transformation: Array2D) -> np.ndarray:
        """Per-point probability of being classified correctly, shape (N,)."""
        result = evaluate_soft_neighbors(
            np.asarray(transformation, dtype=np.float64),
            self.dataset,
            self.labels,
            slice(None),
        )
        return result.soft_accuracy
