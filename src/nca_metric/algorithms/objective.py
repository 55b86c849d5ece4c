"""
Objective functions exposed to optimizers.

This module defines the interface every separable objective implements,
so that the same function can be driven by full-batch and stochastic
optimizers alike, and the NCA softmax error that implements it.
"""

from __future__ import annotations

import copy
from abc import ABC, abstractmethod
from typing import Optional, Tuple

import numpy as np

from .softmax import evaluate_soft_neighbors

Array2D = np.ndarray


class DecomposableFunction(ABC):
    """
    Abstract base class for objectives that are a sum of separable units.

    A function made of ``num_functions()`` units can be evaluated over all of
    them or over a contiguous batch ``[begin, begin + batch_size)``. Summing
    the batch values over a partition of the units gives the full value (up
    to floating-point summation order), and the same holds for gradients.

    All objectives are minimized.
    """

    @abstractmethod
    def num_functions(self) -> int:
        """Number of separable units the objective is made of."""

    @abstractmethod
    def evaluate_with_gradient(
        self, coordinates: Array2D, begin: Optional[int] = None, batch_size: int = 1
    ) -> Tuple[float, Array2D]:
        """
        Objective value and gradient at *coordinates*.

        Args:
            coordinates: Point at which to evaluate
            begin: First unit of the batch, or None for all units
            batch_size: Number of units in the batch (ignored when begin is None)

        Returns:
            Tuple of (objective, gradient with the shape of coordinates)
        """

    def evaluate(
        self, coordinates: Array2D, begin: Optional[int] = None, batch_size: int = 1
    ) -> float:
        """Objective value over all units or over a batch."""
        value, _ = self.evaluate_with_gradient(coordinates, begin, batch_size)
        return value

    def gradient(
        self, coordinates: Array2D, begin: Optional[int] = None, batch_size: int = 1
    ) -> Array2D:
        """Gradient matching :meth:`evaluate` for the same arguments."""
        _, grad = self.evaluate_with_gradient(coordinates, begin, batch_size)
        return grad

    def shuffled(self, rng: np.random.Generator) -> "DecomposableFunction":
        """
        Return an equivalent function whose units are visited in a new order.

        The default keeps the current order; stochastic optimizers call this
        once per pass.
        """
        return self


class SoftmaxErrorFunction(DecomposableFunction):
    """
    Negated NCA objective: ``-sum_i p_i`` over the selected anchor points.

    Each point is one unit, so stochastic optimizers can request a single
    point's or a batch's contribution.

    Usage:
        fn = SoftmaxErrorFunction(X, labels)          # X is (D, N)
        value = fn.evaluate(np.eye(X.shape[0]))       # full set
        value_0 = fn.evaluate(np.eye(X.shape[0]), 0, 1)  # first point only
    """

    def __init__(
        self,
        dataset: Array2D,
        labels: np.ndarray,
        order: Optional[np.ndarray] = None,
    ):
        """
        Initialize the function.

        Args:
            dataset: Data of shape (D, N), one point per column
            labels: (N,) integer labels, one per point
            order: Optional permutation of range(N) giving the unit order

        Raises:
            ValueError: If the data is not 2-D or not finite, or if the
                number of labels does not match the number of points
        """
        X = np.array(dataset, dtype=np.float64)
        if X.ndim != 2:
            raise ValueError(f"dataset must be a 2-D (D, N) matrix; got shape {X.shape}")
        y = np.asarray(labels).ravel()
        if y.shape[0] != X.shape[1]:
            raise ValueError(
                f"The number of labels ({y.shape[0]}) must match the number "
                f"of points ({X.shape[1]})!"
            )
        if not np.all(np.isfinite(X)):
            raise ValueError("dataset contains non-finite values")

        if order is None:
            order = np.arange(X.shape[1])
        else:
            order = np.asarray(order, dtype=np.int64)
            if not np.array_equal(np.sort(order), np.arange(X.shape[1])):
                raise ValueError("order must be a permutation of the point indices")

        self._dataset = X
        self._dataset.flags.writeable = False
        self._labels = y.astype(np.int64)
        self._labels.flags.writeable = False
        self._order = order

    @property
    def dataset(self) -> Array2D:
        """Read-only (D, N) data matrix."""
        return self._dataset

    @property
    def labels(self) -> np.ndarray:
        """Read-only (N,) labels."""
        return self._labels

    @property
    def order(self) -> np.ndarray:
        """Unit visitation order (a permutation of the point indices)."""
        return self._order

    def num_functions(self) -> int:
        return self._dataset.shape[1]

    def evaluate(
        self, coordinates: Array2D, begin: Optional[int] = None, batch_size: int = 1
    ) -> float:
        result = evaluate_soft_neighbors(
            self._check_coordinates(coordinates),
            self._dataset,
            self._labels,
            self._anchors(begin, batch_size),
        )
        return -result.objective

    def evaluate_with_gradient(
        self, coordinates: Array2D, begin: Optional[int] = None, batch_size: int = 1
    ) -> Tuple[float, Array2D]:
        result = evaluate_soft_neighbors(
            self._check_coordinates(coordinates),
            self._dataset,
            self._labels,
            self._anchors(begin, batch_size),
            with_gradient=True,
        )
        return -result.objective, -result.gradient

    def shuffled(self, rng: np.random.Generator) -> "SoftmaxErrorFunction":
        """Copy of this function with a fresh random unit order."""
        clone = copy.copy(self)
        clone._order = rng.permutation(self.num_functions())
        return clone

    def _anchors(self, begin: Optional[int], batch_size: int) -> np.ndarray:
        n = self.num_functions()
        if begin is None:
            return np.arange(n)
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if begin < 0 or begin + batch_size > n:
            raise ValueError(
                f"Batch [{begin}, {begin + batch_size}) is outside [0, {n})"
            )
        return self._order[begin:begin + batch_size]

    def _check_coordinates(self, coordinates: Array2D) -> Array2D:
        A = np.asarray(coordinates, dtype=np.float64)
        d = self._dataset.shape[0]
        if A.shape != (d, d):
            raise ValueError(
                f"Transformation must have shape ({d}, {d}); got {A.shape}"
            )
        return A
