"""
Mini-batch stochastic gradient descent.

Iterations are counted in units visited, so one pass over a function with
N units takes N iterations whatever the batch size.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np

from .base import BaseOptimizer, OptimizationResult
from ..utils.logging_config import get_logger

if TYPE_CHECKING:
    from ..algorithms.objective import DecomposableFunction

logger = get_logger(__name__)


class StochasticGradientDescent(BaseOptimizer):
    """
    Mini-batch SGD over a ``DecomposableFunction``.

    Each step takes the next contiguous batch of units and moves against the
    batch-averaged gradient. After every full pass the complete objective is
    evaluated; the run stops when it changes by less than ``tolerance``
    between passes, or when ``max_iterations`` units have been visited.

    Usage:
        sgd = StochasticGradientDescent(step_size=0.01, batch_size=50,
                                        rng=np.random.default_rng(42))
        result = sgd.optimize(function, np.eye(d))
    """

    name = "sgd"

    def __init__(
        self,
        step_size: float = 0.01,
        batch_size: int = 50,
        max_iterations: int = 100000,
        tolerance: float = 1e-5,
        shuffle: bool = True,
        rng: Optional[np.random.Generator] = None,
    ):
        """
        Args:
            step_size: Learning rate applied to the batch-averaged gradient
            batch_size: Units per step (clipped to the number of units)
            max_iterations: Units to visit before stopping; 0 means no limit
            tolerance: Minimum change in the full objective between passes
            shuffle: Re-permute the unit order before every pass
            rng: Random generator used for shuffling

        Raises:
            ValueError: If a parameter is out of range
        """
        if step_size <= 0:
            raise ValueError(f"step_size must be > 0, got {step_size}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")
        if max_iterations < 0:
            raise ValueError(f"max_iterations must be >= 0, got {max_iterations}")
        if tolerance < 0:
            raise ValueError(f"tolerance must be >= 0, got {tolerance}")

        self.step_size = float(step_size)
        self.batch_size = int(batch_size)
        self.max_iterations = int(max_iterations)
        self.tolerance = float(tolerance)
        self.shuffle = bool(shuffle)
        self.rng = rng if rng is not None else np.random.default_rng()

    def optimize(
        self, function: "DecomposableFunction", coordinates: np.ndarray
    ) -> OptimizationResult:
        iterate = np.array(coordinates, dtype=np.float64)
        n_units = function.num_functions()
        if n_units < 1:
            raise ValueError("Cannot optimize a function with no units")

        batch_size = min(self.batch_size, n_units)
        current = function.shuffled(self.rng) if self.shuffle else function

        last_objective = current.evaluate(iterate)
        if not np.isfinite(last_objective):
            raise ValueError("Objective is not finite at the starting point")

        iterations = 0
        position = 0
        passes = 0
        converged = False
        success = True
        message = "maximum iterations reached"

        while self.max_iterations == 0 or iterations < self.max_iterations:
            effective = min(batch_size, n_units - position)
            if self.max_iterations:
                effective = min(effective, self.max_iterations - iterations)

            _, grad = current.evaluate_with_gradient(iterate, position, effective)
            candidate = iterate - (self.step_size / effective) * grad
            if not np.all(np.isfinite(candidate)):
                logger.warning(
                    "SGD: step at iteration %d produced non-finite values; "
                    "keeping the last finite iterate (try a smaller step size)",
                    iterations,
                )
                success = False
                message = "non-finite iterate"
                break

            iterate = candidate
            iterations += effective
            position += effective

            if position < n_units:
                continue

            # End of a pass over all units.
            passes += 1
            position = 0
            objective = current.evaluate(iterate)
            logger.debug(
                "SGD: pass %d (iteration %d), objective %.8g", passes, iterations, objective
            )
            if not np.isfinite(objective):
                logger.warning("SGD: objective became %s; terminating", objective)
                success = False
                message = "non-finite objective"
                break
            if abs(last_objective - objective) < self.tolerance:
                converged = True
                message = (
                    f"objective changed by less than tolerance ({self.tolerance}) "
                    f"after {passes} pass(es)"
                )
                break
            last_objective = objective

            if self.shuffle:
                current = current.shuffled(self.rng)

        final_objective = function.evaluate(iterate)
        logger.info(
            "SGD finished after %d iteration(s): %s; objective %.8g",
            iterations,
            message,
            final_objective,
        )
        return OptimizationResult(
            transformation=iterate,
            objective=float(final_objective),
            iterations=iterations,
            converged=converged,
            success=success,
            message=message,
            metadata={"passes": passes, "batch_size": batch_size},
        )
