"""
Limited-memory BFGS with a backtracking line search.

The inverse Hessian is never formed: the search direction comes from the
two-loop recursion over the last ``num_basis`` curvature pairs

    s_k = x_{k+1} - x_k,    y_k = g_{k+1} - g_k.

Each step is chosen by a backtracking/expanding line search that accepts a
step length t when

    f(x + t d) <= f(x) + armijo_constant * t * g^T d      (sufficient decrease)
    |g(x + t d)^T d| <= wolfe * |g^T d|                    (curvature)
"""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Deque, Tuple

import numpy as np

from .base import BaseOptimizer, OptimizationResult
from ..utils.logging_config import get_logger

if TYPE_CHECKING:
    from ..algorithms.objective import DecomposableFunction

logger = get_logger(__name__)

# Line-search step multipliers.
STEP_DECREASE = 0.5
STEP_INCREASE = 2.1


class LineSearchFailure(Exception):
    """Raised internally when no acceptable step is found."""

    def __init__(self, message: str, step: float, value: float, gradient: np.ndarray):
        super().__init__(message)
        self.step = step
        self.value = value
        self.gradient = gradient


def two_loop_direction(
    gradient: np.ndarray,
    pairs: Deque[Tuple[np.ndarray, np.ndarray, float]],
) -> np.ndarray:
    """
    Return the L-BFGS descent direction ``-H g``.

    Args:
        gradient: Current gradient (flattened)
        pairs: Curvature pairs ``(s, y, rho)`` ordered oldest to newest,
            with ``rho = 1 / (y^T s)``

    Returns:
        Search direction of the same shape as *gradient*
    """
    q = gradient.copy()
    alphas = []
    for s, y, rho in reversed(pairs):
        alpha = rho * s.dot(q)
        alphas.append(alpha)
        q -= alpha * y

    if pairs:
        s, y, _ = pairs[-1]
        gamma = s.dot(y) / y.dot(y)
    else:
        gamma = 1.0
    r = gamma * q

    for (s, y, rho), alpha in zip(pairs, reversed(alphas)):
        beta = rho * y.dot(r)
        r += s * (alpha - beta)
    return -r


class LBFGS(BaseOptimizer):
    """
    L-BFGS minimizer for full-batch objectives.

    Only ``evaluate_with_gradient`` over all units is used, so any
    ``DecomposableFunction`` works.

    Usage:
        lbfgs = LBFGS(num_basis=5, min_gradient_norm=1e-6)
        result = lbfgs.optimize(function, np.eye(d))
        if not result.success:
            print(result.message)
    """

    name = "lbfgs"

    def __init__(
        self,
        num_basis: int = 5,
        max_iterations: int = 10000,
        armijo_constant: float = 1e-4,
        wolfe: float = 0.9,
        min_gradient_norm: float = 1e-6,
        factr: float = 1e-15,
        max_line_search_trials: int = 50,
        min_step: float = 1e-20,
        max_step: float = 1e20,
    ):
        """
        Args:
            num_basis: Number of curvature pairs kept in memory
            max_iterations: Iteration budget; 0 means no limit
            armijo_constant: Sufficient-decrease constant (0 < c1 < 1)
            wolfe: Curvature-condition constant (c1 < c2 < 1)
            min_gradient_norm: Stop once the gradient norm falls below this
            factr: Stop once the relative objective decrease falls below this
            max_line_search_trials: Trial steps allowed per line search
            min_step: Smallest step length the line search may try
            max_step: Largest step length the line search may try

        Raises:
            ValueError: If a parameter is out of range
        """
        if num_basis < 1:
            raise ValueError(f"num_basis must be >= 1, got {num_basis}")
        if max_iterations < 0:
            raise ValueError(f"max_iterations must be >= 0, got {max_iterations}")
        if not 0.0 < armijo_constant < 1.0:
            raise ValueError(f"armijo_constant must lie in (0, 1), got {armijo_constant}")
        if not armijo_constant < wolfe < 1.0:
            raise ValueError(
                f"wolfe must lie in (armijo_constant, 1), got {wolfe}"
            )
        if max_line_search_trials < 1:
            raise ValueError(
                f"max_line_search_trials must be >= 1, got {max_line_search_trials}"
            )
        if not 0.0 < min_step < max_step:
            raise ValueError(
                f"Need 0 < min_step < max_step; got min_step={min_step}, max_step={max_step}"
            )

        self.num_basis = int(num_basis)
        self.max_iterations = int(max_iterations)
        self.armijo_constant = float(armijo_constant)
        self.wolfe = float(wolfe)
        self.min_gradient_norm = float(min_gradient_norm)
        self.factr = float(factr)
        self.max_line_search_trials = int(max_line_search_trials)
        self.min_step = float(min_step)
        self.max_step = float(max_step)

    def optimize(
        self, function: "DecomposableFunction", coordinates: np.ndarray
    ) -> OptimizationResult:
        shape = np.shape(coordinates)
        x = np.array(coordinates, dtype=np.float64).ravel()

        def evaluate(flat: np.ndarray) -> Tuple[float, np.ndarray]:
            value, grad = function.evaluate_with_gradient(flat.reshape(shape))
            return float(value), np.asarray(grad, dtype=np.float64).ravel()

        value, grad = evaluate(x)
        if not np.isfinite(value):
            raise ValueError("Objective is not finite at the starting point")

        pairs: Deque[Tuple[np.ndarray, np.ndarray, float]] = deque(maxlen=self.num_basis)
        iterations = 0
        converged = False
        success = True
        message = "maximum iterations reached"
        line_search_trials = 0

        while self.max_iterations == 0 or iterations < self.max_iterations:
            grad_norm = float(np.linalg.norm(grad))
            if grad_norm < self.min_gradient_norm:
                converged = True
                message = "gradient norm below threshold"
                break

            direction = two_loop_direction(grad, pairs)
            try:
                step, new_value, new_grad, trials = self._line_search(
                    evaluate, x, value, grad, direction
                )
                line_search_trials += trials
            except LineSearchFailure as failure:
                logger.warning("L-BFGS: line search failed (%s); stopping optimization", failure)
                if failure.step > 0.0:
                    x = x + failure.step * direction
                    value, grad = failure.value, failure.gradient
                success = False
                message = f"line search failed: {failure}"
                break

            iterations += 1
            x_new = x + step * direction
            if np.array_equal(x_new, x):
                converged = True
                message = "iterate unchanged"
                break

            s = x_new - x
            y = new_grad - grad
            curvature = float(y.dot(s))
            if curvature > 0.0:
                pairs.append((s, y, 1.0 / curvature))

            prev_value = value
            x, value, grad = x_new, new_value, new_grad
            logger.debug(
                "L-BFGS: iteration %d, objective %.8g, step %.3g", iterations, value, step
            )

            denom = max(abs(prev_value), abs(value), 1.0)
            if (prev_value - value) / denom <= self.factr:
                converged = True
                message = "relative objective decrease below factr"
                break

        logger.info(
            "L-BFGS finished after %d iteration(s): %s; objective %.8g",
            iterations,
            message,
            value,
        )
        return OptimizationResult(
            transformation=x.reshape(shape),
            objective=value,
            iterations=iterations,
            converged=converged,
            success=success,
            message=message,
            metadata={
                "gradient_norm": float(np.linalg.norm(grad)),
                "line_search_trials": line_search_trials,
            },
        )

    def _line_search(self, evaluate, x, value, grad, direction):
        """
        Find a step length satisfying the sufficient-decrease and curvature
        conditions along *direction*.

        Returns:
            Tuple of (step, value, gradient, trials) at the accepted step

        Raises:
            LineSearchFailure: If *direction* is not a descent direction, the
                step leaves [min_step, max_step], or the trial budget runs out.
                The best finite trial seen so far is attached when it improves
                on the starting value.
        """
        slope0 = float(grad.dot(direction))
        if slope0 >= 0.0:
            raise LineSearchFailure(
                "search direction is not a descent direction", 0.0, value, grad
            )

        decrease = self.armijo_constant * slope0
        step = 1.0
        best = (0.0, value, grad)
        trials = 0

        while True:
            trial_value, trial_grad = evaluate(x + step * direction)
            trials += 1

            finite = np.isfinite(trial_value) and np.all(np.isfinite(trial_grad))
            if finite and trial_value < best[1]:
                best = (step, trial_value, trial_grad)

            if not finite or trial_value > value + step * decrease:
                width = STEP_DECREASE
            else:
                slope = float(trial_grad.dot(direction))
                if slope < self.wolfe * slope0:
                    width = STEP_INCREASE
                elif slope > -self.wolfe * slope0:
                    width = STEP_DECREASE
                else:
                    return step, trial_value, trial_grad, trials

            if step < self.min_step or step > self.max_step or trials >= self.max_line_search_trials:
                if step < self.min_step:
                    reason = f"step fell below min_step ({self.min_step})"
                elif step > self.max_step:
                    reason = f"step exceeded max_step ({self.max_step})"
                else:
                    reason = f"no acceptable step in {trials} trial(s)"
                raise LineSearchFailure(reason, *best)

            step *= width
