"""
Base classes for optimizer strategies.

Every optimizer minimizes a ``DecomposableFunction`` starting from an
initial point and reports the outcome as an ``OptimizationResult``, so the
objective never depends on which optimizer drives it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import numpy as np

if TYPE_CHECKING:
    from ..algorithms.objective import DecomposableFunction


@dataclass
class OptimizationResult:
    """
    Outcome of a single optimizer run.

    Attributes:
        transformation: Final iterate (never contains non-finite values)
        objective: Objective value at the final iterate
        iterations: Iterations performed (units visited for SGD)
        converged: True if a convergence criterion stopped the run
        success: False if the run was cut short by a failure (e.g. line search)
        message: Human-readable termination reason
        metadata: Optimizer-specific details
    """
    transformation: np.ndarray
    objective: float
    iterations: int = 0
    converged: bool = False
    success: bool = True
    message: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"OptimizationResult(objective={self.objective:.6g}, "
            f"iterations={self.iterations}, converged={self.converged}, "
            f"success={self.success}, message={self.message!r})"
        )


class BaseOptimizer(ABC):
    """
    Abstract base class for all optimizers.

    Implementations only use the ``DecomposableFunction`` contract, so any
    optimizer can be swapped for another without touching the objective.
    """

    name: str = "base"

    @abstractmethod
    def optimize(
        self, function: "DecomposableFunction", coordinates: np.ndarray
    ) -> OptimizationResult:
        """
        Minimize *function* starting from *coordinates*.

        The starting point is not modified; the result carries a new array.

        Args:
            function: Objective to minimize
            coordinates: Initial iterate

        Returns:
            OptimizationResult describing the final iterate
        """
        pass

    def get_optimizer_name(self) -> str:
        """Return the name this optimizer is registered under."""
        return self.name
