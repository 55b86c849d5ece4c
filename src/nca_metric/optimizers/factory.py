"""
Optimizer Factory - Creates optimizer instances by name.

The optimizer is selected once from configuration; callers only ever see
the ``BaseOptimizer`` interface.
"""

from typing import Optional

import numpy as np

from .base import BaseOptimizer
from .sgd import StochasticGradientDescent
from .lbfgs import LBFGS
from ..config import NCAConfig, OPTIMIZERS


class OptimizerFactory:
    """
    Factory for creating optimizer instances.

    Usage:
        factory = OptimizerFactory(NCAConfig(optimizer="lbfgs"))
        optimizer = factory.create_from_config()

        optimizer = factory.create("sgd", rng=np.random.default_rng(7))
    """

    def __init__(self, config: Optional[NCAConfig] = None):
        """
        Initialize the factory.

        Args:
            config: Optional NCAConfig instance. If not provided, defaults are used.
        """
        self.config = config or NCAConfig()

    def create(
        self, optimizer_name: str, rng: Optional[np.random.Generator] = None
    ) -> BaseOptimizer:
        """
        Create an optimizer from the factory's configuration.

        Args:
            optimizer_name: 'sgd' or 'lbfgs' (case-insensitive)
            rng: Random generator for SGD shuffling. Defaults to one seeded
                from the configuration.

        Returns:
            BaseOptimizer instance

        Raises:
            ValueError: If optimizer_name is unknown
        """
        optimizer_name = optimizer_name.strip().lower()
        cfg = self.config

        if optimizer_name == "sgd":
            if rng is None:
                rng = np.random.default_rng(cfg.resolve_seed())
            return StochasticGradientDescent(
                step_size=cfg.step_size,
                batch_size=cfg.batch_size,
                max_iterations=cfg.max_iterations,
                tolerance=cfg.tolerance,
                shuffle=cfg.shuffle,
                rng=rng,
            )
        elif optimizer_name == "lbfgs":
            return LBFGS(
                num_basis=cfg.num_basis,
                max_iterations=cfg.max_iterations,
                armijo_constant=cfg.armijo_constant,
                wolfe=cfg.wolfe,
                min_gradient_norm=cfg.tolerance,
                max_line_search_trials=cfg.max_line_search_trials,
                min_step=cfg.min_step,
                max_step=cfg.max_step,
            )
        else:
            raise ValueError(
                f"Unknown optimizer: {optimizer_name}. "
                f"Available optimizers: {', '.join(self.get_available_optimizers())}"
            )

    def create_from_config(
        self, rng: Optional[np.random.Generator] = None
    ) -> BaseOptimizer:
        """Create the optimizer named in the configuration."""
        return self.create(self.config.optimizer, rng=rng)

    @staticmethod
    def get_available_optimizers() -> list[str]:
        """Return the names of all optimizers this factory can build."""
        return list(OPTIMIZERS)
