"""
Configuration management for NCA Metric.

Run options can come from code, from the command line, or from environment
variables (typically from a .env file, loaded with python-dotenv).

Usage:
    from nca_metric.config import NCAConfig

    cfg = NCAConfig(optimizer="lbfgs", num_basis=10)
    cfg = NCAConfig.from_env()          # reads NCA_OPTIMIZER, NCA_STEP_SIZE, ...
"""

import os
import time
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Iterable

from dotenv import load_dotenv

from .utils.logging_config import get_logger

logger = get_logger(__name__)

# Look for .env in project root (parent of src/)
_ENV_PATH = Path(__file__).parent.parent.parent / ".env"
if _ENV_PATH.exists():
    load_dotenv(_ENV_PATH)

ENV_PREFIX = "NCA_"

OPTIMIZERS = ("sgd", "lbfgs")

# Options that only one optimizer reads.
SGD_PARAMETERS = ("step_size", "batch_size", "linear_scan")
LBFGS_PARAMETERS = (
    "num_basis",
    "armijo_constant",
    "wolfe",
    "max_line_search_trials",
    "min_step",
    "max_step",
)

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off", ""}


@dataclass
class NCAConfig:
    """
    Options for a single NCA run.

    ``max_iterations`` and ``tolerance`` are shared: for SGD the tolerance
    bounds the change of the objective between passes, for L-BFGS it is the
    minimum gradient norm.
    """

    optimizer: str = "sgd"
    max_iterations: int = 500000
    tolerance: float = 1e-7
    # SGD
    step_size: float = 0.01
    batch_size: int = 50
    linear_scan: bool = False
    # L-BFGS
    num_basis: int = 5
    armijo_constant: float = 1e-4
    wolfe: float = 0.9
    max_line_search_trials: int = 50
    min_step: float = 1e-20
    max_step: float = 1e20
    # Driver
    normalize: bool = False
    seed: int = 0

    def __post_init__(self):
        """Normalize the optimizer name and validate all options."""
        self.optimizer = str(self.optimizer).strip().lower()
        self.validate()

    def validate(self) -> None:
        """
        Check option values.

        Raises:
            ValueError: On an unknown optimizer or an out-of-range value
        """
        if self.optimizer not in OPTIMIZERS:
            raise ValueError(
                f"Unknown optimizer type: {self.optimizer!r}. "
                f"Available optimizers: {', '.join(OPTIMIZERS)}"
            )
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations must be >= 0, got {self.max_iterations}")
        if self.tolerance < 0:
            raise ValueError(f"tolerance must be >= 0, got {self.tolerance}")
        if self.step_size <= 0:
            raise ValueError(f"step_size must be > 0, got {self.step_size}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.num_basis < 1:
            raise ValueError(f"num_basis must be >= 1, got {self.num_basis}")
        if self.max_line_search_trials < 1:
            raise ValueError(
                f"max_line_search_trials must be >= 1, got {self.max_line_search_trials}"
            )
        if self.seed < 0:
            raise ValueError(f"seed must be >= 0, got {self.seed}")

    @property
    def shuffle(self) -> bool:
        """SGD visits units in random order unless a linear scan is requested."""
        return not self.linear_scan

    def resolve_seed(self) -> int:
        """Return the configured seed, or the current time when it is 0."""
        return self.seed if self.seed != 0 else int(time.time())

    def ignored_parameters(self, explicit: Iterable[str]) -> list[str]:
        """
        Return the explicitly supplied options the selected optimizer ignores.

        Args:
            explicit: Names of options the caller set on purpose

        Returns:
            Sorted list of option names that will have no effect
        """
        unused = LBFGS_PARAMETERS if self.optimizer == "sgd" else SGD_PARAMETERS
        return sorted(set(explicit) & set(unused))

    def report_ignored_parameters(self, explicit: Iterable[str]) -> list[str]:
        """Log a warning for each option that will not be used, and return them."""
        other = "L-BFGS" if self.optimizer == "sgd" else "SGD"
        ignored = self.ignored_parameters(explicit)
        for name in ignored:
            logger.warning(
                "'%s' ignored because %s optimizer is not being used", name, other
            )
        return ignored

    @classmethod
    def from_env(cls, prefix: str = ENV_PREFIX, **overrides: Any) -> "NCAConfig":
        """
        Build a config from ``<prefix><FIELD>`` environment variables.

        Keyword overrides take precedence over the environment.

        Raises:
            ValueError: If a variable cannot be parsed or a value is invalid
        """
        values: dict[str, Any] = {}
        for f in fields(cls):
            raw = os.getenv(prefix + f.name.upper())
            if raw is None:
                continue
            values[f.name] = _parse_env_value(f.name, raw, type(f.default))
        values.update(overrides)
        return cls(**values)

    @classmethod
    def env_field_names(cls, prefix: str = ENV_PREFIX) -> list[str]:
        """Names of the fields that have a ``<prefix><FIELD>`` variable set."""
        return [f.name for f in fields(cls) if os.getenv(prefix + f.name.upper()) is not None]


def _parse_env_value(name: str, raw: str, kind: type) -> Any:
    """Convert an environment string to the type of the field's default."""
    text = raw.strip()
    try:
        if kind is bool:
            lowered = text.lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
            raise ValueError(f"not a boolean: {raw!r}")
        if kind is int:
            return int(text)
        if kind is float:
            return float(text)
        return text
    except ValueError as e:
        raise ValueError(f"Invalid value for {ENV_PREFIX}{name.upper()}: {e}") from e

