"""
Tests for OptimizerFactory.
"""

import numpy as np
import pytest

from nca_metric.config import NCAConfig
from nca_metric.optimizers.factory import OptimizerFactory
from nca_metric.optimizers.lbfgs import LBFGS
from nca_metric.optimizers.sgd import StochasticGradientDescent


def test_create_sgd_from_config():
    cfg = NCAConfig(step_size=0.5, batch_size=7, max_iterations=99, tolerance=1e-3,
                    linear_scan=True)
    rng = np.random.default_rng(0)
    optimizer = OptimizerFactory(cfg).create("sgd", rng=rng)

    assert isinstance(optimizer, StochasticGradientDescent)
    assert optimizer.step_size == 0.5
    assert optimizer.batch_size == 7
    assert optimizer.max_iterations == 99
    assert optimizer.tolerance == 1e-3
    assert optimizer.shuffle is False
    assert optimizer.rng is rng


def test_create_lbfgs_from_config():
    cfg = NCAConfig(optimizer="lbfgs", num_basis=3, tolerance=1e-4, wolfe=0.8,
                    max_line_search_trials=10, min_step=1e-10, max_step=1e5)
    optimizer = OptimizerFactory(cfg).create_from_config()

    assert isinstance(optimizer, LBFGS)
    assert optimizer.num_basis == 3
    assert optimizer.min_gradient_norm == 1e-4
    assert optimizer.wolfe == 0.8
    assert optimizer.max_line_search_trials == 10
    assert optimizer.min_step == 1e-10
    assert optimizer.max_step == 1e5


def test_create_is_case_insensitive():
    assert isinstance(OptimizerFactory().create(" LBFGS "), LBFGS)


def test_unknown_optimizer():
    with pytest.raises(ValueError, match="Unknown optimizer"):
        OptimizerFactory().create("adam")


def test_available_optimizers():
    assert OptimizerFactory.get_available_optimizers() == ["sgd", "lbfgs"]
