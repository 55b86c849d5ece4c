"""
Pytest configuration and shared fixtures.

This file is automatically discovered by pytest and provides fixtures
available to all test modules.
"""

import logging
import os

import numpy as np
import pytest


@pytest.fixture(autouse=True)
def clean_nca_env(monkeypatch):
    """Keep NCA_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("NCA_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Drop handlers added by setup_logging so streams do not outlive a test."""
    yield
    logger = logging.getLogger("nca_metric")
    for handler in list(logger.handlers):
        if getattr(handler, "_nca_metric_handler", False):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def separated_data():
    """
    Two perfectly separated clusters in 2-D, one point per column.

    Class 0 sits at (0,0), (0,1), (1,0); class 1 at (10,0), (10,1), (11,0).
    """
    X = np.array(
        [
            [0.0, 0.0, 1.0, 10.0, 10.0, 11.0],
            [0.0, 1.0, 0.0, 0.0, 1.0, 0.0],
        ]
    )
    labels = np.array([0, 0, 0, 1, 1, 1])
    return X, labels


@pytest.fixture
def small_data():
    """Six random points in 2-D with two classes."""
    rng = np.random.default_rng(7)
    X = rng.standard_normal((2, 6))
    labels = np.array([0, 1, 0, 1, 0, 1])
    return X, labels


@pytest.fixture
def noisy_blobs():
    """
    Two classes separated along the first feature, with a noisy second
    feature that hurts neighbor accuracy under the identity metric.
    """
    rng = np.random.default_rng(0)
    n_per_class = 10
    labels = np.repeat([0, 1], n_per_class)
    x0 = labels * 3.0 + 0.5 * rng.standard_normal(2 * n_per_class)
    x1 = 2.0 * rng.standard_normal(2 * n_per_class)
    return np.vstack([x0, x1]), labels
