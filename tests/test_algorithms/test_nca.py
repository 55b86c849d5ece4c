"""
Tests for the NCA driver.
"""

import logging

import numpy as np
import pytest

from nca_metric.algorithms.nca import NCA, initial_transformation
from nca_metric.config import NCAConfig
from nca_metric.optimizers.factory import OptimizerFactory
from nca_metric.optimizers.lbfgs import LBFGS
from nca_metric.optimizers.sgd import StochasticGradientDescent


def test_initial_transformation_identity(small_data):
    X, _ = small_data
    np.testing.assert_array_equal(initial_transformation(X), np.eye(2))


def test_initial_transformation_normalized(caplog):
    """Normalized start scales each feature by 1 / range; constant features get 1."""
    X = np.array([[0.0, 2.0, 4.0], [5.0, 5.0, 5.0]])
    with caplog.at_level(logging.INFO, logger="nca_metric.algorithms.nca"):
        A = initial_transformation(X, normalize=True)

    np.testing.assert_allclose(A, np.diag([0.25, 1.0]))
    assert "zero range" in caplog.text
    assert "Using normalized starting point" in caplog.text


def test_default_optimizer_is_sgd(small_data):
    X, labels = small_data
    assert isinstance(NCA(X, labels).optimizer, StochasticGradientDescent)


def test_label_mismatch(small_data):
    X, _ = small_data
    with pytest.raises(ValueError, match="must match"):
        NCA(X, np.zeros(4, dtype=int))


def test_separated_data_identity_is_optimal(separated_data):
    """On perfectly separated clusters the identity is already a fixed point."""
    X, labels = separated_data
    nca = NCA(X, labels, optimizer=LBFGS())
    A = nca.learn_distance()

    assert nca.objective(np.eye(2)) == pytest.approx(6.0)
    assert nca.objective(A) == pytest.approx(6.0)
    assert nca.last_result is not None
    assert nca.last_result.converged


def test_lbfgs_improves_noisy_blobs(noisy_blobs):
    """L-BFGS never ends worse than where it started."""
    X, labels = noisy_blobs
    nca = NCA(X, labels, optimizer=LBFGS(max_iterations=50))
    start = nca.objective(np.eye(2))
    A = nca.learn_distance()

    assert A.shape == (2, 2)
    assert np.all(np.isfinite(A))
    assert nca.objective(A) >= start - 1e-9
    assert nca.last_result.objective == pytest.approx(-nca.objective(A))


def test_sgd_runs_on_noisy_blobs(noisy_blobs):
    X, labels = noisy_blobs
    sgd = StochasticGradientDescent(
        step_size=0.01, batch_size=5, max_iterations=200, tolerance=0.0,
        rng=np.random.default_rng(3),
    )
    nca = NCA(X, labels, optimizer=sgd)
    A = nca.learn_distance()

    assert np.all(np.isfinite(A))
    assert nca.last_result.iterations == 200


def test_normalized_start_with_constant_feature():
    X = np.array([[0.0, 1.0, 5.0, 6.0], [2.0, 2.0, 2.0, 2.0]])
    labels = np.array([0, 0, 1, 1])
    nca = NCA(X, labels, optimizer=LBFGS(max_iterations=5))
    A = nca.learn_distance(normalize=True)
    assert np.all(np.isfinite(A))


def test_explicit_start_is_not_modified(small_data):
    X, labels = small_data
    start = np.array([[1.0, 0.1], [0.0, 1.0]])
    original = start.copy()
    NCA(X, labels, optimizer=LBFGS(max_iterations=3)).learn_distance(start)
    np.testing.assert_array_equal(start, original)


def test_soft_accuracy_per_point(separated_data):
    X, labels = separated_data
    acc = NCA(X, labels).soft_accuracy(np.eye(2))
    assert acc.shape == (6,)
    np.testing.assert_allclose(acc, 1.0, atol=1e-12)


def test_sgd_and_lbfgs_reach_comparable_objectives(noisy_blobs):
    """Both optimizers improve on the identity and end up close to each other."""
    X, labels = noisy_blobs
    start = NCA(X, labels).objective(np.eye(2))

    finals = {}
    for name in ("sgd", "lbfgs"):
        cfg = NCAConfig(optimizer=name, seed=3, max_iterations=2000)
        nca = NCA(X, labels, optimizer=OptimizerFactory(cfg).create_from_config())
        finals[name] = nca.objective(nca.learn_distance())

    assert finals["sgd"] >= start
    assert finals["lbfgs"] >= start
    assert abs(finals["sgd"] - finals["lbfgs"]) <= 0.05 * X.shape[1]


def test_dataset_and_labels_are_read_only(small_data):
    X, labels = small_data
    nca = NCA(X, labels)
    np.testing.assert_array_equal(nca.dataset, X)
    np.testing.assert_array_equal(nca.labels, labels)
    assert not nca.dataset.flags.writeable
    assert not nca.labels.flags.writeable
