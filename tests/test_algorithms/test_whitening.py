"""
Tests for PCA whitening.
"""

import numpy as np
import pytest

from nca_metric.algorithms.whitening import PcaWhitening


@pytest.fixture
def correlated_data():
    rng = np.random.default_rng(0)
    mixing = np.array([[2.0, 0.5, 0.0], [0.3, 1.0, 0.0], [0.0, 0.4, 0.5]])
    return mixing @ rng.standard_normal((3, 2000)) + np.array([[1.0], [-2.0], [5.0]])


def test_whitened_covariance_is_identity(correlated_data):
    Z = PcaWhitening().fit_transform(correlated_data)
    assert Z.shape == correlated_data.shape
    np.testing.assert_allclose(Z.mean(axis=1), 0.0, atol=1e-10)
    np.testing.assert_allclose(np.cov(Z), np.eye(3), atol=1e-3)


def test_inverse_transform_recovers_data(correlated_data):
    scaler = PcaWhitening()
    Z = scaler.fit_transform(correlated_data)
    np.testing.assert_allclose(scaler.inverse_transform(Z), correlated_data, atol=1e-8)


def test_constant_feature_stays_finite():
    """Epsilon keeps zero-variance directions from dividing by zero."""
    X = np.array([[1.0, 2.0, 3.0, 4.0], [7.0, 7.0, 7.0, 7.0]])
    Z = PcaWhitening().fit_transform(X)
    assert np.all(np.isfinite(Z))


def test_transform_before_fit():
    with pytest.raises(RuntimeError):
        PcaWhitening().transform(np.ones((2, 3)))


def test_invalid_inputs():
    with pytest.raises(ValueError):
        PcaWhitening(epsilon=-1.0)
    with pytest.raises(ValueError):
        PcaWhitening().fit(np.ones((2, 1)))
