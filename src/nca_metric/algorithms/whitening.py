"""
PCA whitening for feature decorrelation.

Independent of the NCA engine; useful as a preprocessing step before
learning a metric. Data follows the package convention of one point per
column.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

Array2D = np.ndarray


class PcaWhitening:
    """
    Whitens data using the eigendecomposition of its covariance.

    After ``transform`` the covariance of the output is (close to) the
    identity; ``epsilon`` is added to every eigenvalue so that directions
    of near-zero variance do not blow up.

    Usage:
        scaler = PcaWhitening()
        Z = scaler.fit_transform(X)          # X is (D, N)
        X_back = scaler.inverse_transform(Z)
    """

    def __init__(self, epsilon: float = 5e-5):
        if epsilon < 0:
            raise ValueError(f"epsilon must be >= 0, got {epsilon}")
        self.epsilon = float(epsilon)
        self.item_mean: Optional[np.ndarray] = None
        self.eigenvalues: Optional[np.ndarray] = None
        self.eigenvectors: Optional[Array2D] = None

    def fit(self, X: Array2D) -> "PcaWhitening":
        """
        Estimate the mean and the covariance eigenbasis of *X*.

        Raises:
            ValueError: If X is not 2-D or has fewer than two points
        """
        X = np.asarray(X, dtype=np.float64)
        if X.ndim != 2:
            raise ValueError(f"X must be a 2-D (D, N) matrix; got shape {X.shape}")
        if X.shape[1] < 2:
            raise ValueError("PCA whitening needs at least two points")

        mu = X.mean(axis=1, keepdims=True)
        Xc = X - mu
        cov = (Xc @ Xc.T) / (X.shape[1] - 1)
        eigenvalues, eigenvectors = np.linalg.eigh(cov)

        self.item_mean = mu
        self.eigenvalues = eigenvalues + self.epsilon
        self.eigenvectors = eigenvectors
        return self

    def transform(self, X: Array2D) -> Array2D:
        """Center *X* and map it onto the scaled eigenbasis."""
        self._check_fitted()
        Xc = np.asarray(X, dtype=np.float64) - self.item_mean
        return (self.eigenvectors.T @ Xc) / np.sqrt(self.eigenvalues)[:, None]

    def fit_transform(self, X: Array2D) -> Array2D:
        return self.fit(X).transform(X)

    def inverse_transform(self, Z: Array2D) -> Array2D:
        """Map whitened data back to the original feature space."""
        self._check_fitted()
        scaled = np.asarray(Z, dtype=np.float64) * np.sqrt(self.eigenvalues)[:, None]
        return self.eigenvectors @ scaled + self.item_mean

    def _check_fitted(self) -> None:
        if self.eigenvectors is None:
            raise RuntimeError("PcaWhitening must be fitted before use")
