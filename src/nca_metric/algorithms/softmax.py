"""
Stochastic ("soft") nearest-neighbor assignment.

For an anchor point i, every other point j is chosen as its neighbor with
probability

    p(i, j) = exp(-d(i, j)) / sum_{k != i} exp(-d(i, k)),    p(i, i) = 0

where d is the squared distance under the transformation A. The soft
accuracy of anchor i is the probability mass on same-class points,

    p_i = sum_{j : y_j = y_i} p(i, j)

and the gradient of sum_i p_i with respect to A is

    2 A sum_i sum_j p(i, j) (p_i - [y_j = y_i]) dx_ij dx_ij^T.

If every affinity of an anchor underflows to zero the row is left at zero,
so that anchor adds nothing to the objective or the gradient.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from .distances import (
    Anchors,
    DEFAULT_ELEMENT_BUDGET,
    anchor_chunk_size,
    anchor_differences,
    difference_sq_norms,
    iter_anchor_chunks,
    resolve_anchors,
)
from ..utils.logging_config import get_logger

logger = get_logger(__name__)

Array2D = np.ndarray


@dataclass
class SoftNeighborResult:
    """Soft-neighbor statistics for a set of anchor points."""

    anchors: np.ndarray
    soft_accuracy: np.ndarray
    n_degenerate: int = 0
    gradient: Optional[Array2D] = None
    probabilities: Optional[Array2D] = None

    @property
    def objective(self) -> float:
        """Sum of soft accuracies over the anchors (the quantity to maximize)."""
        return float(np.sum(self.soft_accuracy))


def neighbor_probabilities(
    sq_dists: Array2D, anchors: np.ndarray
) -> tuple[Array2D, np.ndarray]:
    """
    Row-normalized softmax of negative squared distances.

    Args:
        sq_dists: (b, N) squared distances from each anchor to every point
        anchors: (b,) index of each anchor, whose own column is zeroed

    Returns:
        Tuple of:
        - P: (b, N) probabilities; degenerate rows are all zero
        - degenerate: (b,) boolean mask of rows whose denominator was 0
    """
    W = np.exp(-sq_dists)
    W[np.arange(anchors.shape[0]), anchors] = 0.0
    denom = W.sum(axis=1)
    degenerate = denom == 0.0
    safe = np.where(degenerate, 1.0, denom)
    P = W / safe[:, None]
    return P, degenerate


def same_class_mask(labels: np.ndarray, anchors: np.ndarray) -> np.ndarray:
    """(b, N) boolean mask, True where point j shares anchor i's label."""
    return labels[anchors][:, None] == labels[None, :]


def evaluate_soft_neighbors(
    A: Array2D,
    X: Array2D,
    labels: np.ndarray,
    anchors: Anchors,
    *,
    with_gradient: bool = False,
    keep_probabilities: bool = False,
    warn_degenerate: bool = True,
    element_budget: int = DEFAULT_ELEMENT_BUDGET,
) -> SoftNeighborResult:
    """
    Soft accuracy (and optionally its gradient) for a set of anchors.

    Anchors are processed in chunks sized so that the (D, chunk, N)
    difference tensor holds at most *element_budget* values; the raw
    difference vectors of a chunk are reused for the gradient.

    Args:
        A: Transformation of shape (D, D)
        X: Data of shape (D, N), one point per column
        labels: (N,) integer labels
        anchors: Anchor indices (sequence, array or slice)
        with_gradient: Also accumulate d(sum p_i)/dA
        keep_probabilities: Keep the full (b, N) probability matrix
        warn_degenerate: Log a warning when some anchors have a zero denominator
        element_budget: Maximum size of the per-chunk difference tensor

    Returns:
        SoftNeighborResult for the requested anchors
    """
    idx = resolve_anchors(anchors, X.shape[1])
    n_features = X.shape[0]

    soft_acc = np.zeros(idx.shape[0], dtype=np.float64)
    weighted_scatter = np.zeros((n_features, n_features)) if with_gradient else None
    probabilities = np.zeros((idx.shape[0], X.shape[1])) if keep_probabilities else None
    n_degenerate = 0

    chunk_size = anchor_chunk_size(n_features, X.shape[1], element_budget)
    for start, chunk in iter_anchor_chunks(idx, chunk_size):
        stop = start + chunk.shape[0]
        diffs = anchor_differences(X, chunk)
        sq_dists = difference_sq_norms(A, diffs)

        P, degenerate = neighbor_probabilities(sq_dists, chunk)
        n_degenerate += int(np.count_nonzero(degenerate))

        same = same_class_mask(labels, chunk)
        p_i = np.sum(P * same, axis=1)
        soft_acc[start:stop] = p_i

        if probabilities is not None:
            probabilities[start:stop] = P

        if weighted_scatter is not None:
            C = P * (p_i[:, None] - same)
            weighted_scatter += np.tensordot(diffs * C, diffs, axes=([1, 2], [1, 2]))

    if n_degenerate and warn_degenerate:
        logger.warning(
            "Denominator of p_i is 0 for %d of %d anchor point(s); their "
            "contribution is skipped. Try a normalized starting point or a "
            "smaller step size.",
            n_degenerate,
            idx.shape[0],
        )

    gradient = 2.0 * A @ weighted_scatter if weighted_scatter is not None else None
    return SoftNeighborResult(
        anchors=idx,
        soft_accuracy=soft_acc,
        n_degenerate=n_degenerate,
        gradient=gradient,
        probabilities=probabilities,
    )
