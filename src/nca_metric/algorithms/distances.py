"""
Pairwise squared distances under a linear transformation.

Distances are always formed from difference vectors projected through the
transformation, ``||A (x_i - x_j)||^2``, never from an expanded Gram matrix.
"""

from __future__ import annotations

from typing import Iterator, Sequence, Union

import numpy as np

Array2D = np.ndarray
Anchors = Union[Sequence[int], np.ndarray, slice]

# Upper bound on elements of the (D, chunk, N) difference tensor built per
# chunk of anchors (2**22 float64 values is 32 MiB).
DEFAULT_ELEMENT_BUDGET = 2 ** 22


def transform_points(A: Array2D, X: Array2D) -> Array2D:
    """Project every column of *X* (D x N) through *A*."""
    return A @ X


def anchor_differences(X: Array2D, anchors: np.ndarray) -> np.ndarray:
    """
    Difference vectors between anchor points and all points.

    Args:
        X: Data of shape (D, N), one point per column
        anchors: 1-D integer array of anchor indices (length b)

    Returns:
        Array of shape (D, b, N) with ``out[:, a, j] = X[:, anchors[a]] - X[:, j]``
    """
    return X[:, anchors, None] - X[:, None, :]


def difference_sq_norms(A: Array2D, diffs: np.ndarray) -> Array2D:
    """Squared norms of difference vectors (D, b, N) after projection through *A*."""
    projected = np.einsum("ed,dbn->ebn", A, diffs)
    return np.einsum("ebn,ebn->bn", projected, projected)


def squared_distances(
    A: Array2D,
    X: Array2D,
    anchors: Anchors,
    element_budget: int = DEFAULT_ELEMENT_BUDGET,
) -> Array2D:
    """
    Squared transformed distances from each anchor to every point.

    Args:
        A: Transformation of shape (D, D)
        X: Data of shape (D, N)
        anchors: Anchor indices (sequence, array or slice)
        element_budget: Maximum size of the difference tensor per chunk

    Returns:
        Array of shape (b, N); the anchor's own column is 0
    """
    idx = resolve_anchors(anchors, X.shape[1])
    out = np.empty((idx.shape[0], X.shape[1]), dtype=np.float64)
    chunk_size = anchor_chunk_size(X.shape[0], X.shape[1], element_budget)
    for start, chunk in iter_anchor_chunks(idx, chunk_size):
        out[start:start + chunk.shape[0]] = difference_sq_norms(A, anchor_differences(X, chunk))
    return out


def resolve_anchors(anchors: Anchors, n_points: int) -> np.ndarray:
    """Normalize an anchor specification to a 1-D int array of indices."""
    if isinstance(anchors, slice):
        return np.arange(n_points)[anchors]
    idx = np.asarray(anchors, dtype=np.int64).ravel()
    if idx.size and (idx.min() < 0 or idx.max() >= n_points):
        raise IndexError(
            f"Anchor indices must lie in [0, {n_points}); got range "
            f"[{idx.min()}, {idx.max()}]"
        )
    return idx


def anchor_chunk_size(
    n_features: int, n_points: int, element_budget: int = DEFAULT_ELEMENT_BUDGET
) -> int:
    """Number of anchors whose (D, chunk, N) differences fit in *element_budget*."""
    if element_budget < 1:
        raise ValueError(f"element_budget must be >= 1, got {element_budget}")
    return max(1, element_budget // max(1, n_features * n_points))


def iter_anchor_chunks(
    idx: np.ndarray, chunk_size: int
) -> Iterator[tuple[int, np.ndarray]]:
    """Yield ``(offset, chunk)`` pairs covering *idx* in order."""
    for start in range(0, idx.shape[0], chunk_size):
        yield start, idx[start:start + chunk_size]
