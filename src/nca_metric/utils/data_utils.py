"""
Matrix and label helpers for loading NCA inputs and saving results.

Files hold one point per row; in memory a dataset is stored with one point
per column, so ``load_matrix`` transposes text and ``.npy`` inputs alike.
"""

from __future__ import annotations

from pathlib import Path
from typing import Tuple, Union

import numpy as np

from .logging_config import get_logger

logger = get_logger(__name__)

PathLike = Union[str, Path]


def load_matrix(path: PathLike, transpose: bool = True) -> np.ndarray:
    """
    Load a dense numeric matrix from ``.npy``, ``.csv`` or whitespace text.

    Args:
        path: File to read
        transpose: If True (default), rows in the file become columns in the
            returned array (one point per column)

    Returns:
        2-D float64 array

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file does not contain a 2-D numeric matrix
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Matrix file not found: {path}")

    if path.suffix == ".npy":
        M = np.load(path, allow_pickle=False)
    else:
        delimiter = "," if _looks_like_csv(path) else None
        try:
            M = np.loadtxt(path, delimiter=delimiter, ndmin=2, dtype=np.float64)
        except ValueError as e:
            raise ValueError(f"Could not parse numeric matrix from {path}: {e}") from e

    M = np.asarray(M, dtype=np.float64)
    if M.ndim == 1:
        M = M[:, None]
    if M.ndim != 2:
        raise ValueError(f"Expected a 2-D matrix in {path}; got shape {M.shape}")

    logger.debug("Loaded %s with shape %s", path, M.shape)
    return M.T.copy() if transpose else M


def load_labels(path: PathLike) -> np.ndarray:
    """
    Load a vector of integer labels (one per point).

    Both a single row and a single column of values are accepted.

    Raises:
        ValueError: If the file holds a full matrix or non-integer values
    """
    M = load_matrix(path, transpose=False)
    if min(M.shape) != 1:
        raise ValueError(
            f"Labels file {path} must hold a single row or column; got shape {M.shape}"
        )
    flat = M.ravel()
    if not np.all(np.isfinite(flat)) or not np.all(flat == np.round(flat)):
        raise ValueError(f"Labels in {path} must be integers")
    return flat.astype(np.int64)


def save_matrix(path: PathLike, M: np.ndarray) -> Path:
    """
    Save a matrix to ``.npy`` or text (CSV for ``.csv``, whitespace otherwise).

    The matrix is written as-is, without transposition.

    Returns:
        The resolved output path
    """
    path = Path(path)
    if not path.parent.exists():
        path.parent.mkdir(parents=True, exist_ok=True)

    M = np.asarray(M, dtype=np.float64)
    if path.suffix == ".npy":
        np.save(path, M)
    else:
        delimiter = "," if path.suffix == ".csv" else " "
        np.savetxt(path, np.atleast_2d(M), delimiter=delimiter, fmt="%.18e")
    logger.info("Saved matrix with shape %s to %s", M.shape, path)
    return path


def split_label_row(data: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Split the final row of a (D+1, N) matrix off as integer labels.

    Returns:
        Tuple of (dataset of shape (D, N), labels of shape (N,))

    Raises:
        ValueError: If there is no feature row left after removing labels
    """
    if data.ndim != 2 or data.shape[0] < 2:
        raise ValueError(
            "Input must have at least one feature row plus a label row; "
            f"got shape {data.shape}"
        )
    raw = data[-1]
    if not np.all(raw == np.round(raw)):
        raise ValueError("Final row of the input must hold integer class labels")
    return data[:-1].copy(), raw.astype(np.int64)


def normalize_labels(labels: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Map arbitrary integer labels onto the contiguous range ``[0, C)``.

    Ids are assigned in order of first appearance.

    Returns:
        Tuple of:
        - normalized: Array of the same length with values in [0, C)
        - mapping: Array of length C; ``mapping[k]`` is the original label of id k
    """
    labels = np.asarray(labels).ravel()
    mapping: list = []
    index: dict = {}
    normalized = np.empty(labels.shape[0], dtype=np.int64)
    for i, label in enumerate(labels.tolist()):
        if label not in index:
            index[label] = len(mapping)
            mapping.append(label)
        normalized[i] = index[label]
    return normalized, np.asarray(mapping, dtype=labels.dtype)


def _looks_like_csv(path: Path) -> bool:
    """Peek at the first non-empty line to see if it is comma separated."""
    with open(path, "r", encoding="utf-8") as fh:
        for line in fh:
            stripped = line.strip()
            if stripped:
                return "," in stripped
    return False
