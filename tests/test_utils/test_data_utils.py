"""
Tests for matrix and label file helpers.
"""

import numpy as np
import pytest

from nca_metric.utils.data_utils import (
    load_labels,
    load_matrix,
    normalize_labels,
    save_matrix,
    split_label_row,
)


def test_load_csv_transposes(tmp_path):
    """Rows in the file become columns (points) in memory."""
    path = tmp_path / "data.csv"
    path.write_text("1,2\n3,4\n5,6\n")
    M = load_matrix(path)
    np.testing.assert_array_equal(M, [[1, 3, 5], [2, 4, 6]])


def test_load_whitespace_text(tmp_path):
    path = tmp_path / "data.txt"
    path.write_text("1 2 3\n4 5 6\n")
    np.testing.assert_array_equal(load_matrix(path, transpose=False), [[1, 2, 3], [4, 5, 6]])


def test_load_npy(tmp_path):
    path = tmp_path / "data.npy"
    np.save(path, np.arange(6, dtype=float).reshape(3, 2))
    assert load_matrix(path).shape == (2, 3)


def test_load_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_matrix(tmp_path / "missing.csv")


def test_load_non_numeric(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("1,a\n2,3\n")
    with pytest.raises(ValueError, match="Could not parse"):
        load_matrix(path)


def test_load_labels_row_or_column(tmp_path):
    column = tmp_path / "col.csv"
    column.write_text("0\n1\n1\n")
    row = tmp_path / "row.csv"
    row.write_text("0,1,1\n")
    assert load_labels(column).tolist() == [0, 1, 1]
    assert load_labels(row).tolist() == [0, 1, 1]


def test_load_labels_rejects_matrix_and_fractions(tmp_path):
    matrix = tmp_path / "matrix.csv"
    matrix.write_text("0,1\n1,0\n")
    fractional = tmp_path / "frac.csv"
    fractional.write_text("0.5\n1\n")
    with pytest.raises(ValueError):
        load_labels(matrix)
    with pytest.raises(ValueError, match="integers"):
        load_labels(fractional)


def test_save_matrix_is_not_transposed(tmp_path):
    """Saved matrices keep their in-memory orientation."""
    M = np.array([[1.0, 2.0], [3.0, 4.0]])
    path = save_matrix(tmp_path / "out" / "A.csv", M)
    np.testing.assert_allclose(np.loadtxt(path, delimiter=","), M)


def test_save_npy_and_text(tmp_path):
    M = np.array([[1.5, -2.0], [0.0, 4.0]])
    np.testing.assert_array_equal(np.load(save_matrix(tmp_path / "A.npy", M)), M)
    np.testing.assert_allclose(np.loadtxt(save_matrix(tmp_path / "A.txt", M)), M)


def test_split_label_row():
    data = np.array([[1.0, 2.0, 3.0], [4.0, 5.0, 6.0], [0.0, 1.0, 0.0]])
    X, labels = split_label_row(data)
    assert X.shape == (2, 3)
    assert labels.tolist() == [0, 1, 0]
    assert labels.dtype == np.int64


def test_split_label_row_errors():
    with pytest.raises(ValueError):
        split_label_row(np.array([[0.0, 1.0]]))
    with pytest.raises(ValueError, match="integer"):
        split_label_row(np.array([[1.0, 2.0], [0.5, 1.0]]))


def test_normalize_labels_first_appearance():
    normalized, mapping = normalize_labels(np.array([7, 3, 7, -1, 3]))
    assert normalized.tolist() == [0, 1, 0, 2, 1]
    assert mapping.tolist() == [7, 3, -1]
