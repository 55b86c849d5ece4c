"""Utility modules for NCA Metric."""

from .logging_config import get_logger, setup_logging
from .data_utils import (
    load_matrix,
    load_labels,
    save_matrix,
    split_label_row,
    normalize_labels,
)

__all__ = [
    "get_logger",
    "setup_logging",
    "load_matrix",
    "load_labels",
    "save_matrix",
    "split_label_row",
    "normalize_labels",
]
