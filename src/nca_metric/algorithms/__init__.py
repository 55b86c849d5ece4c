"""
Algorithm Core Library - Neighborhood Components Analysis.

Distance computation, the soft-neighbor objective and its gradient, the
objective adapter handed to optimizers, the NCA driver, and PCA whitening.
"""

from .distances import squared_distances, transform_points
from .softmax import SoftNeighborResult, evaluate_soft_neighbors, neighbor_probabilities
from .objective import DecomposableFunction, SoftmaxErrorFunction
from .nca import NCA, initial_transformation
from .whitening import PcaWhitening

__all__ = [
    # Distances
    "squared_distances",
    "transform_points",
    # Soft neighbors
    "SoftNeighborResult",
    "evaluate_soft_neighbors",
    "neighbor_probabilities",
    # Objective
    "DecomposableFunction",
    "SoftmaxErrorFunction",
    # Driver
    "NCA",
    "initial_transformation",
    # Preprocessing
    "PcaWhitening",
]
