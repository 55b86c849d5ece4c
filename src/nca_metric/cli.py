"""
Command-line entry point for Neighborhood Components Analysis.

Usage:
    nca-metric --input data.csv --output distance.csv
    nca-metric --input points.csv --labels labels.csv --optimizer lbfgs
    nca-metric --input data.csv --output A.npy --normalize --step-size 0.001

Without --labels, the last column of the input file holds the class labels.
Options not given on the command line fall back to NCA_* environment
variables (see .env.example) and then to the built-in defaults.
"""

import argparse
import sys
from typing import Optional, Sequence

import numpy as np

from .algorithms.nca import NCA
from .config import NCAConfig
from .optimizers.factory import OptimizerFactory
from .utils.data_utils import (
    load_labels,
    load_matrix,
    normalize_labels,
    save_matrix,
    split_label_row,
)
from .utils.logging_config import get_logger, setup_logging

logger = get_logger(__name__)

DESCRIPTION = (
    "Neighborhood Components Analysis (NCA): learns a linear distance "
    "transformation that improves k-nearest-neighbor classification, using "
    "stochastic (\"soft\") neighbor assignments and gradient-based "
    "optimization (SGD or L-BFGS). The objective is non-convex, so results "
    "may depend on the random seed and optimizer parameters."
)

# Command-line options that map one-to-one onto NCAConfig fields.
CONFIG_OPTIONS = (
    "optimizer",
    "max_iterations",
    "tolerance",
    "step_size",
    "batch_size",
    "linear_scan",
    "num_basis",
    "armijo_constant",
    "wolfe",
    "max_line_search_trials",
    "min_step",
    "max_step",
    "normalize",
    "seed",
)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser. Option defaults are None so that explicitly
    supplied options can be told apart from configured ones."""
    parser = argparse.ArgumentParser(prog="nca-metric", description=DESCRIPTION)
    parser.add_argument("-i", "--input", required=True, help="Input dataset to run NCA on.")
    parser.add_argument("-o", "--output", default=None,
                        help="Output file for the learned distance matrix (.npy, .csv or text).")
    parser.add_argument("-l", "--labels", default=None, help="Labels for the input dataset.")
    parser.add_argument("-O", "--optimizer", default=None, choices=["sgd", "lbfgs"],
                        help="Optimizer to use (default: sgd).")
    parser.add_argument("-N", "--normalize", action="store_const", const=True, default=None,
                        help="Use a normalized starting point for optimization. Useful when "
                             "points are far apart or SGD returns NaN.")
    parser.add_argument("-n", "--max-iterations", type=int, default=None,
                        help="Maximum number of iterations for SGD or L-BFGS (0 means no limit). "
                             "For SGD one iteration is one point.")
    parser.add_argument("-t", "--tolerance", type=float, default=None,
                        help="Maximum tolerance for termination of SGD or L-BFGS.")
    parser.add_argument("-a", "--step-size", type=float, default=None,
                        help="Step size for stochastic gradient descent (alpha).")
    parser.add_argument("-L", "--linear-scan", action="store_const", const=True, default=None,
                        help="Don't shuffle the order in which data points are visited for SGD.")
    parser.add_argument("-b", "--batch-size", type=int, default=None,
                        help="Batch size for mini-batch SGD.")
    parser.add_argument("-B", "--num-basis", type=int, default=None,
                        help="Number of memory points to be stored for L-BFGS.")
    parser.add_argument("-A", "--armijo-constant", type=float, default=None,
                        help="Armijo constant for L-BFGS.")
    parser.add_argument("-w", "--wolfe", type=float, default=None,
                        help="Wolfe condition parameter for L-BFGS.")
    parser.add_argument("-T", "--max-line-search-trials", type=int, default=None,
                        help="Maximum number of line search trials for L-BFGS.")
    parser.add_argument("-m", "--min-step", type=float, default=None,
                        help="Minimum step of line search for L-BFGS.")
    parser.add_argument("-M", "--max-step", type=float, default=None,
                        help="Maximum step of line search for L-BFGS.")
    parser.add_argument("-s", "--seed", type=int, default=None,
                        help="Random seed. If 0, the current time is used.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser


def load_dataset(input_path: str, labels_path: Optional[str]) -> tuple[np.ndarray, np.ndarray]:
    """
    Load the (D, N) dataset and its raw labels.

    Raises:
        ValueError: If the label count does not match the point count
    """
    data = load_matrix(input_path)
    if labels_path is not None:
        labels = load_labels(labels_path)
        if labels.shape[0] != data.shape[1]:
            raise ValueError(
                f"The number of labels ({labels.shape[0]}) must match the "
                f"number of points ({data.shape[1]})!"
            )
        return data, labels

    logger.info("Using last column of input dataset as labels.")
    return split_label_row(data)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run NCA from the command line. Returns the process exit status."""
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else None)

    explicit = {
        name: getattr(args, name)
        for name in CONFIG_OPTIONS
        if getattr(args, name) is not None
    }
    try:
        cfg = NCAConfig.from_env(**explicit)
    except ValueError as e:
        logger.error("%s", e)
        return 1

    cfg.report_ignored_parameters(set(explicit) | set(NCAConfig.env_field_names()))
    if args.output is None:
        logger.warning("--output is not specified; no output will be saved")

    try:
        data, raw_labels = load_dataset(args.input, args.labels)
    except (OSError, ValueError) as e:
        logger.error("%s", e)
        return 1

    labels, mapping = normalize_labels(raw_labels)
    logger.info(
        "Loaded %d point(s) with %d feature(s) in %d class(es)",
        data.shape[1],
        data.shape[0],
        mapping.shape[0],
    )

    rng = np.random.default_rng(cfg.resolve_seed())
    try:
        optimizer = OptimizerFactory(cfg).create_from_config(rng=rng)
    except ValueError as e:
        logger.error("%s", e)
        return 1

    nca = NCA(data, labels, optimizer=optimizer)
    distance = nca.learn_distance(normalize=cfg.normalize)

    if args.output is not None:
        save_matrix(args.output, distance)
    return 0


if __name__ == "__main__":
    sys.exit(main())
