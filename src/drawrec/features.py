"""
Pairwise-relation feature matrix for a fixed-size point sequence.

Channel 0: Euclidean distance between points i and j
Channel 1: height (y) difference, points[i].y - points[j].y

Both channels are divided by the largest pairwise distance, so the matrix is
invariant to translation and uniform scale.
"""

from typing import Any, Optional

import numpy as np
from scipy.spatial.distance import cdist

from .config import FEATURE_EPSILON, N_POINTS
from .errors import FeatureSizeError
from .normalize import as_point_array


def compute_2channel_matrix(points: Any, n: Optional[int] = N_POINTS) -> np.ndarray:
    """
    Compute the N x N x 2 distance / height-difference matrix.

    Args:
        points: Nx3 array-like (already resampled and normalized)
        n: Expected number of points (default N_POINTS); pass None to
           accept any length

    Returns:
        (N, N, 2) float64 array. Channel 0 is symmetric, channel 1 is
        antisymmetric, and the diagonal is zero in both channels.

    Raises:
        EmptyInputError: if points is empty
        FeatureSizeError: if len(points) != n
    """
    pts = as_point_array(points)
    if n is not None and len(pts) != n:
        raise FeatureSizeError(f"Expected {n} points, got {len(pts)}")

    dist = cdist(pts, pts)
    y = pts[:, 1]
    y_diff = y[:, None] - y[None, :]

    scale = float(dist.max()) + FEATURE_EPSILON

    return np.stack([dist / scale, y_diff / scale], axis=-1)


encode = compute_2channel_matrix


def to_input_tensor(features: np.ndarray) -> np.ndarray:
    """Batch a feature matrix into a (1, N, N, 2) float32 NHWC tensor."""
    features = np.asarray(features, dtype=np.float32)
    if features.ndim != 3 or features.shape[0] != features.shape[1] or features.shape[2] != 2:
        raise FeatureSizeError(f"Expected an (N, N, 2) feature matrix, got {features.shape}")
    return features[np.newaxis, ...]
