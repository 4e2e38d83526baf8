"""
Point sequence normalization utilities.

CRITICAL: The anchor (index 0) is load-bearing. Every sequence that is compared
(query and references alike) must be normalized against its own first point,
AFTER resampling, otherwise distances are not comparable.

Normalization makes matching invariant to translation only. Scale invariance
comes from the feature matrix (see features.py).
"""

import numpy as np
from typing import Any

from .errors import EmptyInputError, PointShapeError


def as_point_array(points: Any) -> np.ndarray:
    """
    Convert an array-like of (x, y, z) triples to an Mx3 float64 array.

    Always returns a new array; the caller's data is never modified.

    Raises:
        EmptyInputError: if there are no points
        PointShapeError: if the points are not numeric (x, y, z) triples
    """
    try:
        arr = np.array(points, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise PointShapeError(f"Points are not numeric (x, y, z) triples: {e}") from e
    if arr.size == 0:
        raise EmptyInputError("Point sequence is empty")
    if arr.ndim == 1 and arr.shape[0] == 3:
        arr = arr.reshape(1, 3)
    if arr.ndim != 2 or arr.shape[1] != 3:
        raise PointShapeError(f"Expected an Mx3 point array, got shape {arr.shape}")
    return arr


def get_bbox_diagonal(points: np.ndarray) -> float:
    """Length of the bounding-box diagonal (0.0 when all points coincide)."""
    return float(np.linalg.norm(points.max(axis=0) - points.min(axis=0)))


def set_first_as_origin(points: Any) -> np.ndarray:
    """
    Translate a point sequence so its first point becomes (0, 0, 0).

    Args:
        points: Mx3 array-like, M >= 1

    Returns:
        New Mx3 array with points[i] - points[0] for every i

    Raises:
        EmptyInputError: if points is empty
    """
    arr = as_point_array(points)
    return arr - arr[0]


normalize = set_first_as_origin
