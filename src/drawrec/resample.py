"""
Fixed-cardinality resampling of drawn point sequences.

Two interchangeable policies, both returning exactly N points:
- farthest_point_sampling: shape preserving (default for matching)
- resample_uniform: every k-th point / random repeats

Randomness always comes from a local numpy Generator built from the caller's
seed, never from global state, so concurrent calls do not interfere and the
same input + seed always gives a bit-identical result.
"""

import hashlib
import logging
from typing import Any, Optional

import numpy as np

from .config import JITTER_RATIO, N_POINTS, SamplingPolicy
from .normalize import as_point_array, get_bbox_diagonal

logger = logging.getLogger(__name__)


def stable_seed(name: str) -> int:
    """
    Deterministic 32-bit seed for a drawing name.

    Unlike hash(), this does not change between interpreter runs, so a
    reference drawing is always padded the same way.
    """
    digest = hashlib.sha256(name.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "little")


def _make_rng(seed: Optional[int]) -> np.random.Generator:
    return np.random.default_rng(seed)


def gaussian_noise(rng: np.random.Generator, shape, std: float) -> np.ndarray:
    """
    Normal(0, std) noise via the Box-Muller transform.

    Two independent uniform draws on (0, 1] per output value.
    """
    u1 = 1.0 - rng.random(shape)
    u2 = 1.0 - rng.random(shape)
    standard = np.sqrt(-2.0 * np.log(u1)) * np.sin(2.0 * np.pi * u2)
    return std * standard


def resample_uniform(points: Any, n: int = N_POINTS, seed: Optional[int] = None) -> np.ndarray:
    """
    Uniformly sample a point sequence to exactly n points.

    - More than n: take points at evenly spaced (floored) indices
    - Fewer than n: keep all points, then append random repeats
    - Exactly n: copy

    Args:
        points: Mx3 array-like, M >= 1
        n: Target number of points
        seed: Seed for the padding draws (None = nondeterministic)

    Returns:
        n x 3 array

    Raises:
        EmptyInputError: if points is empty
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    pts = as_point_array(points)
    m = len(pts)

    if m > n:
        if n == 1:
            return pts[:1].copy()
        idx = np.floor(np.arange(n) * (m - 1) / (n - 1)).astype(int)
        return pts[idx]

    if m < n:
        rng = _make_rng(seed)
        extra = rng.integers(0, m, size=n - m)
        return np.vstack([pts, pts[extra]])

    return pts.copy()


def _pad_with_jitter(
    pts: np.ndarray,
    repeat_count: int,
    rng: np.random.Generator,
    jitter_ratio: float
) -> np.ndarray:
    """Append repeat_count randomly chosen points with Gaussian jitter."""
    scale = get_bbox_diagonal(pts)
    if scale == 0.0:
        # All points identical; jitter relative to a unit scale
        scale = 1.0

    idx = rng.integers(0, len(pts), size=repeat_count)
    noise = gaussian_noise(rng, (repeat_count, 3), jitter_ratio * scale)
    return np.vstack([pts, pts[idx] + noise])


def _greedy_fps(pts: np.ndarray, n: int) -> np.ndarray:
    """
    Greedy farthest-point selection of n out of len(pts) > n points.

    Starts from the point farthest from the centroid. Ties always resolve to
    the first index (np.argmax). Returns points in selection order.
    """
    centroid = pts.mean(axis=0)
    first = int(np.argmax(np.linalg.norm(pts - centroid, axis=1)))

    selected = [first]
    min_dist = np.full(len(pts), np.inf)

    for _ in range(1, n):
        last = pts[selected[-1]]
        np.minimum(min_dist, np.linalg.norm(pts - last, axis=1), out=min_dist)
        selected.append(int(np.argmax(min_dist)))

    return pts[selected]


def farthest_point_sampling(
    points: Any,
    n: int = N_POINTS,
    seed: Optional[int] = None,
    jitter_ratio: float = JITTER_RATIO,
    jitter_upscale: bool = False
) -> np.ndarray:
    """
    Farthest Point Sampling (FPS) to exactly n points.

    Oversized input (M > n) is reduced by greedy farthest-point selection.
    Undersized input (M <= n) is padded with jittered copies of random
    existing points; in upscale mode n // 2 extra copies are added and FPS
    then selects n of them.

    Args:
        points: Mx3 array-like, M >= 1
        n: Target number of points
        seed: Seed for padding and jitter (None = nondeterministic)
        jitter_ratio: Jitter std as a fraction of the bbox diagonal
        jitter_upscale: Over-pad then select with FPS

    Returns:
        n x 3 array

    Raises:
        EmptyInputError: if points is empty
    """
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    pts = as_point_array(points)
    m = len(pts)

    if m > n:
        return _greedy_fps(pts, n)

    repeat_count = n - m
    if jitter_upscale:
        repeat_count += n // 2

    rng = _make_rng(seed)
    padded = _pad_with_jitter(pts, repeat_count, rng, jitter_ratio)
    logger.debug(f"Padded {m} points to {len(padded)} (upscale={jitter_upscale})")

    if len(padded) > n:
        return _greedy_fps(padded, n)
    return padded


def resample(
    points: Any,
    n: int = N_POINTS,
    seed: Optional[int] = None,
    policy: SamplingPolicy = SamplingPolicy.FPS,
    jitter_ratio: float = JITTER_RATIO,
    jitter_upscale: bool = False
) -> np.ndarray:
    """Resample to exactly n points with the given policy."""
    if policy == SamplingPolicy.UNIFORM:
        return resample_uniform(points, n, seed=seed)
    return farthest_point_sampling(
        points, n, seed=seed, jitter_ratio=jitter_ratio, jitter_upscale=jitter_upscale
    )
