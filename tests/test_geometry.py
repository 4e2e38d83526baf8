"""
Tests for the geometry pipeline.

Tests cover:
- First-point normalization
- Uniform resampling
- Farthest point sampling (oversized, undersized, upscale)
- 2-channel feature matrix
"""

import numpy as np
import pytest

from drawrec.config import SamplingPolicy
from drawrec.errors import EmptyInputError, FeatureSizeError, PointShapeError
from drawrec.features import compute_2channel_matrix, encode, to_input_tensor
from drawrec.normalize import as_point_array, get_bbox_diagonal, set_first_as_origin
from drawrec.resample import (
    farthest_point_sampling,
    gaussian_noise,
    resample,
    resample_uniform,
    stable_seed,
)


# ============== Normalization Tests ==============

class TestSetFirstAsOrigin:
    """Test anchor normalization."""

    def test_first_point_is_zero(self, helix_points):
        result = set_first_as_origin(helix_points)
        np.testing.assert_array_equal(result[0], np.zeros(3))

    def test_relative_positions(self, helix_points):
        result = set_first_as_origin(helix_points)
        np.testing.assert_array_equal(result, helix_points - helix_points[0])

    def test_idempotent(self, helix_points):
        once = set_first_as_origin(helix_points)
        twice = set_first_as_origin(once)
        np.testing.assert_array_equal(once, twice)

    def test_does_not_modify_input(self, l_shape):
        original = l_shape.copy() + 3.0
        points = original.copy()
        set_first_as_origin(points)
        np.testing.assert_array_equal(points, original)

    def test_accepts_tuples(self):
        result = set_first_as_origin([(2, 3, 4), (3, 3, 4)])
        np.testing.assert_array_equal(result, [[0, 0, 0], [1, 0, 0]])

    def test_single_point(self):
        result = set_first_as_origin(np.array([5.0, 6.0, 7.0]))
        assert result.shape == (1, 3)
        np.testing.assert_array_equal(result, [[0, 0, 0]])

    def test_empty_raises(self):
        with pytest.raises(EmptyInputError):
            set_first_as_origin([])

    def test_wrong_dimension_raises(self):
        with pytest.raises(PointShapeError):
            as_point_array([[1.0, 2.0], [3.0, 4.0]])

    def test_ragged_points_raise(self):
        with pytest.raises(PointShapeError):
            as_point_array([[1.0, 2.0, 3.0], [4.0, 5.0]])

    def test_non_numeric_points_raise(self):
        with pytest.raises(PointShapeError):
            as_point_array([["a", "b", "c"]])


def test_bbox_diagonal():
    points = np.array([[0, 0, 0], [3, 4, 0], [1, 1, 0]])
    assert get_bbox_diagonal(points) == pytest.approx(5.0)


# ============== Uniform Resampling Tests ==============

class TestResampleUniform:
    """Test every-k-th / random-repeat resampling."""

    def test_downsample_indices(self):
        points = np.arange(30, dtype=float).reshape(10, 3)
        result = resample_uniform(points, 4)
        # floor(i * 9 / 3) for i = 0..3
        np.testing.assert_array_equal(result, points[[0, 3, 6, 9]])

    def test_downsample_to_one(self, helix_points):
        result = resample_uniform(helix_points, 1)
        np.testing.assert_array_equal(result, helix_points[:1])

    def test_pad_keeps_originals_first(self, circle_points):
        result = resample_uniform(circle_points, 100, seed=3)
        assert result.shape == (100, 3)
        np.testing.assert_array_equal(result[:60], circle_points)

    def test_padding_repeats_existing_points(self, l_shape):
        result = resample_uniform(l_shape, 20, seed=1)
        for p in result[3:]:
            assert any(np.array_equal(p, q) for q in l_shape)

    def test_seeded_padding_reproducible(self, l_shape):
        a = resample_uniform(l_shape, 50, seed=42)
        b = resample_uniform(l_shape, 50, seed=42)
        np.testing.assert_array_equal(a, b)

    def test_exact_size_is_copy(self, circle_points):
        result = resample_uniform(circle_points, 60)
        np.testing.assert_array_equal(result, circle_points)
        assert result is not circle_points

    def test_empty_raises(self):
        with pytest.raises(EmptyInputError):
            resample_uniform(np.empty((0, 3)), 8)


# ============== Farthest Point Sampling Tests ==============

class TestFarthestPointSampling:
    """Test FPS resampling."""

    @pytest.mark.parametrize("m", [1, 2, 7, 128, 129, 400])
    @pytest.mark.parametrize("n", [1, 16, 128])
    def test_always_n_points(self, m, n):
        points = np.random.default_rng(m).normal(size=(m, 3))
        for policy in SamplingPolicy:
            assert resample(points, n, seed=0, policy=policy).shape == (n, 3)

    @pytest.mark.parametrize("m", [1, 10, 64])
    def test_upscale_n_points(self, m):
        points = np.random.default_rng(m).normal(size=(m, 3))
        result = farthest_point_sampling(points, 64, seed=5, jitter_upscale=True)
        assert result.shape == (64, 3)

    def test_first_point_is_outlier(self):
        rng = np.random.default_rng(0)
        cluster = rng.uniform(-1, 1, size=(200, 3))
        outlier = np.array([[100.0, 0.0, 0.0]])
        points = np.vstack([cluster[:50], outlier, cluster[50:]])

        result = farthest_point_sampling(points, 16)

        np.testing.assert_array_equal(result[0], outlier[0])

    def test_selection_order_with_ties(self):
        """Centroid tie goes to the first point, then farthest-first."""
        points = np.column_stack([np.arange(11.0), np.zeros(11), np.zeros(11)])
        result = farthest_point_sampling(points, 3)
        np.testing.assert_array_equal(result[:, 0], [0.0, 10.0, 5.0])

    def test_oversized_selects_input_points(self, helix_points):
        result = farthest_point_sampling(helix_points, 32)
        for p in result:
            assert np.any(np.all(helix_points == p, axis=1))

    def test_oversized_no_duplicates(self, helix_points):
        result = farthest_point_sampling(helix_points, 128)
        assert len(np.unique(result, axis=0)) == 128

    def test_seeded_determinism(self, circle_points):
        a = farthest_point_sampling(circle_points, 128, seed=7)
        b = farthest_point_sampling(circle_points, 128, seed=7)
        np.testing.assert_array_equal(a, b)

    def test_seeded_upscale_determinism(self, l_shape):
        a = farthest_point_sampling(l_shape, 32, seed=11, jitter_upscale=True)
        b = farthest_point_sampling(l_shape, 32, seed=11, jitter_upscale=True)
        np.testing.assert_array_equal(a, b)

    def test_different_seeds_differ(self, l_shape):
        a = farthest_point_sampling(l_shape, 32, seed=1)
        b = farthest_point_sampling(l_shape, 32, seed=2)
        assert not np.array_equal(a, b)

    def test_padding_is_small_jitter(self, l_shape):
        result = farthest_point_sampling(l_shape, 64, seed=0)
        np.testing.assert_array_equal(result[:3], l_shape)

        scale = get_bbox_diagonal(l_shape)
        for p in result[3:]:
            nearest = np.min(np.linalg.norm(l_shape - p, axis=1))
            assert nearest < 1e-2 * scale

    def test_identical_points_use_unit_scale(self):
        points = np.ones((4, 3))
        result = farthest_point_sampling(points, 32, seed=0)
        assert result.shape == (32, 3)
        assert np.all(np.abs(result - 1.0) < 1e-2)
        assert not np.array_equal(result[4:], np.ones((28, 3)))

    def test_empty_raises(self):
        with pytest.raises(EmptyInputError):
            farthest_point_sampling([], 128)


def test_stable_seed():
    assert stable_seed("circle") == stable_seed("circle")
    assert stable_seed("circle") != stable_seed("square")
    assert 0 <= stable_seed("circle") < 2 ** 32


def test_box_muller_is_standard_normal():
    samples = gaussian_noise(np.random.default_rng(0), (100000,), 1.0)
    assert abs(samples.mean()) < 0.02
    assert abs(samples.std() - 1.0) < 0.02


# ============== Feature Matrix Tests ==============

class TestCompute2ChannelMatrix:
    """Test distance / height-difference matrix."""

    def test_shape(self, helix_points):
        points = farthest_point_sampling(helix_points, 128)
        result = compute_2channel_matrix(points, n=128)
        assert result.shape == (128, 128, 2)

    def test_symmetry(self, helix_points):
        points = set_first_as_origin(farthest_point_sampling(helix_points, 64))
        result = compute_2channel_matrix(points, n=64)

        np.testing.assert_array_equal(result[..., 0], result[..., 0].T)
        np.testing.assert_array_equal(result[..., 1], -result[..., 1].T)
        np.testing.assert_array_equal(np.diagonal(result[..., 0]), np.zeros(64))
        np.testing.assert_array_equal(np.diagonal(result[..., 1]), np.zeros(64))

    def test_known_values(self):
        result = compute_2channel_matrix([[0, 0, 0], [3, 4, 0]], n=2)
        assert result[0, 1, 0] == pytest.approx(1.0)
        assert result[0, 1, 1] == pytest.approx(-0.8)
        assert result[1, 0, 1] == pytest.approx(0.8)

    def test_max_distance_normalized(self, circle_points):
        result = compute_2channel_matrix(circle_points, n=None)
        assert result[..., 0].max() == pytest.approx(1.0)

    def test_translation_and_scale_invariant(self, circle_points):
        a = compute_2channel_matrix(circle_points, n=None)
        b = compute_2channel_matrix(circle_points * 7.5 + np.array([3.0, -2.0, 10.0]), n=None)
        np.testing.assert_allclose(a, b, atol=1e-7)

    def test_single_point_is_zero(self):
        result = compute_2channel_matrix([[1.0, 2.0, 3.0]], n=None)
        np.testing.assert_array_equal(result, np.zeros((1, 1, 2)))

    def test_size_mismatch_raises(self, circle_points):
        with pytest.raises(FeatureSizeError):
            compute_2channel_matrix(circle_points, n=128)

    def test_default_size_is_model_input(self, l_shape):
        with pytest.raises(FeatureSizeError):
            encode(l_shape)

    def test_empty_raises(self):
        with pytest.raises(EmptyInputError):
            compute_2channel_matrix([])


class TestToInputTensor:
    """Test model input batching."""

    def test_nhwc_float32(self, circle_points):
        tensor = to_input_tensor(compute_2channel_matrix(circle_points, n=None))
        assert tensor.shape == (1, 60, 60, 2)
        assert tensor.dtype == np.float32

    def test_bad_shape_raises(self):
        with pytest.raises(FeatureSizeError):
            to_input_tensor(np.zeros((4, 5, 2)))
