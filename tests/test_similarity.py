"""Tests for descriptor similarity metrics."""

import math

import numpy as np
import pytest

from attendance_service.errors import InputError
from attendance_service.recognition.similarity import (
    ScoreWeights,
    combined_score,
    cosine_similarity,
    euclidean_distance,
    manhattan_distance,
)

from conftest import unit_vector


class TestMetrics:
    def test_self_distance_is_zero(self):
        a = unit_vector(7)
        assert euclidean_distance(a, a) == 0.0
        assert manhattan_distance(a, a) == 0.0
        assert cosine_similarity(a, a) == pytest.approx(1.0)

    def test_known_values(self):
        a = np.array([0.0, 0.0, 0.0])
        b = np.array([3.0, 4.0, 0.0])
        assert euclidean_distance(a, b) == pytest.approx(5.0)
        assert manhattan_distance(a, b) == pytest.approx(7.0)

    def test_cosine_orthogonal_and_opposite(self):
        x = np.array([1.0, 0.0])
        y = np.array([0.0, 2.0])
        assert cosine_similarity(x, y) == pytest.approx(0.0)
        assert cosine_similarity(x, -x) == pytest.approx(-1.0)

    def test_cosine_zero_norm_is_no_similarity(self):
        zero = np.zeros(4)
        assert cosine_similarity(zero, np.ones(4)) == 0.0
        assert cosine_similarity(np.ones(4), zero) == 0.0

    def test_length_mismatch_fails_fast(self):
        with pytest.raises(InputError):
            euclidean_distance(np.ones(3), np.ones(4))
        with pytest.raises(InputError):
            cosine_similarity(np.ones(3), np.ones(4))
        with pytest.raises(InputError):
            manhattan_distance(np.ones(3), np.ones(4))
        with pytest.raises(InputError):
            combined_score(np.ones(3), np.ones(4))

    def test_input_error_is_value_error(self):
        with pytest.raises(ValueError):
            euclidean_distance(np.ones(2), np.ones(5))


class TestCombinedScore:
    def test_identical_vectors_score_one(self):
        a = unit_vector(3)
        assert combined_score(a, a) == pytest.approx(1.0)

    def test_symmetric(self):
        a = unit_vector(4)
        b = unit_vector(5) * 0.7
        assert combined_score(a, b) == combined_score(b, a)

    def test_weighted_formula(self):
        a = np.array([1.0, 0.0, 0.0, 0.0])
        b = np.array([1.0, 0.5, 0.0, 0.0])
        cosine = 1.0 / math.sqrt(1.25)
        expected = 0.5 * cosine + 0.3 * (1 - 0.5 / 2.0) + 0.2 * (1 - 0.5 / 256.0)
        assert combined_score(a, b) == pytest.approx(expected)

    def test_normalized_distances_saturate(self):
        a = np.array([200.0, 0.0])
        b = np.array([-200.0, 0.0])
        # cosine -1, both distances past their scale
        assert combined_score(a, b) == pytest.approx(-0.5)

    def test_scales_are_configurable(self):
        a = np.array([1.0, 0.0])
        b = np.array([2.0, 0.0])
        default = combined_score(a, b)
        wide = combined_score(a, b, ScoreWeights(euclidean_scale=4.0, manhattan_scale=512.0))
        assert wide > default
        assert wide == pytest.approx(0.5 + 0.3 * 0.75 + 0.2 * (1 - 1 / 512.0))
