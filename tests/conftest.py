"""Shared test fixtures and builders for attendance service tests."""

import dataclasses

import numpy as np
import pytest

from attendance_service.config import load_config
from attendance_service.models import BoundingBox, Detection, EnrolledIdentity

LANDMARK_COUNT = 68


def make_landmarks(nose_offset: float = 30.0, missing=()):
    """
    68 landmarks of a face with eyes 100px apart.

    The nose tip sits nose_offset px below the eye midpoint, which gives
    an orientation score of 1 - nose_offset / 100.
    """
    points = [(120.0 + i, 150.0 + i) for i in range(LANDMARK_COUNT)]
    points[36] = (100.0, 100.0)
    points[45] = (200.0, 100.0)
    points[30] = (150.0, 100.0 + nose_offset)
    for index in missing:
        points[index] = None
    return points


def make_detection(descriptor, area: float = 5000.0, nose_offset: float = 30.0, missing=()):
    """
    Detection whose quality is (size + landmarks + orientation) / 3.

    Defaults give size 1.0, landmarks 1.0 and orientation 0.7: quality 0.9.
    """
    return Detection(
        bbox=BoundingBox(50.0, 50.0, area / 50.0, 50.0),
        landmarks=make_landmarks(nose_offset, missing),
        descriptor=descriptor,
    )


def unit_vector(seed: int, dim: int = 128) -> np.ndarray:
    rng = np.random.default_rng(seed)
    vector = rng.normal(size=dim)
    return vector / np.linalg.norm(vector)


@pytest.fixture
def config(tmp_path):
    return dataclasses.replace(
        load_config(),
        backend_url='http://backend.test',
        session_id='S1',
        min_face_area=2500.0,
        quality_floor=0.3,
        match_threshold=0.6,
        accept_score=0.7,
        confirmation_threshold=2.5,
        euclidean_scale=2.0,
        manhattan_scale=256.0,
        cosine_weight=0.5,
        euclidean_weight=0.3,
        manhattan_weight=0.2,
        duplicate_distance=0.3,
        http_timeout=1.0,
        cache_file=str(tmp_path / 'cache.pkl'),
    )


@pytest.fixture
def alice_descriptor():
    return unit_vector(1)


@pytest.fixture
def registry(alice_descriptor):
    return [
        EnrolledIdentity('1AB21CS001', 'Alice', alice_descriptor),
        EnrolledIdentity('1AB21CS002', 'Bob', unit_vector(2)),
        EnrolledIdentity('1AB21CS003', 'Carol', None),
    ]
