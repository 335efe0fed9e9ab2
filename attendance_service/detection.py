"""
Face detection adapters.

Turns detector output into Detection objects:
- InsightFaceDetector: wraps an InsightFace FaceAnalysis instance
- HybridDetector: merges two detector passes, dropping duplicate faces
"""

from typing import Any, List, Optional, Protocol, Sequence

import numpy as np

from .logging_config import get_logger
from .models import BoundingBox, Detection, Point
from .recognition.similarity import euclidean_distance

logger = get_logger(__name__)

LANDMARK_COUNT = 68

# InsightFace 5-point keypoints -> 68-point layout indices
# (left eye, right eye, nose tip, left mouth corner, right mouth corner)
KPS_TO_68 = (36, 45, 30, 48, 54)


class FaceDetector(Protocol):
    def detect(self, frame: Any) -> List[Detection]:
        ...


class InsightFaceDetector:
    """
    Detector backed by InsightFace FaceAnalysis.

    Uses the 68-point landmarks when the landmark_3d_68 model is loaded,
    otherwise places the 5 keypoints at their 68-point indices.
    """

    def __init__(self, face_app: Any, name: str = 'insightface'):
        self.face_app = face_app
        self.name = name

    def detect(self, frame: Any) -> List[Detection]:
        detections: List[Detection] = []
        for face in self.face_app.get(frame):
            embedding = getattr(face, 'normed_embedding', None)
            if embedding is None:
                continue
            x1, y1, x2, y2 = [float(v) for v in face.bbox[:4]]
            detections.append(Detection(
                bbox=BoundingBox.from_corners(x1, y1, x2, y2),
                landmarks=_landmarks_from_face(face),
                descriptor=embedding,
            ))
        return detections


def _landmarks_from_face(face: Any) -> List[Optional[Point]]:
    landmarks_68 = getattr(face, 'landmark_3d_68', None)
    if landmarks_68 is not None:
        return [(float(p[0]), float(p[1])) for p in np.asarray(landmarks_68)]

    points: List[Optional[Point]] = [None] * LANDMARK_COUNT
    kps = getattr(face, 'kps', None)
    if kps is not None:
        for kp, index in zip(np.asarray(kps), KPS_TO_68):
            points[index] = (float(kp[0]), float(kp[1]))
    return points


class HybridDetector:
    """
    Two-pass detector.

    Every detection of the primary pass is kept; detections of the
    secondary pass are added unless their descriptor is within
    duplicate_distance of a primary one. If the merged pass fails, the
    primary pass alone is used.
    """

    def __init__(
        self,
        primary: FaceDetector,
        secondary: FaceDetector,
        duplicate_distance: float = 0.3
    ):
        self.primary = primary
        self.secondary = secondary
        self.duplicate_distance = duplicate_distance

    def detect(self, frame: Any) -> List[Detection]:
        try:
            primary = self.primary.detect(frame)
            secondary = self.secondary.detect(frame)
            return merge_detections(primary, secondary, self.duplicate_distance)
        except Exception as e:
            logger.warning(f'Hybrid detection failed, using primary detector only: {e}')
            return self.primary.detect(frame)


def merge_detections(
    primary: Sequence[Detection],
    secondary: Sequence[Detection],
    duplicate_distance: float
) -> List[Detection]:
    """
    Combine two detection passes, preferring the primary one.

    Args:
        primary: Detections to keep unconditionally
        secondary: Detections to add when not duplicates
        duplicate_distance: Descriptor distance under which two faces are the same

    Returns:
        Merged detections
    """
    merged = list(primary)
    for candidate in secondary:
        is_duplicate = any(
            euclidean_distance(candidate.descriptor, kept.descriptor) < duplicate_distance
            for kept in primary
        )
        if not is_duplicate:
            merged.append(candidate)
    return merged
