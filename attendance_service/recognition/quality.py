"""
Face quality assessment module.

Evaluates detection quality based on:
- Size (bounding box area)
- Landmark completeness (eye corners, nose tip, mouth corners, jaw ends)
- Orientation (nose tip distance from the eye midpoint)
"""

import math
from typing import Dict, Tuple

from ..config import Config
from ..models import Detection

# 68-point layout: jaw ends, nose tip, outer eye corners, mouth corners
REQUIRED_LANDMARKS = (0, 16, 30, 36, 45, 48, 54)
LEFT_EYE = 36
RIGHT_EYE = 45
NOSE_TIP = 30


def _is_present(detection: Detection, index: int) -> bool:
    point = detection.landmark(index)
    return point is not None and point[0] > 0 and point[1] > 0


def compute_size_score(detection: Detection, min_face_area: float) -> float:
    """
    Size score in [0, 1]; a face of min_face_area scores 0.5.

    Args:
        detection: Face detection
        min_face_area: Reference area in square pixels

    Returns:
        Size score
    """
    return min(detection.bbox.area / min_face_area, 2.0) / 2.0


def compute_landmark_score(detection: Detection) -> float:
    """Fraction of the required landmarks that are present with positive coordinates."""
    present = sum(1 for idx in REQUIRED_LANDMARKS if _is_present(detection, idx))
    return present / len(REQUIRED_LANDMARKS)


def compute_orientation_score(detection: Detection) -> float:
    """
    Frontal-ness from the nose tip offset relative to the eye distance.

    1.0 when the nose sits on the eye midpoint, 0.0 when it is an eye
    distance or more away. Coincident eyes give 0.0.
    """
    left_eye = detection.landmark(LEFT_EYE)
    right_eye = detection.landmark(RIGHT_EYE)
    nose = detection.landmark(NOSE_TIP)

    eye_distance = math.hypot(right_eye[0] - left_eye[0], right_eye[1] - left_eye[1])
    if eye_distance == 0:
        return 0.0

    nose_to_eye_center = math.hypot(
        nose[0] - (left_eye[0] + right_eye[0]) / 2,
        nose[1] - (left_eye[1] + right_eye[1]) / 2,
    )
    return max(0.0, 1.0 - nose_to_eye_center / eye_distance)


def assess_quality(detection: Detection, config: Config) -> Tuple[float, Dict[str, float]]:
    """
    Score how reliable a detection is for recognition.

    Averages size and landmark scores, plus the orientation score when
    both outer eye corners and the nose tip were found.

    Args:
        detection: Face detection
        config: Service configuration

    Returns:
        Tuple of (quality, metrics dict)

    Metrics dict contains:
        - size: Size score
        - landmarks: Landmark completeness score
        - orientation: Orientation score (only when computable)
        - quality: Final score
    """
    size_score = compute_size_score(detection, config.min_face_area)
    landmark_score = compute_landmark_score(detection)

    metrics = {
        'size': size_score,
        'landmarks': landmark_score,
    }

    has_pose_points = all(
        detection.landmark(idx) is not None for idx in (LEFT_EYE, RIGHT_EYE, NOSE_TIP)
    )

    if has_pose_points:
        orientation_score = compute_orientation_score(detection)
        metrics['orientation'] = orientation_score
        quality = (size_score + landmark_score + orientation_score) / 3
    else:
        quality = (size_score + landmark_score) / 2

    metrics['quality'] = quality
    return quality, metrics


def is_face_acceptable(quality: float, config: Config) -> bool:
    """Check if a quality score clears the quality floor."""
    return quality >= config.quality_floor
