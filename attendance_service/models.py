"""
Data structures shared by the recognition pipeline.

Descriptors are 1-D float numpy arrays, marked read-only once wrapped.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from .errors import InputError

Point = Tuple[float, float]


def as_feature_vector(values: Any) -> np.ndarray:
    """
    Convert a sequence of numbers into an immutable feature vector.

    Args:
        values: List, tuple or array of floats

    Returns:
        Read-only 1-D float64 array

    Raises:
        InputError: If values is not a non-empty 1-D numeric sequence
    """
    try:
        vector = np.array(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InputError(f'Descriptor is not numeric: {e}') from e

    if vector.ndim != 1 or vector.size == 0:
        raise InputError(f'Descriptor must be a non-empty 1-D vector, got shape {vector.shape}')

    vector.flags.writeable = False
    return vector


@dataclass(frozen=True)
class BoundingBox:
    x: float
    y: float
    width: float
    height: float

    def __post_init__(self):
        if self.width < 0 or self.height < 0:
            raise InputError(f'Bounding box has negative size: {self.width}x{self.height}')

    @property
    def area(self) -> float:
        return self.width * self.height

    @classmethod
    def from_corners(cls, x1: float, y1: float, x2: float, y2: float) -> 'BoundingBox':
        """Build from [x1, y1, x2, y2] as returned by most detectors."""
        return cls(float(x1), float(y1), float(x2 - x1), float(y2 - y1))

    def corners(self) -> Tuple[int, int, int, int]:
        return (
            int(self.x),
            int(self.y),
            int(self.x + self.width),
            int(self.y + self.height),
        )


@dataclass(frozen=True)
class EnrolledIdentity:
    """Student enrolled in the registry (id is the USN)."""

    id: str
    display_name: str
    descriptor: Optional[np.ndarray] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if self.descriptor is not None:
            object.__setattr__(self, 'descriptor', as_feature_vector(self.descriptor))

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.display_name}


@dataclass(frozen=True)
class Detection:
    """
    One face found in one frame.

    Landmarks follow the 68-point layout; a missing point is None.
    """

    bbox: BoundingBox
    landmarks: Tuple[Optional[Point], ...]
    descriptor: np.ndarray = field(compare=False, repr=False)

    def __post_init__(self):
        if not isinstance(self.bbox, BoundingBox):
            raise InputError('Detection bbox must be a BoundingBox')
        object.__setattr__(self, 'descriptor', as_feature_vector(self.descriptor))
        object.__setattr__(self, 'landmarks', _normalize_landmarks(self.landmarks))

    def landmark(self, index: int) -> Optional[Point]:
        if index < len(self.landmarks):
            return self.landmarks[index]
        return None


def _normalize_landmarks(landmarks: Optional[Sequence[Any]]) -> Tuple[Optional[Point], ...]:
    if landmarks is None:
        return ()

    points: List[Optional[Point]] = []
    for point in landmarks:
        if point is None:
            points.append(None)
            continue
        try:
            x, y = float(point[0]), float(point[1])
        except (TypeError, ValueError, IndexError) as e:
            raise InputError(f'Invalid landmark {point!r}: {e}') from e
        points.append((x, y))
    return tuple(points)


@dataclass(frozen=True)
class MatchResult:
    identity: Optional[EnrolledIdentity]
    combined_score: float
    distance: float
    quality: float
    bbox: Optional[BoundingBox] = None

    @property
    def matched(self) -> bool:
        return self.identity is not None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'identity': self.identity.to_dict() if self.identity else None,
            'score': round(self.combined_score, 4),
            'distance': None if math.isinf(self.distance) else round(self.distance, 4),
            'quality': round(self.quality, 4),
            'bbox': list(self.bbox.corners()) if self.bbox else None,
        }


@dataclass(frozen=True)
class ConfirmationEvent:
    session_id: str
    identity_id: str
    display_name: str
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'sessionId': self.session_id,
            'identityId': self.identity_id,
            'name': self.display_name,
            'timestamp': self.timestamp,
        }


@dataclass
class FrameResult:
    frame_index: int
    matches: List[MatchResult] = field(default_factory=list)
    confirmations: List[ConfirmationEvent] = field(default_factory=list)
