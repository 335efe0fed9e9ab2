"""
Recognition algorithms package.

Contains modules for:
- Descriptor similarity
- Face quality assessment
- Descriptor matching
- Recognition debouncing
"""

from .similarity import (
    ScoreWeights,
    combined_score,
    cosine_similarity,
    euclidean_distance,
    manhattan_distance,
)
from .quality import assess_quality, is_face_acceptable
from .matching import is_accepted, resolve
from .debounce import RecognitionDebouncer, RecognitionState

__all__ = [
    'ScoreWeights',
    'combined_score',
    'cosine_similarity',
    'euclidean_distance',
    'manhattan_distance',
    'assess_quality',
    'is_face_acceptable',
    'is_accepted',
    'resolve',
    'RecognitionDebouncer',
    'RecognitionState',
]
