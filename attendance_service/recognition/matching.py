"""
Descriptor matching module.

Matches a face descriptor against enrolled students using a distance gate
followed by a combined similarity ranking.
"""

import math
from typing import Optional, Sequence

import numpy as np

from ..config import Config
from ..models import BoundingBox, EnrolledIdentity, MatchResult
from .similarity import ScoreWeights, combined_score, euclidean_distance
from .quality import is_face_acceptable


def resolve(
    probe: np.ndarray,
    registry: Sequence[EnrolledIdentity],
    quality: float,
    config: Config,
    threshold: Optional[float] = None,
    bbox: Optional[BoundingBox] = None
) -> MatchResult:
    """
    Find the enrolled identity that best matches a probe descriptor.

    Only identities whose Euclidean distance is strictly below the
    threshold are candidates; among them the highest combined score
    wins. The winning score is weighted by the detection quality.

    Args:
        probe: Descriptor of the detected face
        registry: Enrolled identities
        quality: Detection quality score
        config: Service configuration
        threshold: Distance threshold (defaults to config.match_threshold)
        bbox: Detection box, carried through for rendering

    Returns:
        MatchResult; identity is None when nothing qualifies

    Raises:
        InputError: If an enrolled descriptor length differs from the probe
    """
    if threshold is None:
        threshold = config.match_threshold

    if not is_face_acceptable(quality, config):
        return MatchResult(None, 0.0, math.inf, quality, bbox)

    weights = ScoreWeights.from_config(config)

    best_identity: Optional[EnrolledIdentity] = None
    best_score = -math.inf
    best_distance = math.inf

    for identity in registry:
        if identity.descriptor is None:
            continue

        distance = euclidean_distance(probe, identity.descriptor)
        if distance >= threshold:
            continue

        score = combined_score(probe, identity.descriptor, weights)
        if score > best_score:
            best_identity = identity
            best_score = score
            best_distance = distance

    if best_identity is None:
        return MatchResult(None, 0.0, math.inf, quality, bbox)

    return MatchResult(best_identity, best_score * quality, best_distance, quality, bbox)


def is_accepted(result: MatchResult, config: Config) -> bool:
    """
    Check if a match is confident enough to count towards attendance.

    Requires an identity, a quality-weighted score above accept_score
    and a quality above the quality floor.
    """
    return (
        result.identity is not None
        and result.combined_score > config.accept_score
        and result.quality > config.quality_floor
    )
