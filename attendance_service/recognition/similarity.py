"""
Descriptor similarity module.

Distances and similarities between two face descriptors:
- Euclidean (L2) distance
- Cosine similarity
- Manhattan (L1) distance
- Weighted combination of the three
"""

from dataclasses import dataclass

import numpy as np

from ..config import Config
from ..errors import InputError


@dataclass(frozen=True)
class ScoreWeights:
    """
    Scales and weights of the combined score.

    The scales map a raw distance to 1.0 and depend on the descriptor
    model (its dimensionality and value range).
    """

    euclidean_scale: float = 2.0
    manhattan_scale: float = 256.0
    cosine_weight: float = 0.5
    euclidean_weight: float = 0.3
    manhattan_weight: float = 0.2

    @classmethod
    def from_config(cls, config: Config) -> 'ScoreWeights':
        return cls(
            euclidean_scale=config.euclidean_scale,
            manhattan_scale=config.manhattan_scale,
            cosine_weight=config.cosine_weight,
            euclidean_weight=config.euclidean_weight,
            manhattan_weight=config.manhattan_weight,
        )


def _check_pair(a: np.ndarray, b: np.ndarray) -> None:
    if a.ndim != 1 or b.ndim != 1:
        raise InputError(f'Descriptors must be 1-D, got {a.ndim}-D and {b.ndim}-D')
    if a.shape[0] != b.shape[0]:
        raise InputError(f'Descriptor length mismatch: {a.shape[0]} != {b.shape[0]}')


def euclidean_distance(a: np.ndarray, b: np.ndarray) -> float:
    """L2 distance between two descriptors."""
    _check_pair(a, b)
    return float(np.sqrt(np.sum((a - b) ** 2)))


def cosine_similarity(a: np.ndarray, b: np.ndarray) -> float:
    """
    Cosine of the angle between two descriptors.

    A zero-norm descriptor has no direction, so it is similar to nothing (0.0).
    """
    _check_pair(a, b)
    norm_a = float(np.linalg.norm(a))
    norm_b = float(np.linalg.norm(b))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0
    return float(np.dot(a, b) / (norm_a * norm_b))


def manhattan_distance(a: np.ndarray, b: np.ndarray) -> float:
    """L1 distance between two descriptors."""
    _check_pair(a, b)
    return float(np.sum(np.abs(a - b)))


def combined_score(
    a: np.ndarray,
    b: np.ndarray,
    weights: ScoreWeights = ScoreWeights()
) -> float:
    """
    Weighted similarity from all three metrics.

    Distances are normalized to [0, 1] (lower is better) and inverted
    before weighting, so higher is better. Roughly in [0, 1], but
    negative for anti-correlated descriptors.

    Args:
        a: First descriptor
        b: Second descriptor
        weights: Normalization scales and metric weights

    Returns:
        Combined score
    """
    cosine = cosine_similarity(a, b)
    normalized_euclidean = min(euclidean_distance(a, b) / weights.euclidean_scale, 1.0)
    normalized_manhattan = min(manhattan_distance(a, b) / weights.manhattan_scale, 1.0)

    return (
        cosine * weights.cosine_weight
        + (1.0 - normalized_euclidean) * weights.euclidean_weight
        + (1.0 - normalized_manhattan) * weights.manhattan_weight
    )
