"""
Recognition debouncing module.

Accumulates match confidence per student across frames and reports
students whose accumulated confidence reached the confirmation threshold.

Per-student states:
- UNSEEN: never matched in this session
- ACCUMULATING: matched at least once, not yet confirmed
- CONFIRMED: attendance committed (terminal)
"""

from enum import Enum
from typing import Dict, Iterable, List, Set

from ..config import Config
from ..logging_config import get_logger
from ..models import MatchResult
from .matching import is_accepted

logger = get_logger(__name__)


class RecognitionState(str, Enum):
    UNSEEN = 'unseen'
    ACCUMULATING = 'accumulating'
    CONFIRMED = 'confirmed'


class RecognitionDebouncer:
    """
    Debounces recognition for one attendance session.

    Confirmation is two-step: update() reports students ready to be
    committed, and mark_confirmed() is called once the commit succeeded.
    A student whose commit failed keeps its accumulator and is reported
    again on its next accepted frame.
    """

    def __init__(self, config: Config):
        """
        Initialize debouncer.

        Args:
            config: Service configuration
        """
        self.config = config
        self.accumulators: Dict[str, float] = {}
        self.confirmed: Set[str] = set()

    def update(self, results: Iterable[MatchResult]) -> List[str]:
        """
        Apply one frame's match results.

        Accepted results are deduplicated per student (the best score of
        the frame counts once), then added to the student's accumulator.
        Frames without a match leave accumulators untouched.

        Args:
            results: Match results of a single frame

        Returns:
            IDs of students that reached the confirmation threshold
        """
        frame_scores: Dict[str, float] = {}
        for result in results:
            if not is_accepted(result, self.config):
                continue
            identity_id = result.identity.id
            if identity_id in self.confirmed:
                continue
            frame_scores[identity_id] = max(
                frame_scores.get(identity_id, 0.0), result.combined_score
            )

        ready: List[str] = []
        for identity_id, score in frame_scores.items():
            total = self.accumulators.get(identity_id, 0.0) + min(score, 1.0)
            self.accumulators[identity_id] = total
            logger.debug(
                f'Student {identity_id} accumulated {total:.2f}/'
                f'{self.config.confirmation_threshold:.2f}'
            )
            if total >= self.config.confirmation_threshold:
                ready.append(identity_id)

        return ready

    def mark_confirmed(self, identity_id: str) -> None:
        """
        Move a student to the terminal CONFIRMED state.

        Args:
            identity_id: Student ID
        """
        self.confirmed.add(identity_id)
        self.accumulators.pop(identity_id, None)

    def state_of(self, identity_id: str) -> RecognitionState:
        if identity_id in self.confirmed:
            return RecognitionState.CONFIRMED
        if identity_id in self.accumulators:
            return RecognitionState.ACCUMULATING
        return RecognitionState.UNSEEN

    def accumulated(self, identity_id: str) -> float:
        return self.accumulators.get(identity_id, 0.0)

    def reset(self) -> None:
        self.accumulators.clear()
        self.confirmed.clear()
