"""
Attendance session module.

Owns the recognition state of one attendance-taking session and commits
each recognized student exactly once.
"""

import threading
import time
from collections import Counter
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .config import Config
from .errors import CollaboratorError, InputError
from .logging_config import get_logger
from .models import ConfirmationEvent, Detection, EnrolledIdentity, FrameResult, MatchResult
from .recognition.debounce import RecognitionDebouncer
from .recognition.matching import resolve
from .recognition.quality import assess_quality

logger = get_logger(__name__)

RegistryProvider = Callable[[], Sequence[EnrolledIdentity]]
AttendanceCommitter = Callable[[str, str], bool]
ConfirmationListener = Callable[[ConfirmationEvent], None]


class AttendanceSession:
    """
    One attendance session fed by a single stream of frames.

    A per-session lock covers a whole frame (match, accumulate, commit).
    A frame that arrives while the previous one is still being processed
    is dropped rather than queued.
    """

    def __init__(
        self,
        session_id: str,
        config: Config,
        registry_provider: RegistryProvider,
        committer: AttendanceCommitter
    ):
        """
        Initialize session.

        Args:
            session_id: Backend attendance session ID
            config: Service configuration
            registry_provider: Returns the enrolled students
            committer: Marks a student present, returns True on success
        """
        self.session_id = session_id
        self.config = config
        self.registry_provider = registry_provider
        self.committer = committer

        self.debouncer = RecognitionDebouncer(config)
        self.registry: List[EnrolledIdentity] = []
        self.descriptor_dim: Optional[int] = None
        self.events: List[ConfirmationEvent] = []
        self.latest_matches: List[MatchResult] = []
        self.frame_count = 0
        self.dropped_frames = 0
        self.active = False

        self._identities: Dict[str, EnrolledIdentity] = {}
        self._listeners: List[ConfirmationListener] = []
        self._lock = threading.Lock()

    def on_confirmation(self, listener: ConfirmationListener) -> None:
        """Register a callback invoked for every confirmation event."""
        self._listeners.append(listener)

    def start(self) -> None:
        """
        Load enrolled students and reset recognition state.

        Raises:
            CollaboratorError: If the registry cannot be loaded
        """
        try:
            identities = list(self.registry_provider())
        except Exception as e:
            logger.error(f'Failed to load enrolled students: {e}')
            raise CollaboratorError(f'Registry fetch failed: {e}') from e

        with self._lock:
            self.registry, self.descriptor_dim = _consistent_descriptors(identities)
            self._identities = {identity.id: identity for identity in self.registry}
            self.debouncer.reset()
            self.events = []
            self.latest_matches = []
            self.frame_count = 0
            self.dropped_frames = 0
            self.active = True

        enrolled = sum(1 for identity in self.registry if identity.descriptor is not None)
        logger.info(f'Session {self.session_id} started with {enrolled} enrolled face profiles')

    def end(self) -> None:
        """Stop accepting frames and discard recognition state."""
        with self._lock:
            self.active = False
            self.debouncer.reset()
            self.latest_matches = []

        logger.info(
            f'Session {self.session_id} ended: {len(self.events)} students recognized, '
            f'{self.frame_count} frames processed, {self.dropped_frames} dropped'
        )

    @property
    def recognized(self) -> List[EnrolledIdentity]:
        return [self._identities[event.identity_id] for event in self.events
                if event.identity_id in self._identities]

    def process_detections(self, detections: Sequence[Detection]) -> Optional[FrameResult]:
        """
        Process one frame's detections.

        Args:
            detections: Faces detected in the frame

        Returns:
            FrameResult, or None if the session is inactive or busy
        """
        if not self._lock.acquire(blocking=False):
            self.dropped_frames += 1
            logger.debug('Frame dropped: previous frame still processing')
            return None
        try:
            return self._process_locked(detections)
        finally:
            self._lock.release()

    def process_frame(self, frame: Any, detector: Any) -> Optional[FrameResult]:
        """
        Detect faces in a frame and process them.

        A failing detector is logged and the frame counts as empty.

        Args:
            frame: Image passed to the detector
            detector: Object with a detect(frame) method

        Returns:
            FrameResult, or None if the session is inactive or busy
        """
        if not self._lock.acquire(blocking=False):
            self.dropped_frames += 1
            logger.debug('Frame dropped: previous frame still processing')
            return None
        try:
            if not self.active:
                return None
            try:
                detections = detector.detect(frame)
            except Exception as e:
                logger.error(f'Face detection failed: {e}')
                detections = []
            return self._process_locked(detections)
        finally:
            self._lock.release()

    def _process_locked(self, detections: Sequence[Detection]) -> Optional[FrameResult]:
        if not self.active:
            return None

        self._check_descriptor_dim(detections)

        self.frame_count += 1
        matches = [self._match(detection) for detection in detections]
        ready = self.debouncer.update(matches)

        confirmations: List[ConfirmationEvent] = []
        for identity_id in ready:
            event = self._commit(identity_id)
            if event is not None:
                confirmations.append(event)

        self.latest_matches = matches
        return FrameResult(self.frame_count, matches, confirmations)

    def _check_descriptor_dim(self, detections: Sequence[Detection]) -> None:
        """
        Stop the session if the detector and the registry use different models.

        Raises:
            InputError: On the first detection whose length differs from the registry's
        """
        if self.descriptor_dim is None:
            return
        for detection in detections:
            probe_dim = detection.descriptor.shape[0]
            if probe_dim != self.descriptor_dim:
                self.active = False
                message = (
                    f'Detector produces {probe_dim}-d descriptors but enrolled face data is '
                    f'{self.descriptor_dim}-d; students must be enrolled with the same '
                    f'face model. Session {self.session_id} stopped'
                )
                logger.error(message)
                raise InputError(message)

    def _match(self, detection: Detection) -> MatchResult:
        quality, metrics = assess_quality(detection, self.config)
        quality = min(max(quality, 0.0), 1.0)

        result = resolve(
            detection.descriptor,
            self.registry,
            quality,
            self.config,
            bbox=detection.bbox,
        )

        if result.matched:
            logger.debug(
                f'Matched {result.identity.display_name} ({result.identity.id}): '
                f'score={result.combined_score:.3f}, distance={result.distance:.3f}, '
                f'quality={quality:.2f}'
            )
        else:
            logger.debug(f'No match (quality={quality:.2f}, metrics={metrics})')
        return result

    def _commit(self, identity_id: str) -> Optional[ConfirmationEvent]:
        try:
            committed = self.committer(self.session_id, identity_id)
        except Exception as e:
            logger.error(f'Attendance commit for {identity_id} raised: {e}')
            return None

        if not committed:
            logger.warning(f'Attendance commit for {identity_id} failed, will retry')
            return None

        self.debouncer.mark_confirmed(identity_id)
        identity = self._identities.get(identity_id)
        event = ConfirmationEvent(
            session_id=self.session_id,
            identity_id=identity_id,
            display_name=identity.display_name if identity else identity_id,
            timestamp=time.time(),
        )
        self.events.append(event)
        logger.info(f'✅ {event.display_name} ({identity_id}) marked present')

        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error(f'Confirmation listener failed: {e}')

        return event


def _consistent_descriptors(
    identities: List[EnrolledIdentity]
) -> Tuple[List[EnrolledIdentity], Optional[int]]:
    """
    Keep only descriptors of the most common length.

    Returns:
        Tuple of (identities, descriptor length or None if no face data)
    """
    lengths = Counter(
        identity.descriptor.shape[0] for identity in identities if identity.descriptor is not None
    )
    if not lengths:
        return list(identities), None

    expected = lengths.most_common(1)[0][0]
    kept: List[EnrolledIdentity] = []
    for identity in identities:
        descriptor = identity.descriptor
        if descriptor is not None and descriptor.shape[0] != expected:
            logger.warning(
                f'Student {identity.id} has a {descriptor.shape[0]}-d descriptor, '
                f'expected {expected}-d; ignoring its face data'
            )
            identity = EnrolledIdentity(identity.id, identity.display_name, None)
        kept.append(identity)
    return kept, expected
