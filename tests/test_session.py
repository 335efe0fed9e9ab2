"""Tests for attendance session lifecycle, confirmation and back-pressure."""

import threading

import pytest

from attendance_service.errors import CollaboratorError, InputError
from attendance_service.recognition.debounce import RecognitionState
from attendance_service.session import AttendanceSession

from conftest import make_detection, unit_vector

ALICE = '1AB21CS001'


class RecordingCommitter:
    def __init__(self, outcomes=None):
        self.outcomes = list(outcomes or [])
        self.calls = []

    def __call__(self, session_id, identity_id):
        self.calls.append((session_id, identity_id))
        if self.outcomes:
            outcome = self.outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome
        return True


@pytest.fixture
def committer():
    return RecordingCommitter()


@pytest.fixture
def session(config, registry, committer):
    session = AttendanceSession('S1', config, lambda: registry, committer)
    session.start()
    return session


class TestLifecycle:
    def test_start_loads_registry(self, session, registry):
        assert session.active
        assert [identity.id for identity in session.registry] == [i.id for i in registry]

    def test_registry_failure_prevents_start(self, config, committer):
        def failing_registry():
            raise ConnectionError('backend down')

        session = AttendanceSession('S1', config, failing_registry, committer)
        with pytest.raises(CollaboratorError):
            session.start()
        assert not session.active

    def test_inactive_session_ignores_frames(self, config, registry, committer, alice_descriptor):
        session = AttendanceSession('S1', config, lambda: registry, committer)
        assert session.process_detections([make_detection(alice_descriptor)]) is None

    def test_end_discards_state(self, session, alice_descriptor):
        session.process_detections([make_detection(alice_descriptor)])
        session.end()
        assert not session.active
        assert session.debouncer.accumulated(ALICE) == 0.0
        assert session.process_detections([make_detection(alice_descriptor)]) is None

    def test_inconsistent_descriptor_lengths_are_dropped(self, config, committer, registry):
        from attendance_service.models import EnrolledIdentity

        odd = EnrolledIdentity('odd', 'Odd', unit_vector(5, dim=64))
        session = AttendanceSession('S1', config, lambda: registry + [odd], committer)
        session.start()
        assert session.registry[-1].descriptor is None
        assert session.descriptor_dim == 128

    def test_most_common_descriptor_length_wins(self, config, committer, registry):
        from attendance_service.models import EnrolledIdentity

        odd = EnrolledIdentity('odd', 'Odd', unit_vector(5, dim=64))
        session = AttendanceSession('S1', config, lambda: [odd] + registry, committer)
        session.start()

        assert session.descriptor_dim == 128
        assert session.registry[0].descriptor is None
        assert session.registry[1].descriptor is not None
        assert session.registry[2].descriptor is not None

    def test_list_descriptors_are_validated(self, config, committer, alice_descriptor):
        from attendance_service.models import EnrolledIdentity

        identities = [EnrolledIdentity(ALICE, 'Alice', list(alice_descriptor))]
        session = AttendanceSession('S1', config, lambda: identities, committer)
        session.start()
        assert session.registry[0].descriptor.shape == (128,)

        result = session.process_detections([make_detection(alice_descriptor)])
        assert result.matches[0].identity.id == ALICE

    def test_invalid_enrolled_descriptor_prevents_start(self, config, committer):
        from attendance_service.models import EnrolledIdentity

        def bad_registry():
            return [EnrolledIdentity(ALICE, 'Alice', ['not', 'numbers'])]

        session = AttendanceSession('S1', config, bad_registry, committer)
        with pytest.raises(CollaboratorError):
            session.start()
        assert not session.active

    def test_detector_dimension_mismatch_stops_session(self, session, committer):
        probe = make_detection(unit_vector(3, dim=512))

        with pytest.raises(InputError, match='same face model'):
            session.process_detections([probe])
        assert not session.active
        assert session.frame_count == 0

        assert session.process_detections([probe]) is None
        assert committer.calls == []


class TestConfirmation:
    def test_commits_on_third_frame(self, session, committer, alice_descriptor):
        detection = make_detection(alice_descriptor)

        first = session.process_detections([detection])
        assert first.matches[0].identity.id == ALICE
        assert first.matches[0].combined_score == pytest.approx(0.9)
        assert first.confirmations == []

        assert session.process_detections([detection]).confirmations == []
        assert committer.calls == []

        third = session.process_detections([detection])
        assert [event.identity_id for event in third.confirmations] == [ALICE]
        assert committer.calls == [('S1', ALICE)]

        fourth = session.process_detections([detection])
        assert fourth.confirmations == []
        assert committer.calls == [('S1', ALICE)]

    def test_commits_once_per_session(self, session, committer, alice_descriptor):
        detection = make_detection(alice_descriptor)
        for _ in range(20):
            session.process_detections([detection])

        assert committer.calls == [('S1', ALICE)]
        assert [identity.display_name for identity in session.recognized] == ['Alice']
        assert len(session.events) == 1

    def test_duplicate_detections_count_once(self, session, committer, alice_descriptor):
        detection = make_detection(alice_descriptor)
        session.process_detections([detection, detection])
        assert session.debouncer.accumulated(ALICE) == pytest.approx(0.9)

        session.process_detections([detection, detection])
        assert committer.calls == []

    def test_low_quality_detection_never_counts(self, session, alice_descriptor):
        # size 0.01, landmarks 3/7, profile orientation 0.0
        detection = make_detection(
            alice_descriptor, area=50, nose_offset=200, missing=(0, 16, 48, 54)
        )
        for _ in range(5):
            result = session.process_detections([detection])
            assert result.matches[0].identity is None
        assert session.debouncer.state_of(ALICE) == RecognitionState.UNSEEN

    def test_failed_commit_retries_on_next_frame(self, config, registry, alice_descriptor):
        committer = RecordingCommitter([False, True])
        session = AttendanceSession('S1', config, lambda: registry, committer)
        session.start()
        detection = make_detection(alice_descriptor)

        for _ in range(3):
            result = session.process_detections([detection])
        assert result.confirmations == []
        assert session.debouncer.state_of(ALICE) == RecognitionState.ACCUMULATING
        assert session.recognized == []

        result = session.process_detections([detection])
        assert [event.identity_id for event in result.confirmations] == [ALICE]
        assert len(committer.calls) == 2
        assert session.debouncer.state_of(ALICE) == RecognitionState.CONFIRMED

    def test_raising_commit_is_not_fatal(self, config, registry, alice_descriptor):
        committer = RecordingCommitter([RuntimeError('network'), True])
        session = AttendanceSession('S1', config, lambda: registry, committer)
        session.start()
        detection = make_detection(alice_descriptor)

        for _ in range(4):
            session.process_detections([detection])
        assert len(committer.calls) == 2
        assert len(session.events) == 1

    def test_listeners_receive_events(self, session, alice_descriptor):
        received = []
        session.on_confirmation(received.append)

        def broken_listener(event):
            raise ValueError('ui gone')

        session.on_confirmation(broken_listener)
        for _ in range(3):
            session.process_detections([make_detection(alice_descriptor)])

        assert [(e.session_id, e.identity_id, e.display_name) for e in received] == [
            ('S1', ALICE, 'Alice')
        ]


class FakeDetector:
    def __init__(self, detections=None, error=None):
        self.detections = detections or []
        self.error = error

    def detect(self, frame):
        if self.error:
            raise self.error
        return self.detections


class TestProcessFrame:
    def test_runs_detector(self, session, alice_descriptor):
        detector = FakeDetector([make_detection(alice_descriptor)])
        result = session.process_frame(object(), detector)
        assert result.matches[0].identity.id == ALICE
        assert session.latest_matches == result.matches

    def test_detector_failure_leaves_state_unchanged(self, session, alice_descriptor):
        session.process_detections([make_detection(alice_descriptor)])
        result = session.process_frame(object(), FakeDetector(error=RuntimeError('model')))
        assert result.matches == []
        assert session.debouncer.accumulated(ALICE) == pytest.approx(0.9)

    def test_frame_dropped_while_busy(self, session, alice_descriptor):
        entered = threading.Event()
        release = threading.Event()

        class SlowDetector:
            def detect(self, frame):
                entered.set()
                release.wait(timeout=5)
                return [make_detection(alice_descriptor)]

        worker = threading.Thread(target=session.process_frame, args=(object(), SlowDetector()))
        worker.start()
        assert entered.wait(timeout=5)

        assert session.process_detections([make_detection(alice_descriptor)]) is None
        assert session.dropped_frames == 1

        release.set()
        worker.join(timeout=5)
        assert session.frame_count == 1
        assert session.debouncer.accumulated(ALICE) == pytest.approx(0.9)
