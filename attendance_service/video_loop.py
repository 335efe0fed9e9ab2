"""
Main video processing loop.

Orchestrates the recognition pipeline:
- Camera connection and reconnection
- Recognition passes at a fixed cadence, skipped while one is running
- Overlay drawing and MJPEG publishing
"""

import threading
import time
from typing import Any, List, Optional

import cv2

from .camera import connect_camera
from .config import Config
from .logging_config import get_logger
from .models import MatchResult
from .recognition.matching import is_accepted
from .session import AttendanceSession
from .streaming import FrameStore

logger = get_logger(__name__)

MAX_FAILURES = 10

GREEN = (0, 255, 0)
ORANGE = (0, 165, 255)
RED = (0, 0, 255)


def run(
    session: AttendanceSession,
    detector: Any,
    config: Config,
    store: FrameStore,
    stop_flag: Optional[threading.Event] = None
) -> None:
    """
    Main video processing loop.

    Args:
        session: Started attendance session
        detector: Object with a detect(frame) method
        config: Service configuration
        store: Frame store for the MJPEG stream
        stop_flag: Optional threading.Event to signal graceful shutdown
    """
    video_capture = connect_camera(config)

    consecutive_failures = 0
    last_recognition = 0.0
    worker: Optional[threading.Thread] = None

    logger.info('🎬 Starting main loop...')

    try:
        while True:
            if stop_flag and stop_flag.is_set():
                logger.info('Stop signal received, exiting gracefully...')
                break

            if not session.active:
                logger.error('Session is no longer active, stopping capture')
                break

            ret, frame = video_capture.read()

            if not ret or frame is None:
                consecutive_failures += 1
                logger.warning(f'Failed to read frame ({consecutive_failures}/{MAX_FAILURES})')

                if consecutive_failures >= MAX_FAILURES:
                    logger.error(f'Too many failures ({consecutive_failures}), reconnecting...')
                    video_capture.release()
                    time.sleep(2)
                    video_capture = connect_camera(config)
                    consecutive_failures = 0
                else:
                    time.sleep(0.5)
                continue

            consecutive_failures = 0

            now = time.monotonic()
            if now - last_recognition >= config.frame_interval_seconds:
                if worker is None or not worker.is_alive():
                    last_recognition = now
                    worker = threading.Thread(
                        target=_recognize,
                        args=(session, detector, frame.copy()),
                        daemon=True,
                        name='Recognition'
                    )
                    worker.start()
                else:
                    logger.debug('Recognition still running, frame skipped')

            store.set_frame(draw_overlay(frame, session.latest_matches, len(session.events), config))

            time.sleep(0.03)

    finally:
        if worker is not None:
            worker.join(timeout=5)
        video_capture.release()
        logger.info('Camera released')


def _recognize(session: AttendanceSession, detector: Any, frame: Any) -> None:
    try:
        result = session.process_frame(frame, detector)
    except Exception as e:
        logger.error(f'Recognition pass failed: {e}', exc_info=True)
        return

    if result is not None and result.matches:
        logger.debug(
            f'Frame {result.frame_index}: {len(result.matches)} faces, '
            f'{len(result.confirmations)} confirmed'
        )


def match_color(result: MatchResult, config: Config):
    """Green for confident matches, orange for accepted ones, red otherwise."""
    if not is_accepted(result, config):
        return RED
    if result.combined_score > 0.85 and result.quality > 0.6:
        return GREEN
    return ORANGE


def draw_overlay(frame, matches: List[MatchResult], recognized_count: int, config: Config):
    """
    Draw match boxes and status on frame.

    Args:
        frame: Frame to draw on (not modified)
        matches: Match results of the latest processed frame
        recognized_count: Students recognized so far
        config: Service configuration

    Returns:
        Annotated copy of the frame
    """
    frame = frame.copy()

    status_text = f'Faces: {len(matches)} | Recognized: {recognized_count}'
    cv2.putText(frame, status_text, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (0, 0, 0), 3)
    cv2.putText(frame, status_text, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.6, GREEN, 2)

    for result in matches:
        if result.bbox is None:
            continue
        x1, y1, x2, y2 = result.bbox.corners()
        color = match_color(result, config)

        if color is RED:
            label = 'Unknown'
        else:
            label = (
                f'{result.identity.display_name} ({result.identity.id}) - '
                f'{result.combined_score:.0%} (Q:{result.quality:.0%})'
            )

        cv2.rectangle(frame, (x1, y1), (x2, y2), color, 2)
        cv2.rectangle(frame, (x1, y2 - 24), (x2, y2), color, cv2.FILLED)
        cv2.putText(frame, label, (x1 + 4, y2 - 7),
                    cv2.FONT_HERSHEY_DUPLEX, 0.45, (255, 255, 255), 1)

    return frame
