"""
Video streaming module.

Holds the latest annotated frame and generates the MJPEG stream for Flask.
Thread-safe frame access using a lock.
"""

import threading
import time
from typing import Generator, Optional

import cv2
import numpy as np


class FrameStore:
    """Latest frame of the capture loop, shared with HTTP clients."""

    def __init__(self):
        self._frame: Optional[np.ndarray] = None
        self._lock = threading.Lock()

    def set_frame(self, frame: Optional[np.ndarray]) -> None:
        with self._lock:
            self._frame = frame.copy() if frame is not None else None

    def get_frame_copy(self) -> Optional[np.ndarray]:
        with self._lock:
            return self._frame.copy() if self._frame is not None else None

    def is_streaming(self) -> bool:
        with self._lock:
            return self._frame is not None


def encode_jpeg(frame: np.ndarray, quality: int = 85) -> Optional[bytes]:
    ret, buffer = cv2.imencode('.jpg', frame, [cv2.IMWRITE_JPEG_QUALITY, quality])
    if not ret:
        return None
    return buffer.tobytes()


def generate_mjpeg_frames(store: FrameStore) -> Generator[bytes, None, None]:
    """
    Generate MJPEG frames from a frame store.

    Yields:
        JPEG frame bytes with multipart headers
    """
    while True:
        frame = store.get_frame_copy()

        if frame is None:
            time.sleep(0.1)
            continue

        jpeg = encode_jpeg(frame)
        if jpeg is not None:
            yield (b'--frame\r\n'
                   b'Content-Type: image/jpeg\r\n\r\n' + jpeg + b'\r\n')

        # ~30 FPS
        time.sleep(0.033)
