"""
InsightFace initialization module.

Provides face detection, landmarks and descriptors using InsightFace models.
"""

from insightface.app import FaceAnalysis

from .config import Config
from .detection import HybridDetector, InsightFaceDetector
from .logging_config import get_logger

logger = get_logger(__name__)

QUICK_DET_SIZE = (320, 320)


def initialize_face_app(det_size) -> FaceAnalysis:
    """
    Initialize InsightFace FaceAnalysis.

    Args:
        det_size: Detection size (width, height)

    Returns:
        Initialized FaceAnalysis instance
    """
    logger.info(f'Initializing InsightFace AI (det_size={det_size})...')

    face_app = FaceAnalysis(
        providers=['CPUExecutionProvider'],
        allowed_modules=['detection', 'landmark_3d_68', 'recognition'],
    )
    face_app.prepare(ctx_id=0, det_size=det_size)

    logger.info(f'✅ InsightFace initialized (det_size={det_size})')

    return face_app


def build_detector(config: Config):
    """
    Build the detector used by the capture loop.

    With hybrid detection enabled, a quick low-resolution pass adds faces
    the full-resolution pass missed.

    Args:
        config: Service configuration

    Returns:
        Detector with a detect(frame) method
    """
    primary = InsightFaceDetector(initialize_face_app(config.insightface_det_size), 'full')

    if not config.enable_hybrid_detection:
        return primary

    secondary = InsightFaceDetector(initialize_face_app(QUICK_DET_SIZE), 'quick')
    return HybridDetector(primary, secondary, config.duplicate_distance)
