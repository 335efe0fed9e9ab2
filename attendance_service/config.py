"""
Configuration module for Attendance Service.

Loads configuration from environment variables with sensible defaults.
All settings are immutable after initialization.
"""

import os
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Config:
    """
    Immutable configuration for Attendance Service.

    Backend Integration:
        backend_url: Base URL of the attendance backend (e.g., http://backend:3000)
        http_timeout: Timeout for backend requests in seconds

    Session:
        session_id: Attendance session the recognized students are marked in

    Camera Settings:
        camera_source: Camera source - integer index, RTSP or HTTP URL
        camera_id: Logical identifier for this camera (for logging/monitoring)
        frame_interval_seconds: Minimum time between two recognition passes

    Service Identity:
        service_name: Name of this service instance
        video_port: Port for Flask HTTP server

    Quality:
        min_face_area: Face area (px^2) at which the size score is 0.5
        quality_floor: Detections below this quality are never matched

    Matching:
        match_threshold: Euclidean distance a candidate must stay strictly under
        accept_score: Quality-weighted score a match must exceed to count
        euclidean_scale: Euclidean distance mapped to a normalized 1.0
        manhattan_scale: Manhattan distance mapped to a normalized 1.0
        cosine_weight, euclidean_weight, manhattan_weight: Combined score weights

    Confirmation:
        confirmation_threshold: Accumulated confidence that commits attendance

    Detection:
        insightface_det_size: Detection size for InsightFace (width, height)
        enable_hybrid_detection: Merge a second detector pass into the first
        duplicate_distance: Descriptor distance under which two detections
            of the merged passes are the same face

    System:
        cache_file: Path to enrolled descriptors cache file
        debug_mode: Enable debug logging
    """

    # Backend
    backend_url: str
    http_timeout: float

    # Session
    session_id: str

    # Camera
    camera_source: str
    camera_id: str
    frame_interval_seconds: float

    # Service
    service_name: str
    video_port: int

    # Quality
    min_face_area: float
    quality_floor: float

    # Matching
    match_threshold: float
    accept_score: float
    euclidean_scale: float
    manhattan_scale: float
    cosine_weight: float
    euclidean_weight: float
    manhattan_weight: float

    # Confirmation
    confirmation_threshold: float

    # Detection
    insightface_det_size: Tuple[int, int]
    enable_hybrid_detection: bool
    duplicate_distance: float

    # System
    cache_file: str
    debug_mode: bool


def load_config() -> Config:
    """
    Load configuration from environment variables.

    Returns:
        Config: Immutable configuration object
    """
    camera_source_raw = os.getenv('CAMERA_SOURCE', '0')

    return Config(
        # Backend
        backend_url=os.getenv('BACKEND_URL', 'http://localhost:3000'),
        http_timeout=float(os.getenv('HTTP_TIMEOUT', '10')),

        # Session
        session_id=os.getenv('SESSION_ID', ''),

        # Camera
        camera_source=camera_source_raw,
        camera_id=os.getenv('CAMERA_ID', camera_source_raw),
        frame_interval_seconds=float(os.getenv('FRAME_INTERVAL', '1.0')),

        # Service
        service_name=os.getenv('SERVICE_NAME', 'attendance'),
        video_port=int(os.getenv('VIDEO_PORT', '5001')),

        # Quality
        min_face_area=float(os.getenv('MIN_FACE_AREA', '2500')),
        quality_floor=float(os.getenv('QUALITY_FLOOR', '0.3')),

        # Matching
        match_threshold=float(os.getenv('MATCH_THRESHOLD', '0.6')),
        accept_score=float(os.getenv('ACCEPT_SCORE', '0.7')),
        euclidean_scale=float(os.getenv('EUCLIDEAN_SCALE', '2.0')),
        manhattan_scale=float(os.getenv('MANHATTAN_SCALE', '256.0')),
        cosine_weight=float(os.getenv('COSINE_WEIGHT', '0.5')),
        euclidean_weight=float(os.getenv('EUCLIDEAN_WEIGHT', '0.3')),
        manhattan_weight=float(os.getenv('MANHATTAN_WEIGHT', '0.2')),

        # Confirmation
        confirmation_threshold=float(os.getenv('CONFIRMATION_THRESHOLD', '2.5')),

        # Detection
        insightface_det_size=(640, 640),
        enable_hybrid_detection=os.getenv('HYBRID_DETECTION', 'true').lower() == 'true',
        duplicate_distance=float(os.getenv('DUPLICATE_DISTANCE', '0.3')),

        # System
        cache_file=os.getenv('CACHE_FILE', 'identity_descriptors_cache.pkl'),
        debug_mode=os.getenv('DEBUG', 'false').lower() == 'true',
    )
