"""
Flask application for HTTP API.

Provides:
- GET /health: Service health check
- GET /video_feed: MJPEG stream with recognition overlay
- GET /session: Recognized students and confirmation events
- GET /session/matches: Match results of the latest processed frame
"""

from flask import Flask, Response, jsonify
from flask_cors import CORS

from .config import Config
from .logging_config import get_logger
from .session import AttendanceSession
from .streaming import FrameStore, generate_mjpeg_frames

logger = get_logger(__name__)


def create_app(session: AttendanceSession, store: FrameStore, config: Config) -> Flask:
    """
    Create and configure Flask application.

    Args:
        session: Running attendance session
        store: Frame store fed by the capture loop
        config: Service configuration

    Returns:
        Configured Flask app
    """
    app = Flask(__name__)
    CORS(app)

    @app.route('/health')
    def health():
        """Health check endpoint."""
        return jsonify({
            'status': 'ok',
            'streaming': store.is_streaming(),
            'sessionActive': session.active,
            'cameraId': config.camera_id,
            'service': config.service_name,
        })

    @app.route('/video_feed')
    def video_feed():
        """Stream MJPEG video feed."""
        return Response(
            generate_mjpeg_frames(store),
            mimetype='multipart/x-mixed-replace; boundary=frame'
        )

    @app.route('/session')
    def session_status():
        """Recognized students of the current session."""
        return jsonify({
            'sessionId': session.session_id,
            'active': session.active,
            'framesProcessed': session.frame_count,
            'framesDropped': session.dropped_frames,
            'recognized': [identity.to_dict() for identity in session.recognized],
            'events': [event.to_dict() for event in session.events],
        })

    @app.route('/session/matches')
    def session_matches():
        """Match results of the latest frame."""
        return jsonify([match.to_dict() for match in session.latest_matches])

    return app
