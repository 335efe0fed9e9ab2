"""
Attendance Service - Main Entry Point

Takes attendance for one session from a classroom camera.
"""

import argparse
import dataclasses
import os
import sys
import threading
from pathlib import Path

from .app import create_app
from .attendance import make_committer
from .config import Config, load_config
from .errors import CollaboratorError
from .logging_config import get_logger, setup_logging
from .registry import load_enrolled_identities
from .session import AttendanceSession
from .streaming import FrameStore

logger = get_logger(__name__)


def _load_local_env() -> None:
    """Load environment variables from attendance_service/.env if present."""
    env_path = Path(__file__).resolve().parent / '.env'
    if not env_path.exists():
        return

    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith('#') or '=' not in line:
            continue
        key, value = line.split('=', 1)
        os.environ.setdefault(key.strip(), value.strip())


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description='Attendance Service - Face Recognition Attendance'
    )

    parser.add_argument(
        '--session-id',
        type=str,
        help='Attendance session to mark students in (or set SESSION_ID)'
    )

    parser.add_argument(
        '--backend-url',
        type=str,
        help='Backend API URL (or set BACKEND_URL)'
    )

    parser.add_argument(
        '--camera',
        type=str,
        help='Camera index or stream URL (or set CAMERA_SOURCE)'
    )

    parser.add_argument(
        '--frame-interval',
        type=float,
        help='Seconds between recognition passes (or set FRAME_INTERVAL)'
    )

    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )

    args = parser.parse_args(argv)

    if not args.session_id:
        args.session_id = os.getenv('SESSION_ID')
    if not args.session_id:
        parser.error('Missing session id. Provide --session-id or set SESSION_ID in .env/environment.')

    return args


def build_config(args: argparse.Namespace) -> Config:
    """Apply command line overrides on top of the environment configuration."""
    config = load_config()

    overrides = {'session_id': args.session_id}
    if args.backend_url:
        overrides['backend_url'] = args.backend_url.rstrip('/')
    if args.camera:
        overrides['camera_source'] = args.camera
        overrides['camera_id'] = args.camera
    if args.frame_interval is not None:
        overrides['frame_interval_seconds'] = args.frame_interval
    if args.debug:
        overrides['debug_mode'] = True

    return dataclasses.replace(config, **overrides)


def start_flask_server(session: AttendanceSession, store: FrameStore, config: Config) -> None:
    """
    Start Flask server (run in a background thread).

    Args:
        session: Attendance session
        store: Frame store
        config: Service configuration
    """
    logger.info(f'Starting HTTP server on port {config.video_port}...')
    app = create_app(session, store, config)
    app.run(
        host='0.0.0.0',
        port=config.video_port,
        threaded=True,
        debug=False,
        use_reloader=False
    )


def main(argv=None) -> None:
    """Main entry point."""
    _load_local_env()
    args = parse_args(argv)
    config = build_config(args)

    setup_logging(config.session_id, config.debug_mode)

    logger.info('=' * 60)
    logger.info('Attendance Service')
    logger.info('=' * 60)
    logger.info(f'Session: {config.session_id}')
    logger.info(f'Backend: {config.backend_url}')
    logger.info(f'Recognition interval: {config.frame_interval_seconds}s')
    logger.info('=' * 60)

    session = AttendanceSession(
        config.session_id,
        config,
        registry_provider=lambda: load_enrolled_identities(config),
        committer=make_committer(config),
    )

    try:
        session.start()
    except CollaboratorError as e:
        logger.error(f'Cannot start session: {e}')
        sys.exit(1)

    if not session.registry:
        logger.error('No enrolled students found!')
        logger.error('Please register students with face data before taking attendance')
        sys.exit(1)

    store = FrameStore()
    flask_thread = threading.Thread(
        target=start_flask_server, args=(session, store, config), daemon=True
    )
    flask_thread.start()
    logger.info(f'Video stream: http://localhost:{config.video_port}/video_feed')

    # Heavy imports (OpenCV capture, InsightFace models) only once the session is up
    from .face_app import build_detector
    from .video_loop import run as run_video_loop

    try:
        detector = build_detector(config)
        run_video_loop(session, detector, config, store)
    except KeyboardInterrupt:
        logger.info('Received keyboard interrupt, shutting down...')
    except Exception as e:
        logger.error(f'Fatal error: {e}', exc_info=True)
        sys.exit(1)
    finally:
        session.end()


if __name__ == '__main__':
    main()
