"""
Attendance backend module.

Marks students present in an attendance session and reads session summaries.
"""

from typing import Any, Dict, Optional

import requests

from .config import Config
from .logging_config import get_logger

logger = get_logger(__name__)


def commit_attendance(session_id: str, usn: str, config: Config) -> bool:
    """
    Mark a student present in a session.

    Args:
        session_id: Attendance session ID
        usn: Student USN
        config: Service configuration

    Returns:
        True if the backend accepted the record
    """
    url = f'{config.backend_url}/api/attendance/mark'

    payload = {
        'sessionId': session_id,
        'usn': usn,
        'status': 'Present',
    }

    try:
        logger.info(f'📤 Marking attendance for student {usn} in session {session_id}')

        response = requests.post(url, json=payload, timeout=config.http_timeout)

        if response.ok:
            logger.info(f'✅ Attendance marked for student {usn}')
            return True
        else:
            logger.error(f'❌ Failed to mark attendance: {response.status_code} {response.text}')
            return False

    except requests.exceptions.Timeout:
        logger.error(f'❌ Timeout marking attendance at {url}')
        return False
    except requests.exceptions.ConnectionError:
        logger.error(f'❌ Connection error marking attendance at {url}')
        return False
    except requests.exceptions.RequestException as e:
        logger.error(f'❌ Error marking attendance: {e}')
        return False


def fetch_attendance_summary(session_id: str, config: Config) -> Optional[Dict[str, Any]]:
    """
    Fetch present/total counts for a session.

    Args:
        session_id: Attendance session ID
        config: Service configuration

    Returns:
        Dict with present_count and total_students, or None on failure
    """
    url = f'{config.backend_url}/api/attendance/summary/{session_id}'
    try:
        response = requests.get(url, timeout=config.http_timeout)
        response.raise_for_status()
        summary = response.json()
    except (requests.exceptions.RequestException, ValueError) as e:
        logger.warning(f'Failed to fetch attendance summary: {e}')
        return None

    return {
        'present_count': summary.get('present_count') or 0,
        'total_students': summary.get('total_students') or 0,
    }


def make_committer(config: Config):
    """
    Build the commit callback used by AttendanceSession.

    Logs the session summary after every successful commit.
    """
    def commit(session_id: str, usn: str) -> bool:
        if not commit_attendance(session_id, usn, config):
            return False
        summary = fetch_attendance_summary(session_id, config)
        if summary is not None:
            logger.info(
                f"Attendance: {summary['present_count']}/{summary['total_students']} present"
            )
        return True

    return commit
