"""
Student registry module.

Loads enrolled students and their stored face descriptors from the backend.
"""

import json
from typing import Any, Dict, List, Optional

import requests

from .config import Config
from .errors import InputError
from .logging_config import get_logger
from .models import EnrolledIdentity, as_feature_vector
from .utils.cache import get_students_hash, load_cache, save_cache

logger = get_logger(__name__)


def load_enrolled_identities(config: Config) -> List[EnrolledIdentity]:
    """
    Load enrolled students from backend.

    The student list comes without face data; each student's descriptor is
    fetched individually. Results are cached by student list hash.

    Args:
        config: Service configuration

    Returns:
        List of enrolled identities (descriptor is None when missing)

    Raises:
        requests.exceptions.RequestException: If the student list cannot be fetched
    """
    logger.info('Loading enrolled students from backend...')

    url = f'{config.backend_url}/api/students'
    try:
        response = requests.get(url, timeout=config.http_timeout)
        response.raise_for_status()
        students = response.json()
    except requests.exceptions.RequestException as e:
        logger.error(f'Failed to fetch students from backend: {e}')
        raise

    logger.info(f'Fetched {len(students)} students from backend')

    current_hash = get_students_hash(students)
    cached_identities, cached_hash = load_cache(config.cache_file)
    if cached_identities and cached_hash == current_hash:
        logger.info(f'✅ Using cached face profiles for {len(cached_identities)} students')
        return cached_identities

    identities: List[EnrolledIdentity] = []
    failed = 0
    for student in students:
        usn = student.get('USN')
        if not usn:
            logger.warning(f'Student record without USN skipped: {student}')
            continue

        identity = _fetch_student_identity(str(usn), student, config)
        if identity is None:
            failed += 1
            continue
        identities.append(identity)

    with_face = sum(1 for identity in identities if identity.descriptor is not None)
    if failed:
        # Partial list must not satisfy the hash of the full roster
        logger.warning(f'{failed} students could not be fetched, cache not updated')
    elif with_face:
        save_cache(identities, current_hash, config.cache_file)

    logger.info(f'✅ Loaded {with_face} student face profiles')
    return identities


def _fetch_student_identity(
    usn: str,
    student: Dict[str, Any],
    config: Config
) -> Optional[EnrolledIdentity]:
    """
    Fetch one student's details including face data.

    Args:
        usn: Student USN
        student: Student summary from the list endpoint
        config: Service configuration

    Returns:
        EnrolledIdentity or None if the details could not be fetched
    """
    url = f'{config.backend_url}/api/students/{usn}'
    try:
        response = requests.get(url, timeout=config.http_timeout)
        response.raise_for_status()
        details = response.json()
    except requests.exceptions.RequestException as e:
        logger.error(f'Failed to fetch details for student {usn}: {e}')
        return None

    name = details.get('Name') or student.get('Name') or usn
    descriptor = None

    face_data = details.get('FaceData')
    if face_data:
        try:
            descriptor = parse_face_data(face_data)
        except InputError as e:
            logger.warning(f'Invalid face data for {name} ({usn}): {e}')
    else:
        logger.warning(f'Student {name} ({usn}) has no face data, skipping')

    return EnrolledIdentity(id=usn, display_name=name, descriptor=descriptor)


def parse_face_data(face_data: Any):
    """
    Convert stored face data into a feature vector.

    Accepts a list of numbers, a JSON string of one, or a mapping of
    index -> value (a serialized typed array).
    """
    if isinstance(face_data, str):
        try:
            face_data = json.loads(face_data)
        except json.JSONDecodeError as e:
            raise InputError(f'Face data is not valid JSON: {e}') from e

    if isinstance(face_data, dict):
        try:
            face_data = [face_data[key] for key in sorted(face_data, key=int)]
        except ValueError as e:
            raise InputError(f'Face data keys are not indices: {e}') from e

    return as_feature_vector(face_data)
