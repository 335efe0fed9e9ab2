"""
Face profile cache module.

Caches enrolled descriptors to avoid refetching every student on every start.
"""

import hashlib
import os
import pickle
import time
from typing import Any, Dict, List, Optional, Tuple

from ..logging_config import get_logger

logger = get_logger(__name__)


def get_students_hash(students: List[Dict[str, Any]]) -> str:
    """
    Compute hash of students list for cache validation.

    Args:
        students: List of student dicts

    Returns:
        MD5 hash string
    """
    data = ''.join([
        f"{s.get('USN', '')}-{s.get('Name', '')};"
        for s in students
    ])
    return hashlib.md5(data.encode()).hexdigest()


def save_cache(identities: List, students_hash: str, cache_file: str) -> None:
    """
    Save enrolled identities to cache file.

    Args:
        identities: List of EnrolledIdentity
        students_hash: Hash of student list
        cache_file: Path to cache file
    """
    try:
        cache_data = {
            'identities': identities,
            'hash': students_hash,
            'timestamp': time.time(),
        }

        with open(cache_file, 'wb') as f:
            pickle.dump(cache_data, f)

        logger.info(f'Cache saved for {len(identities)} students')

    except Exception as e:
        logger.error(f'Failed to save cache: {e}')


def load_cache(cache_file: str) -> Tuple[Optional[List], Optional[str]]:
    """
    Load enrolled identities from cache file.

    Args:
        cache_file: Path to cache file

    Returns:
        Tuple of (identities, hash) or (None, None) if cache invalid
    """
    if not os.path.exists(cache_file):
        logger.debug('Cache file not found')
        return None, None

    try:
        with open(cache_file, 'rb') as f:
            cache_data = pickle.load(f)

        age = time.time() - cache_data.get('timestamp', 0)
        logger.info(f'Cache found (age: {age:.0f} seconds)')

        return cache_data.get('identities'), cache_data.get('hash')

    except Exception as e:
        logger.error(f'Failed to load cache: {e}')
        return None, None
