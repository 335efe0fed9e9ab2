"""
Utility modules package.
"""

from .cache import get_students_hash, load_cache, save_cache

__all__ = [
    'load_cache',
    'save_cache',
    'get_students_hash',
]
