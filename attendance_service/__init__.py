"""
Attendance Service - Face Recognition Attendance

Matches classroom camera faces against enrolled students and marks each
recognized student present once per attendance session.
"""

__version__ = "1.0.0"
__author__ = "Attendance Service Team"
