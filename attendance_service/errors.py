"""
Error types raised by the attendance engine.
"""


class AttendanceError(Exception):
    """Base class for attendance service errors."""


class InputError(AttendanceError, ValueError):
    """
    Invalid input to a scoring function or data constructor.

    Raised for descriptor length mismatches, empty or non 1-D vectors
    and malformed detections. Never recovered inside the engine.
    """


class CollaboratorError(AttendanceError, RuntimeError):
    """An external collaborator (registry, detector, backend) failed."""
