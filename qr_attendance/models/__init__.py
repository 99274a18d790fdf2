"""Models package with all models."""
from .base import BaseModel
from .student import Student, StudentStatus
from .attendance import AttendanceRecord, AttendanceStatus

__all__ = [
    'BaseModel', 'Student', 'StudentStatus',
    'AttendanceRecord', 'AttendanceStatus'
]
