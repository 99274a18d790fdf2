"""Domain errors raised by the attendance services."""

class AttendanceError(Exception):
    """Base error; carries the HTTP status it maps to."""
    status_code = 500
    default_message = 'Attendance error'

    def __init__(self, message: str = None, **details):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details

class ValidationError(AttendanceError):
    """Malformed request data."""
    status_code = 400
    default_message = 'Invalid request data'

class StudentNotFoundError(AttendanceError):
    status_code = 403
    default_message = 'Student not found in database. Only registered students can mark attendance.'

class StudentInactiveError(AttendanceError):
    status_code = 403
    default_message = 'Student account is not active. Please contact administration.'

class SessionNotFoundError(AttendanceError):
    status_code = 404
    default_message = 'QR session not found or expired'

class SessionExpiredError(AttendanceError):
    status_code = 404
    default_message = 'QR session has expired'

class DuplicateAttendanceError(AttendanceError):
    status_code = 409
    default_message = 'Attendance already marked for this session'

class AttendanceStoreError(AttendanceError):
    """Persistent attendance write failed."""
    status_code = 500
    default_message = 'Failed to save attendance record'
