# File: qr_attendance/services/attendance_service.py
"""QR attendance sessions: generation, marking and status."""
import json
from datetime import timedelta
from typing import Dict

from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from qr_attendance import db
from qr_attendance.models.attendance import AttendanceRecord, AttendanceStatus
from qr_attendance.services.qr_service import QRService
from qr_attendance.services.session_store import Attendee, QRSession, get_session_store
from qr_attendance.services.student_service import StudentService
from qr_attendance.utils.errors import (
    DuplicateAttendanceError, SessionExpiredError, SessionNotFoundError,
    StudentInactiveError, StudentNotFoundError, AttendanceStoreError, ValidationError
)
from qr_attendance.utils.validators import Validator

MAX_POLL_INTERVAL_MS = 10000

class AttendanceService:
    """
    Attendance over short-lived QR sessions.

    Session: active -> expired (or closed).
    Student within a session: unmarked -> marked, at most once.
    """

    def __init__(self, store, api_url: str, default_expiry: int = 300,
                 min_expiry: int = 30, max_expiry: int = 3600):
        self.store = store
        self.api_url = api_url
        self.default_expiry = default_expiry
        self.min_expiry = min_expiry
        self.max_expiry = max_expiry

    @classmethod
    def from_app(cls) -> 'AttendanceService':
        """Service bound to the current app's store and config."""
        config = current_app.config
        return cls(
            get_session_store(),
            api_url=config['PUBLIC_API_URL'],
            default_expiry=config['QR_CODE_DEFAULT_EXPIRY'],
            min_expiry=config['QR_CODE_MIN_EXPIRY'],
            max_expiry=config['QR_CODE_MAX_EXPIRY']
        )

    # =================== GENERATION ===================

    def generate_session(self, class_id, class_name: str, latitude=None, longitude=None,
                         expires_in=None, created_by: str = None) -> Dict:
        """Open a new session for a class and build its QR code."""
        Validator.require_fields({'classId': class_id, 'className': class_name}, ['classId', 'className'])
        location = Validator.validate_coordinates(latitude, longitude)
        lifetime = Validator.validate_expiry(expires_in, self.default_expiry, self.min_expiry, self.max_expiry)

        now = self.store.now()
        session = QRSession(
            session_id=QRService.generate_session_id(),
            class_id=str(class_id).strip(),
            class_name=str(class_name).strip(),
            created_at=now,
            expires_at=now + timedelta(seconds=lifetime),
            created_by=str(created_by) if created_by is not None else 'anonymous',
            latitude=location[0] if location else None,
            longitude=location[1] if location else None
        )
        self.store.add(session)

        qr_string = json.dumps(QRService.build_payload(session, self.api_url), separators=(',', ':'))

        current_app.logger.info(
            'QR session %s created for class %s (%ss)', session.session_id, session.class_id, lifetime
        )

        return {
            'sessionId': session.session_id,
            'qrData': qr_string,
            'qrImage': QRService.render_qr_image(qr_string),
            'expiresIn': lifetime,
            'expiresAt': session.expires_at.isoformat(),
            'className': session.class_name,
            'classId': session.class_id,
            'requiresLocation': session.requires_location
        }

    # =================== MARKING ===================

    def mark_attendance(self, session_id: str, student_identifier: str, student_name: str = None,
                        latitude=None, longitude=None) -> Dict:
        """Mark a student present in a session, once."""
        if not isinstance(student_identifier, str) or not student_identifier.strip():
            raise ValidationError("studentId is required")
        location = Validator.validate_coordinates(latitude, longitude)

        session = self._active_session(session_id)

        student = StudentService.resolve(student_identifier, student_name)
        if student is None:
            current_app.logger.warning(
                'Rejected mark in %s: unknown student %r', session_id, student_identifier
            )
            raise StudentNotFoundError(searchedFor=student_identifier,
                                       suggestion='Use student ID (e.g., CS2024001) or registered email')
        if not student.is_active:
            raise StudentInactiveError()

        now = self.store.now()
        attendee = Attendee(
            student_id=student.student_code,
            student_name=student.name,
            marked_at=now,
            department=student.department,
            class_name=student.class_name
        )
        if session.has_attendee(attendee.student_id) or not self.store.add_attendee(session_id, attendee):
            raise DuplicateAttendanceError()

        record = AttendanceRecord(
            student_id=student.id,
            class_id=session.class_id,
            qr_session_id=session.session_id,
            status=AttendanceStatus.PRESENT,
            method='qr',
            check_in_time=now,
            student_latitude=location[0] if location else None,
            student_longitude=location[1] if location else None,
            location_verified=False
        )
        try:
            db.session.add(record)
            db.session.commit()
        except IntegrityError:
            # A row already exists, so the claim stands
            db.session.rollback()
            raise DuplicateAttendanceError()
        except SQLAlchemyError as e:
            db.session.rollback()
            self.store.remove_attendee(session_id, attendee.student_id)
            current_app.logger.error('Attendance insert failed for %s in %s: %s',
                                     attendee.student_id, session_id, e)
            raise AttendanceStoreError(details='Database write error')

        current_app.logger.info('Marked %s present in %s', attendee.student_id, session_id)

        return {
            'message': 'Attendance marked successfully',
            'sessionId': session.session_id,
            'studentId': student.student_code,
            'studentName': student.name,
            'department': student.department,
            'markedAt': now.isoformat(),
            'attendanceId': record.id
        }

    def scan(self, qr_data: str, student_identifier: str, student_name: str = None,
             latitude=None, longitude=None) -> Dict:
        """Mark attendance from the raw contents of a scanned QR code."""
        session_id, _ = QRService.parse_qr_payload(qr_data)
        return self.mark_attendance(session_id, student_identifier, student_name,
                                    latitude=latitude, longitude=longitude)

    def _active_session(self, session_id: str) -> QRSession:
        session = self.store.get(session_id)
        if session is None:
            raise SessionNotFoundError()
        if not session.is_active(self.store.now()):
            raise SessionExpiredError()
        return session

    # =================== STATUS ===================

    def get_status(self, session_id: str) -> Dict:
        """Read-only view of a session for polling clients."""
        session = self.store.get(session_id)
        if session is None:
            raise SessionNotFoundError('Session not found')
        return self._status(session)

    def close_session(self, session_id: str) -> Dict:
        """End a session before it expires."""
        session = self.store.close(session_id)
        if session is None:
            raise SessionNotFoundError('Session not found')

        current_app.logger.info('QR session %s closed with %d attendees',
                                session_id, len(session.attendees))
        return self._status(session)

    def _status(self, session: QRSession) -> Dict:
        now = self.store.now()
        is_active = session.is_active(now)
        time_left = session.time_left(now) if is_active else 0

        return {
            'sessionId': session.session_id,
            'classId': session.class_id,
            'className': session.class_name,
            'isActive': is_active,
            'timeLeft': time_left,
            'expiresAt': session.expires_at.isoformat(),
            'attendees': [a.to_dict() for a in session.attendees],
            'totalMarked': len(session.attendees),
            'pollInterval': min(time_left * 1000, MAX_POLL_INTERVAL_MS) if is_active else 0,
            'lastUpdated': now.isoformat()
        }
