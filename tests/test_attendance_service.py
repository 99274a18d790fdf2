"""Test the attendance service directly."""
import pytest
from sqlalchemy.exc import SQLAlchemyError

from qr_attendance import db
from qr_attendance.models import AttendanceRecord, AttendanceStatus
from qr_attendance.services.attendance_service import AttendanceService
from qr_attendance.utils.errors import (
    AttendanceStoreError, DuplicateAttendanceError, SessionExpiredError,
    SessionNotFoundError, StudentNotFoundError, ValidationError
)

@pytest.fixture
def service(app, store, clock):
    return AttendanceService.from_app()

def test_mark_writes_record(service, students):
    session_id = service.generate_session('CS301', 'Data Structures')['sessionId']

    result = service.mark_attendance(session_id, 'CS2024001', 'Alice Johnson',
                                     latitude=40.7128, longitude=-74.006)

    record = db.session.get(AttendanceRecord, result['attendanceId'])
    assert record.class_id == 'CS301'
    assert record.qr_session_id == session_id
    assert record.status == AttendanceStatus.PRESENT
    assert record.method == 'qr'
    assert record.student_latitude == 40.7128
    assert record.student.student_code == 'CS2024001'
    assert result['markedAt'] == '2024-09-02T09:00:00'

def test_second_mark_is_conflict(service, students):
    session_id = service.generate_session('CS301', 'Data Structures')['sessionId']
    service.mark_attendance(session_id, 'CS2024001')

    with pytest.raises(DuplicateAttendanceError):
        service.mark_attendance(session_id, 'CS2024001')

    assert service.get_status(session_id)['totalMarked'] == 1
    assert AttendanceRecord.query.count() == 1

def test_same_student_in_two_sessions(service, students):
    first = service.generate_session('CS301', 'Data Structures')['sessionId']
    second = service.generate_session('CS301', 'Data Structures')['sessionId']

    service.mark_attendance(first, 'CS2024001')
    service.mark_attendance(second, 'CS2024001')

    assert AttendanceRecord.query.count() == 2

def test_unknown_student_writes_nothing(service, students):
    session_id = service.generate_session('CS301', 'Data Structures')['sessionId']

    with pytest.raises(StudentNotFoundError):
        service.mark_attendance(session_id, 'INVALID001')

    assert AttendanceRecord.query.count() == 0
    assert service.get_status(session_id)['attendees'] == []

def test_expired_rejected_even_for_new_student(service, clock, students):
    session_id = service.generate_session('CS301', 'Data Structures', expires_in=60)['sessionId']
    service.mark_attendance(session_id, 'CS2024001')
    clock.advance(60)

    with pytest.raises(SessionExpiredError):
        service.mark_attendance(session_id, 'CS2024002')
    with pytest.raises(SessionExpiredError):
        service.mark_attendance(session_id, 'CS2024001')

def test_unknown_session(service):
    with pytest.raises(SessionNotFoundError):
        service.get_status('qr_missing')
    with pytest.raises(SessionNotFoundError):
        service.mark_attendance('qr_missing', 'CS2024001')

def test_failed_insert_releases_claim(service, students, monkeypatch):
    session_id = service.generate_session('CS301', 'Data Structures')['sessionId']

    def broken_commit():
        raise SQLAlchemyError('database is locked')

    monkeypatch.setattr(db.session, 'commit', broken_commit)
    with pytest.raises(AttendanceStoreError):
        service.mark_attendance(session_id, 'CS2024001')
    monkeypatch.undo()

    assert service.get_status(session_id)['totalMarked'] == 0

    # The student can retry once the database is back
    service.mark_attendance(session_id, 'CS2024001')
    assert service.get_status(session_id)['totalMarked'] == 1

def test_existing_row_reported_as_duplicate(service, store, students):
    """A persisted row blocks a second mark even if the store lost the attendee."""
    session_id = service.generate_session('CS301', 'Data Structures')['sessionId']
    service.mark_attendance(session_id, 'CS2024001')
    store.remove_attendee(session_id, 'CS2024001')

    with pytest.raises(DuplicateAttendanceError):
        service.mark_attendance(session_id, 'CS2024001')

    assert AttendanceRecord.query.count() == 1
    assert service.get_status(session_id)['totalMarked'] == 1

def test_scan_rejects_malformed_payload(service, students):
    with pytest.raises(ValidationError):
        service.scan('definitely not a qr payload', 'CS2024001')

def test_generate_records_creator(service, store):
    session_id = service.generate_session(301, 'Data Structures', created_by='lecturer-7')['sessionId']

    session = store.get(session_id)
    assert session.class_id == '301'
    assert session.created_by == 'lecturer-7'
