# File: qr_attendance/models/attendance.py
"""Attendance model with check-in details."""
from datetime import datetime
import enum
from qr_attendance import db
from qr_attendance.models.base import BaseModel

class AttendanceStatus(enum.Enum):
    """Attendance status enumeration."""
    PRESENT = 'present'
    ABSENT = 'absent'
    LATE = 'late'

class AttendanceRecord(BaseModel):
    """Attendance record model."""

    __tablename__ = 'attendance_records'
    __table_args__ = (
        db.UniqueConstraint('qr_session_id', 'student_id', name='uq_attendance_session_student'),
    )

    student_id = db.Column(db.Integer, db.ForeignKey('students.id'), nullable=False, index=True)
    class_id = db.Column(db.String(50), nullable=False, index=True)
    qr_session_id = db.Column(db.String(64), nullable=True, index=True)
    status = db.Column(db.Enum(AttendanceStatus), nullable=False, default=AttendanceStatus.PRESENT)
    check_in_time = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    # qr, manual
    method = db.Column(db.String(20), default='qr')

    # Location reported by the student's device
    student_latitude = db.Column(db.Float, nullable=True)
    student_longitude = db.Column(db.Float, nullable=True)
    distance_from_class = db.Column(db.Float, nullable=True)
    location_verified = db.Column(db.Boolean, default=False)

    def __repr__(self):
        return f'<AttendanceRecord {self.student_id}-{self.qr_session_id}>'
