# File: qr_attendance/models/student.py
"""Student model with university code and contact details."""
from qr_attendance import db
from qr_attendance.models.base import BaseModel
import enum

class StudentStatus(enum.Enum):
    """Student status enumeration."""
    ACTIVE = 'active'
    INACTIVE = 'inactive'
    GRADUATED = 'graduated'

class Student(BaseModel):
    """Student model with academic information."""

    __tablename__ = 'students'

    # University credentials
    student_code = db.Column(db.String(20), unique=True, nullable=False, index=True)  # CS2024001
    email = db.Column(db.String(255), unique=True, nullable=True, index=True)

    # Link to a login account, if one exists
    user_id = db.Column(db.Integer, nullable=True, index=True)

    # Personal info
    name = db.Column(db.String(255), nullable=False)

    # Academic info
    department = db.Column(db.String(100), nullable=True)
    class_name = db.Column(db.String(50), nullable=True)  # CS-301
    section = db.Column(db.String(10), nullable=True)
    year = db.Column(db.Integer, nullable=True)
    gpa = db.Column(db.Float, nullable=True)

    status = db.Column(db.Enum(StudentStatus), nullable=False, default=StudentStatus.ACTIVE)

    # Relationships
    attendance_records = db.relationship('AttendanceRecord', backref='student', lazy='dynamic')

    @property
    def is_active(self) -> bool:
        return self.status == StudentStatus.ACTIVE

    def to_dict(self):
        """Convert to dictionary."""
        return {
            'id': self.id,
            'studentId': self.student_code,
            'name': self.name,
            'email': self.email,
            'department': self.department,
            'class': self.class_name,
            'section': self.section,
            'year': self.year,
            'gpa': self.gpa,
            'status': self.status.value if self.status else None
        }

    def __repr__(self) -> str:
        return f'<Student {self.student_code}>'
