# File: qr_attendance/services/student_service.py
"""Student lookup and management service."""
from typing import Callable, Dict, List, Optional, Tuple

import pandas as pd
from flask import current_app
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from qr_attendance import db
from qr_attendance.models.student import Student, StudentStatus
from qr_attendance.utils.validators import Validator

def _by_student_code(identifier: str, display_name: Optional[str]) -> Optional[Student]:
    if not identifier:
        return None
    return Student.query.filter_by(student_code=identifier).first()

def _by_email(identifier: str, display_name: Optional[str]) -> Optional[Student]:
    if '@' not in identifier:
        return None
    return Student.query.filter(func.lower(Student.email) == identifier.lower()).first()

def _by_name(identifier: str, display_name: Optional[str]) -> Optional[Student]:
    name = (display_name or '').strip()
    if not name:
        return None
    return Student.query.filter(
        func.lower(Student.name).contains(name.lower(), autoescape=True)
    ).order_by(Student.id).first()

# Evaluated in order, first match wins
RESOLUTION_STRATEGIES: List[Tuple[str, Callable[[str, Optional[str]], Optional[Student]]]] = [
    ('student_code', _by_student_code),
    ('email', _by_email),
    ('name', _by_name),
]

class StudentService:
    """Service for finding and managing students."""

    @staticmethod
    def resolve(identifier: str, display_name: str = None) -> Optional[Student]:
        """Resolve a scanned identifier (code, email or name) to a student."""
        identifier = (identifier or '').strip()
        if not identifier and not display_name:
            return None

        for strategy_name, strategy in RESOLUTION_STRATEGIES:
            student = strategy(identifier, display_name)
            if student is not None:
                current_app.logger.debug(
                    'Resolved %r to student %s by %s', identifier, student.student_code, strategy_name
                )
                return student

        return None

    @staticmethod
    def create_student(
        student_code: str,
        name: str,
        email: str = None,
        department: str = None,
        class_name: str = None,
        section: str = None,
        year: int = None,
        gpa: float = None,
        status: str = 'active'
    ) -> Tuple[Optional[Dict], Optional[str]]:
        """Create a new student record."""
        try:
            if not student_code or not name:
                return None, "Student code and name are required"

            if Student.query.filter_by(student_code=student_code).first():
                return None, f"Student {student_code} already exists"

            if email and not Validator.validate_email(email):
                return None, f"Invalid email: {email}"

            student = Student(
                student_code=student_code,
                name=name,
                email=email or None,
                department=department or None,
                class_name=class_name or None,
                section=section or None,
                year=int(year) if year not in (None, '') else None,
                gpa=float(gpa) if gpa not in (None, '') else None,
                status=StudentStatus(status.lower() if status else 'active')
            )
            student.save()

            return student.to_dict(), None

        except (ValueError, SQLAlchemyError) as e:
            db.session.rollback()
            return None, f"Error creating student: {str(e)}"

    @staticmethod
    def import_students(df: pd.DataFrame) -> List[Dict]:
        """Create multiple students from a DataFrame."""
        results = []

        for index, row in df.iterrows():
            result, error = StudentService.create_student(
                student_code=row.get('student_id') or row.get('student_code'),
                name=row.get('name'),
                email=row.get('email'),
                department=row.get('department'),
                class_name=row.get('class') or row.get('class_name'),
                section=row.get('section'),
                year=row.get('year'),
                gpa=row.get('gpa'),
                status=row.get('status') or 'active'
            )

            results.append({
                'row': index + 2,  # CSV line number, after the header
                'name': row.get('name') or 'Unknown',
                'success': error is None,
                'error': error,
                'student_id': result['studentId'] if result else None
            })

        return results
