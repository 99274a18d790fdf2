# File: qr_attendance/services/seed_service.py
"""Database seeding service for demo data."""
from flask import current_app

from qr_attendance.models.student import Student
from qr_attendance.services.student_service import StudentService

DEMO_STUDENTS = [
    ('CS2024001', 'Alice Johnson', 'alice.johnson@university.edu', 'Computer Science', 'CS-301', 'A', 2024, 3.8),
    ('CS2024002', 'Bob Smith', 'bob.smith@university.edu', 'Computer Science', 'CS-301', 'A', 2024, 3.5),
    ('CS2024003', 'Carol Davis', 'carol.davis@university.edu', 'Computer Science', 'CS-201', 'B', 2023, 3.9),
    ('MATH2024001', 'David Wilson', 'david.wilson@university.edu', 'Mathematics', 'MATH-301', 'A', 2024, 3.7),
    ('MATH2024002', 'Emma Brown', 'emma.brown@university.edu', 'Mathematics', 'MATH-201', 'B', 2023, 3.6),
    ('ENG2024001', 'Frank Miller', 'frank.miller@university.edu', 'Engineering', 'ENG-301', 'A', 2024, 3.4),
]

class SeedService:
    """Service to seed database with demo data."""

    @staticmethod
    def seed_all() -> int:
        """Seed all demo data."""
        return SeedService.seed_students()

    @staticmethod
    def seed_students() -> int:
        """Create the demo students that do not exist yet."""
        created = 0
        for code, name, email, department, class_name, section, year, gpa in DEMO_STUDENTS:
            if Student.query.filter_by(student_code=code).first():
                continue

            _, error = StudentService.create_student(
                student_code=code,
                name=name,
                email=email,
                department=department,
                class_name=class_name,
                section=section,
                year=year,
                gpa=gpa
            )
            if error:
                current_app.logger.warning('Seeding %s failed: %s', code, error)
            else:
                created += 1

        current_app.logger.info('Seeded %d students', created)
        return created
