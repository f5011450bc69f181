"""CLI script to fill the backend DB with demo teachers, courses and students.
Usage: python scripts/seed_demo.py [--students N]
"""
import sys
import argparse
import pathlib
# Ensure `backend/` is on sys.path so `schooladmin` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from schooladmin.database import engine, create_db_and_tables
from schooladmin import schemas, services
from schooladmin.errors import SchoolAdminError

DEPARTMENTS = ["Computer Science", "Mathematics", "Physics"]


def main(students: int = 10):
    """Create one teacher and one course per department, then enroll students.

    Each student is enrolled in every course until the course is full.
    Results are printed to stdout for a quick CLI feedback loop.
    """
    create_db_and_tables()
    with Session(engine) as session:
        course_ids = []
        for i, dept in enumerate(DEPARTMENTS, start=1):
            try:
                teacher = services.TeacherService(session).create(schemas.TeacherCreate(
                    name=f'Demo Teacher {i}', email=f'teacher{i}@demo.school', department=dept,
                ))
                course = services.CourseService(session).create(schemas.CourseCreate(
                    title=f'Introduction to {dept}', department=dept, teacher_id=teacher['id'],
                ))
            except SchoolAdminError as e:
                print(f'Skipping {dept}: {e.message}')
                continue
            print(f"Created teacher {teacher['employeeId']} and course {course['courseCode']}")
            course_ids.append(course['id'])
        enrollments = services.EnrollmentService(session)
        for n in range(1, students + 1):
            try:
                student = services.StudentService(session).create(schemas.StudentCreate(
                    name=f'Demo Student {n}', email=f'student{n}@demo.school',
                ))
            except SchoolAdminError as e:
                print(f'Skipping student {n}: {e.message}')
                continue
            for course_id in course_ids:
                try:
                    enrollments.enroll(course_id, student['id'], schemas.EnrollmentCreate())
                except SchoolAdminError as e:
                    print(f"Could not enroll {student['studentId']} in course {course_id}: {e.message}")
            print(f"Created student {student['studentId']}")


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--students', type=int, default=10, help='Number of demo students to create')
    args = parser.parse_args()
    main(students=args.students)
