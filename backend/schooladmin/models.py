"""SQLModel data models.

This module defines the database tables for students, teachers, courses
and the course/student enrollment join table using SQLModel. Field
constraints that the database can enforce (lengths, uniqueness,
foreign keys, referential actions) live here; input validation lives in
`schemas`.
"""

import enum
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import JSON, Text
from sqlmodel import SQLModel, Field, Relationship


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StudentStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    graduated = "graduated"
    suspended = "suspended"


class TeacherStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"
    on_leave = "on_leave"
    terminated = "terminated"


class CourseStatus(str, enum.Enum):
    draft = "draft"
    active = "active"
    completed = "completed"
    cancelled = "cancelled"


class CourseLevel(str, enum.Enum):
    beginner = "beginner"
    intermediate = "intermediate"
    advanced = "advanced"


class EnrollmentStatus(str, enum.Enum):
    enrolled = "enrolled"
    completed = "completed"
    dropped = "dropped"
    failed = "failed"


class Enrollment(SQLModel, table=True):
    """A student's enrollment in a course.

    The composite primary key guarantees a (student, course) pair is
    stored at most once. Rows are removed together with either side.
    """
    __tablename__ = "course_students"

    student_id: int = Field(foreign_key="students.id", primary_key=True, ondelete="CASCADE")
    course_id: int = Field(foreign_key="courses.id", primary_key=True, ondelete="CASCADE")
    enrollment_date: date = Field(default_factory=date.today, index=True)
    status: EnrollmentStatus = Field(default=EnrollmentStatus.enrolled, index=True)
    grade: Optional[str] = Field(default=None, max_length=5)
    score: Optional[Decimal] = Field(default=None, max_digits=5, decimal_places=2)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    student: Optional["Student"] = Relationship(back_populates="enrollments")
    course: Optional["Course"] = Relationship(back_populates="enrollments")


class Student(SQLModel, table=True):
    """A student record.

    Fields:
    - `student_id`: registration code, generated as `STU<year><seq>` when
      not supplied on create
    - `enrollment_date`: date the student joined, defaults to creation day
    """
    __tablename__ = "students"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    email: str = Field(max_length=255, unique=True)
    student_id: Optional[str] = Field(default=None, max_length=20, unique=True)
    date_of_birth: Optional[date] = None
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, sa_type=Text)
    enrollment_date: date = Field(default_factory=date.today, index=True)
    status: StudentStatus = Field(default=StudentStatus.active, index=True)
    profile_picture: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    enrollments: List[Enrollment] = Relationship(back_populates="student", cascade_delete=True)


class Teacher(SQLModel, table=True):
    """A member of teaching staff.

    `employee_id` is generated as `EMP<year><seq>` when not supplied.
    Deleting a teacher leaves their courses unassigned.
    """
    __tablename__ = "teachers"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100)
    email: str = Field(max_length=255, unique=True)
    employee_id: Optional[str] = Field(default=None, max_length=20, unique=True)
    department: str = Field(max_length=100, index=True)
    position: Optional[str] = Field(default=None, max_length=100)
    qualifications: Optional[str] = Field(default=None, sa_type=Text)
    specialization: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=20)
    address: Optional[str] = Field(default=None, sa_type=Text)
    date_of_birth: Optional[date] = None
    hire_date: date = Field(default_factory=date.today, index=True)
    salary: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    status: TeacherStatus = Field(default=TeacherStatus.active, index=True)
    profile_picture: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    courses: List["Course"] = Relationship(back_populates="teacher")


class Course(SQLModel, table=True):
    """A course, optionally assigned to one teacher."""
    __tablename__ = "courses"

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str = Field(max_length=200)
    course_code: Optional[str] = Field(default=None, max_length=20, unique=True)
    description: Optional[str] = Field(default=None, sa_type=Text)
    credits: int = 3
    duration: Optional[int] = None  # weeks
    max_students: int = 30
    start_date: Optional[date] = Field(default=None, index=True)
    end_date: Optional[date] = None
    schedule: Optional[dict] = Field(default=None, sa_type=JSON)
    status: CourseStatus = Field(default=CourseStatus.draft, index=True)
    level: CourseLevel = Field(default=CourseLevel.beginner, index=True)
    prerequisites: Optional[str] = Field(default=None, sa_type=Text)
    syllabus: Optional[str] = Field(default=None, sa_type=Text)
    department: Optional[str] = Field(default=None, max_length=100, index=True)
    room: Optional[str] = Field(default=None, max_length=50)
    teacher_id: Optional[int] = Field(default=None, foreign_key="teachers.id", index=True, ondelete="SET NULL")
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    teacher: Optional[Teacher] = Relationship(back_populates="courses")
    enrollments: List[Enrollment] = Relationship(back_populates="course", cascade_delete=True)
