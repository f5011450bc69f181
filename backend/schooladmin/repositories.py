"""Repository classes encapsulating database operations.

Each repository is small and focused on a single table (students,
teachers, courses, enrollments). Repositories return SQLModel objects
and perform commits/refreshes where appropriate; mapping database
failures to API errors is left to the services.
"""

import json
import logging
from typing import Any, Iterable, List, Optional, Sequence

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, col, select

from . import models
from .errors import ValidationError
from .utils.codes import CodeFormat

logger = logging.getLogger("schooladmin.repositories")


class EntityRepository:
    """Shared CRUD helpers for tables keyed by an integer `id`."""
    model: Any = None

    def __init__(self, session: Session):
        self.session = session

    def get(self, pk: int, options: Iterable[Any] = ()) -> Optional[Any]:
        """Fetch a row by primary key, applying eager-load `options`."""
        stmt = select(self.model).where(self.model.id == pk).options(*options)
        return self.session.exec(stmt).first()

    def count(self) -> int:
        """Return the number of rows in the table."""
        return self.session.exec(select(func.count()).select_from(self.model)).one()

    def list_page(self, order_by: Sequence[Any], offset: int, limit: int, options: Iterable[Any] = ()) -> List[Any]:
        """Return one page of rows in the given order."""
        stmt = select(self.model).order_by(*order_by).offset(offset).limit(limit).options(*options)
        return list(self.session.exec(stmt).all())

    def save(self, obj: SQLModel) -> SQLModel:
        """Persist pending changes on `obj` and return the refreshed instance."""
        self.session.add(obj)
        self.session.commit()
        self.session.refresh(obj)
        return obj

    def delete(self, obj: SQLModel) -> None:
        self.session.delete(obj)
        self.session.commit()

    def code_exists(self, field: str, value: str) -> bool:
        column = getattr(self.model, field)
        stmt = select(self.model.id).where(column == value)
        return self.session.exec(stmt).first() is not None

    def highest_sequence(self, field: str, fmt: CodeFormat) -> int:
        """Return the largest sequence among stored `field` codes in `fmt`, or 0."""
        column = col(getattr(self.model, field))
        stmt = select(column).where(column.startswith(fmt.prefix, autoescape=True))
        found = [fmt.sequence(code) for code in self.session.exec(stmt).all()]
        return max((seq for seq in found if seq is not None), default=0)

    def create_with_code(self, obj: SQLModel, field: str, fmt: CodeFormat, attempts: int) -> SQLModel:
        """Insert `obj`, generating `field` from the table sequence when unset.

        The first candidate uses `count() + 1`. When the insert fails
        because that code is already taken (rows were deleted, or another
        request won the race) the sequence jumps past the highest code
        already stored and the insert is retried, up to `attempts` times.
        A caller supplied code is never replaced; its conflicts propagate
        as `IntegrityError`.
        """
        generated = getattr(obj, field) is None
        if not generated:
            return self.save(obj)
        seq = self.count() + 1
        for _ in range(attempts):
            code = fmt.render(seq)
            setattr(obj, field, code)
            try:
                return self.save(obj)
            except IntegrityError:
                self.session.rollback()
                if not self.code_exists(field, code):
                    raise
                logger.warning(
                    "code_collision %s",
                    json.dumps({"table": self.model.__tablename__, "field": field, "code": code}, ensure_ascii=True),
                )
                seq = max(seq, self.highest_sequence(field, fmt)) + 1
        raise ValidationError(f"could not allocate a unique {field} after {attempts} attempts")


class StudentRepository(EntityRepository):
    """CRUD operations for `Student` rows."""
    model = models.Student


class TeacherRepository(EntityRepository):
    """CRUD operations for `Teacher` rows."""
    model = models.Teacher


class CourseRepository(EntityRepository):
    """CRUD operations for `Course` rows."""
    model = models.Course

    def count_enrolled(self, course_id: int) -> int:
        """Return how many students currently hold an `enrolled` seat."""
        stmt = select(func.count()).select_from(models.Enrollment).where(
            models.Enrollment.course_id == course_id,
            models.Enrollment.status == models.EnrollmentStatus.enrolled,
        )
        return self.session.exec(stmt).one()


class EnrollmentRepository:
    """Access to the course/student join rows."""
    def __init__(self, session: Session):
        self.session = session

    def get(self, course_id: int, student_id: int) -> Optional[models.Enrollment]:
        return self.session.get(models.Enrollment, {"course_id": course_id, "student_id": student_id})

    def list_for_course(self, course_id: int) -> List[models.Enrollment]:
        stmt = (
            select(models.Enrollment)
            .where(models.Enrollment.course_id == course_id)
            .order_by(col(models.Enrollment.student_id))
        )
        return list(self.session.exec(stmt).all())

    def save(self, enrollment: models.Enrollment) -> models.Enrollment:
        self.session.add(enrollment)
        self.session.commit()
        self.session.refresh(enrollment)
        return enrollment

    def delete(self, enrollment: models.Enrollment) -> None:
        self.session.delete(enrollment)
        self.session.commit()
