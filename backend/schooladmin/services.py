"""Business logic services used by HTTP controllers.

This module holds one service per resource (students, teachers,
courses) plus the enrollment service. Services validate input, shape
list queries (pagination, sorting, eager loading), run the pre-persist
steps (generated codes, cross-field checks) and persist through the
repositories. Database failures are translated into the error types in
`errors`.
"""

import json
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Type

from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import selectinload
from sqlmodel import Session, col

from . import models, repositories, schemas
from .config import settings
from .errors import InternalError, NotFoundError, ResourceExhaustedError, ValidationError, summarize
from .utils import codes
from .utils.query_params import ListQuery, page_meta, parse_list_query

logger = logging.getLogger("schooladmin.services")


def _log_event(event: str, **fields: Any) -> None:
    logger.info("%s %s", event, json.dumps(fields, ensure_ascii=True, default=str))


def validate_payload(schema: Type[BaseModel], payload: Any) -> Any:
    """Validate a raw JSON payload against `schema`.

    Raises `ValidationError` carrying the pydantic error list.
    """
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as e:
        details = e.errors(include_url=False, include_context=False)
        raise ValidationError(summarize(details), details=details)


class BaseService:
    """Session holder with the shared persistence error mapping."""

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def persistence(self):
        """Map SQLAlchemy failures raised inside the block to API errors."""
        try:
            yield
        except IntegrityError as e:
            self.session.rollback()
            raise ValidationError(str(e.orig)) from e
        except PoolTimeoutError as e:
            raise ResourceExhaustedError(f"database connection unavailable: {e}") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            raise InternalError(str(e)) from e


class ResourceService(BaseService):
    """Create/list/get/update/delete for one top-level resource.

    Subclasses describe the resource: its model and repository, the
    schemas for updates and responses, the whitelisted sort fields
    (JSON name -> model attribute) and the populate tags with the
    loader options each one adds.
    """
    entity = "Record"
    repository_cls: Type[repositories.EntityRepository] = repositories.EntityRepository
    update_schema: Type[schemas.PartialUpdate] = schemas.PartialUpdate
    read_schema: Type[schemas.ReadModel] = schemas.ReadModel
    sort_fields: Dict[str, str] = {}
    populate_loaders: Dict[str, Callable[[], Any]] = {}

    def __init__(self, session: Session):
        super().__init__(session)
        self.repo = self.repository_cls(session)

    # queries

    def parse_query(self, **params: Optional[str]) -> ListQuery:
        return parse_list_query(
            **params,
            sort_fields=self.sort_fields,
            populate_tags=self.populate_loaders,
            default_sort=settings.DEFAULT_SORT,
        )

    def load_options(self, populate: Iterable[str]) -> List[Any]:
        return [self.populate_loaders[tag]() for tag in sorted(populate)]

    def order_by(self, query: ListQuery) -> List[Any]:
        column = col(getattr(self.repo.model, self.sort_fields[query.sort_by]))
        primary = column.desc() if query.descending else column.asc()
        return [primary, col(self.repo.model.id).asc()]

    def list(self, **params: Optional[str]) -> Dict[str, Any]:
        """Return one page of records wrapped in the `{meta, data}` envelope.

        Parameters are validated before any query runs.
        """
        query = self.parse_query(**params)
        with self.persistence():
            total = self.repo.count()
            rows = self.repo.list_page(
                order_by=self.order_by(query),
                offset=query.offset,
                limit=query.limit,
                options=self.load_options(query.populate),
            )
            data = [self.present(row, query.populate) for row in rows]
        return {"meta": page_meta(total, query), "data": data}

    def get(self, pk: int, populate: Optional[str] = None) -> Dict[str, Any]:
        tags = self.parse_query(populate=populate).populate
        with self.persistence():
            obj = self.repo.get(pk, options=self.load_options(tags))
            if obj is None:
                raise NotFoundError.for_entity(self.entity)
            return self.present(obj, tags)

    # writes

    def _get_or_404(self, pk: int) -> Any:
        obj = self.repo.get(pk)
        if obj is None:
            raise NotFoundError.for_entity(self.entity)
        return obj

    def before_update(self, obj: Any, changes: Dict[str, Any]) -> None:
        """Hook for checks against the record merged with `changes`.

        Runs before anything is applied to `obj`.
        """

    def update(self, pk: int, payload: Any) -> Dict[str, Any]:
        """Apply the supplied fields of `payload` to record `pk`.

        The record is looked up first so an unknown id is reported as
        not found regardless of the payload.
        """
        with self.persistence():
            obj = self._get_or_404(pk)
            changes = validate_payload(self.update_schema, payload).changes()
            self.before_update(obj, changes)
            for name, value in changes.items():
                setattr(obj, name, value)
            obj.updated_at = models.utcnow()
            self.repo.save(obj)
            _log_event("updated", entity=self.entity, id=pk, fields=sorted(changes))
            return self.present(obj, frozenset())

    def delete(self, pk: int) -> Dict[str, str]:
        with self.persistence():
            obj = self._get_or_404(pk)
            self.repo.delete(obj)
        _log_event("deleted", entity=self.entity, id=pk)
        return {"message": f"{self.entity} deleted successfully"}

    def _insert(self, obj: Any, code_field: str, fmt: codes.CodeFormat) -> Dict[str, Any]:
        with self.persistence():
            self.repo.create_with_code(obj, code_field, fmt, settings.CODE_ALLOCATION_ATTEMPTS)
            _log_event("created", entity=self.entity, id=obj.id, code=getattr(obj, code_field))
            return self.present(obj, frozenset())

    def present(self, obj: Any, populate: FrozenSet[str]) -> Dict[str, Any]:
        return schemas.dump(self.read_schema, obj)


def _with_enrollment(summary: Dict[str, Any], enrollment: models.Enrollment) -> Dict[str, Any]:
    summary["enrollment"] = schemas.dump(schemas.EnrollmentInfo, enrollment)
    return summary


class StudentService(ResourceService):
    """Student records; `populate=courses` attaches enrolled courses."""
    entity = "Student"
    repository_cls = repositories.StudentRepository
    update_schema = schemas.StudentUpdate
    read_schema = schemas.StudentRead
    sort_fields = {
        "id": "id",
        "name": "name",
        "email": "email",
        "studentId": "student_id",
        "enrollmentDate": "enrollment_date",
        "status": "status",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }
    populate_loaders = {
        "courses": lambda: selectinload(models.Student.enrollments).selectinload(models.Enrollment.course),
    }

    def create(self, payload: schemas.StudentCreate) -> Dict[str, Any]:
        student = models.Student(**payload.model_dump(exclude_none=True))
        return self._insert(student, "student_id", codes.student_codes())

    def present(self, obj: models.Student, populate: FrozenSet[str]) -> Dict[str, Any]:
        data = schemas.dump(schemas.StudentRead, obj)
        if "courses" in populate:
            data["courses"] = [
                _with_enrollment(schemas.dump(schemas.CourseSummary, e.course), e)
                for e in obj.enrollments
            ]
        return data


class TeacherService(ResourceService):
    """Teaching staff; `populate=courses` attaches a narrow course list."""
    entity = "Teacher"
    repository_cls = repositories.TeacherRepository
    update_schema = schemas.TeacherUpdate
    read_schema = schemas.TeacherRead
    sort_fields = {
        "id": "id",
        "name": "name",
        "department": "department",
        "employeeId": "employee_id",
        "hireDate": "hire_date",
        "status": "status",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }
    populate_loaders = {
        "courses": lambda: selectinload(models.Teacher.courses).load_only(
            models.Course.id, models.Course.title, models.Course.description
        ),
    }

    def create(self, payload: schemas.TeacherCreate) -> Dict[str, Any]:
        teacher = models.Teacher(**payload.model_dump(exclude_none=True))
        return self._insert(teacher, "employee_id", codes.employee_codes())

    def present(self, obj: models.Teacher, populate: FrozenSet[str]) -> Dict[str, Any]:
        data = schemas.dump(schemas.TeacherRead, obj)
        if "courses" in populate:
            data["courses"] = [schemas.dump(schemas.CourseSummary, c) for c in obj.courses]
        return data


class CourseService(ResourceService):
    """Courses; `populate` accepts `teacher` and `students`."""
    entity = "Course"
    repository_cls = repositories.CourseRepository
    update_schema = schemas.CourseUpdate
    read_schema = schemas.CourseRead
    sort_fields = {
        "id": "id",
        "title": "title",
        "courseCode": "course_code",
        "credits": "credits",
        "startDate": "start_date",
        "status": "status",
        "level": "level",
        "department": "department",
        "createdAt": "created_at",
        "updatedAt": "updated_at",
    }
    populate_loaders = {
        "teacher": lambda: selectinload(models.Course.teacher),
        "students": lambda: selectinload(models.Course.enrollments).selectinload(models.Enrollment.student),
    }

    def _check_teacher(self, teacher_id: Optional[int]) -> None:
        if teacher_id is not None and self.session.get(models.Teacher, teacher_id) is None:
            raise ValidationError(f"Teacher {teacher_id} does not exist")

    def create(self, payload: schemas.CourseCreate) -> Dict[str, Any]:
        course = models.Course(**payload.model_dump(exclude_none=True))
        with self.persistence():
            self._check_teacher(course.teacher_id)
        return self._insert(course, "course_code", codes.course_codes(course.department))

    def before_update(self, obj: models.Course, changes: Dict[str, Any]) -> None:
        start = changes.get("start_date", obj.start_date)
        end = changes.get("end_date", obj.end_date)
        try:
            schemas.check_course_dates(start, end)
        except ValueError as e:
            raise ValidationError(str(e))
        if "teacher_id" in changes:
            self._check_teacher(changes["teacher_id"])

    def present(self, obj: models.Course, populate: FrozenSet[str]) -> Dict[str, Any]:
        data = schemas.dump(schemas.CourseRead, obj)
        if "teacher" in populate:
            data["teacher"] = schemas.dump(schemas.TeacherSummary, obj.teacher) if obj.teacher else None
        if "students" in populate:
            data["students"] = [
                _with_enrollment(schemas.dump(schemas.StudentSummary, e.student), e)
                for e in obj.enrollments
            ]
        return data


class EnrollmentService(BaseService):
    """Enroll students into courses and maintain enrollment metadata."""

    def __init__(self, session: Session):
        super().__init__(session)
        self.repo = repositories.EnrollmentRepository(session)
        self.courses = repositories.CourseRepository(session)
        self.students = repositories.StudentRepository(session)

    def _course_or_404(self, course_id: int) -> models.Course:
        course = self.courses.get(course_id)
        if course is None:
            raise NotFoundError.for_entity("Course")
        return course

    def _enrollment_or_404(self, course_id: int, student_id: int) -> models.Enrollment:
        enrollment = self.repo.get(course_id, student_id)
        if enrollment is None:
            raise NotFoundError.for_entity("Enrollment")
        return enrollment

    def _check_capacity(self, course: models.Course) -> None:
        if self.courses.count_enrolled(course.id) >= course.max_students:
            raise ValidationError("Course is full")

    def enroll(self, course_id: int, student_id: int, payload: schemas.EnrollmentCreate) -> Dict[str, Any]:
        """Create the enrollment of `student_id` in `course_id`.

        A pair can be enrolled once; seats are limited by the course's
        `max_students` counting only `enrolled` rows.
        """
        with self.persistence():
            course = self._course_or_404(course_id)
            if self.students.get(student_id) is None:
                raise NotFoundError.for_entity("Student")
            if self.repo.get(course_id, student_id) is not None:
                raise ValidationError("Student is already enrolled in this course")
            if payload.status == models.EnrollmentStatus.enrolled:
                self._check_capacity(course)
            enrollment = models.Enrollment(
                course_id=course_id, student_id=student_id, **payload.model_dump(exclude_none=True)
            )
            self.repo.save(enrollment)
            _log_event("enrolled", course_id=course_id, student_id=student_id, status=enrollment.status.value)
            return schemas.dump(schemas.EnrollmentRead, enrollment)

    def list_for_course(self, course_id: int) -> List[Dict[str, Any]]:
        with self.persistence():
            self._course_or_404(course_id)
            return [schemas.dump(schemas.EnrollmentRead, e) for e in self.repo.list_for_course(course_id)]

    def get(self, course_id: int, student_id: int) -> Dict[str, Any]:
        with self.persistence():
            return schemas.dump(schemas.EnrollmentRead, self._enrollment_or_404(course_id, student_id))

    def update(self, course_id: int, student_id: int, payload: Any) -> Dict[str, Any]:
        with self.persistence():
            enrollment = self._enrollment_or_404(course_id, student_id)
            changes = validate_payload(schemas.EnrollmentUpdate, payload).changes()
            rejoining = (
                changes.get("status") == models.EnrollmentStatus.enrolled
                and enrollment.status != models.EnrollmentStatus.enrolled
            )
            if rejoining:
                self._check_capacity(self._course_or_404(course_id))
            for name, value in changes.items():
                setattr(enrollment, name, value)
            enrollment.updated_at = models.utcnow()
            self.repo.save(enrollment)
            _log_event("enrollment_updated", course_id=course_id, student_id=student_id, fields=sorted(changes))
            return schemas.dump(schemas.EnrollmentRead, enrollment)

    def delete(self, course_id: int, student_id: int) -> Dict[str, str]:
        with self.persistence():
            self.repo.delete(self._enrollment_or_404(course_id, student_id))
        _log_event("unenrolled", course_id=course_id, student_id=student_id)
        return {"message": "Enrollment deleted successfully"}
