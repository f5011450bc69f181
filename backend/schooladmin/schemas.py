"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and hold the field level
validation rules for each entity. Python attributes are snake_case;
JSON payloads use camelCase keys (`studentId`, `dateOfBirth`, ...).
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Annotated, Any, ClassVar, Dict, Optional, Tuple, Type

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    TypeAdapter,
    ValidationError as PydanticValidationError,
    model_validator,
)
from pydantic.alias_generators import to_camel

from .models import CourseLevel, CourseStatus, EnrollmentStatus, StudentStatus, TeacherStatus

PHONE_PATTERN = r"^\+?[0-9\s()-]+$"
_URL_ADAPTER = TypeAdapter(HttpUrl)


def _before_today(value: date) -> date:
    if value >= date.today():
        raise ValueError("date of birth must be before today")
    return value


def _valid_url(value: str) -> str:
    try:
        _URL_ADAPTER.validate_python(value)
    except PydanticValidationError:
        raise ValueError("must be a valid URL")
    return value


PersonName = Annotated[str, Field(min_length=2, max_length=100)]
Email = EmailStr
Code = Annotated[str, Field(min_length=1, max_length=20)]
Phone = Annotated[str, Field(max_length=20, pattern=PHONE_PATTERN)]
BirthDate = Annotated[date, AfterValidator(_before_today)]
PictureUrl = Annotated[str, Field(max_length=500), AfterValidator(_valid_url)]
Department = Annotated[str, Field(min_length=2, max_length=100)]
Salary = Annotated[Decimal, Field(ge=0, max_digits=10, decimal_places=2)]
Score = Annotated[Decimal, Field(ge=0, le=100, max_digits=5, decimal_places=2)]
CourseTitle = Annotated[str, Field(min_length=3, max_length=200)]
Credits = Annotated[int, Field(ge=1, le=10)]
Positive = Annotated[int, Field(ge=1)]
Grade = Annotated[str, Field(max_length=5)]


class CamelModel(BaseModel):
    """Base schema: snake_case attributes, camelCase JSON keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PartialUpdate(CamelModel):
    """Base for update payloads where every field is optional.

    Only the keys present in the request are applied. Columns listed in
    `required_fields` may be omitted but not set to null.
    """
    required_fields: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_null_required(self):
        for name in self.required_fields:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


# Students

class StudentCreate(CamelModel):
    name: PersonName
    email: Email
    student_id: Optional[Code] = None
    date_of_birth: Optional[BirthDate] = None
    phone: Optional[Phone] = None
    address: Optional[str] = None
    enrollment_date: Optional[date] = None
    status: StudentStatus = StudentStatus.active
    profile_picture: Optional[PictureUrl] = None


class StudentUpdate(PartialUpdate):
    required_fields: ClassVar[Tuple[str, ...]] = ("name", "email", "enrollment_date", "status")

    name: Optional[PersonName] = None
    email: Optional[Email] = None
    student_id: Optional[Code] = None
    date_of_birth: Optional[BirthDate] = None
    phone: Optional[Phone] = None
    address: Optional[str] = None
    enrollment_date: Optional[date] = None
    status: Optional[StudentStatus] = None
    profile_picture: Optional[PictureUrl] = None


# Teachers

class TeacherCreate(CamelModel):
    name: PersonName
    email: Email
    employee_id: Optional[Code] = None
    department: Department
    position: Optional[str] = Field(default=None, max_length=100)
    qualifications: Optional[str] = None
    specialization: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[Phone] = None
    address: Optional[str] = None
    date_of_birth: Optional[BirthDate] = None
    hire_date: Optional[date] = None
    salary: Optional[Salary] = None
    status: TeacherStatus = TeacherStatus.active
    profile_picture: Optional[PictureUrl] = None


class TeacherUpdate(PartialUpdate):
    required_fields: ClassVar[Tuple[str, ...]] = ("name", "email", "department", "hire_date", "status")

    name: Optional[PersonName] = None
    email: Optional[Email] = None
    employee_id: Optional[Code] = None
    department: Optional[Department] = None
    position: Optional[str] = Field(default=None, max_length=100)
    qualifications: Optional[str] = None
    specialization: Optional[str] = Field(default=None, max_length=200)
    phone: Optional[Phone] = None
    address: Optional[str] = None
    date_of_birth: Optional[BirthDate] = None
    hire_date: Optional[date] = None
    salary: Optional[Salary] = None
    status: Optional[TeacherStatus] = None
    profile_picture: Optional[PictureUrl] = None


# Courses

class CourseCreate(CamelModel):
    title: CourseTitle
    course_code: Optional[Code] = None
    description: Optional[str] = None
    credits: Credits = 3
    duration: Optional[Positive] = None
    max_students: Positive = 30
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    schedule: Optional[Dict[str, Any]] = None
    status: CourseStatus = CourseStatus.draft
    level: CourseLevel = CourseLevel.beginner
    prerequisites: Optional[str] = None
    syllabus: Optional[str] = None
    department: Optional[str] = Field(default=None, max_length=100)
    room: Optional[str] = Field(default=None, max_length=50)
    teacher_id: Optional[int] = None

    @model_validator(mode="after")
    def check_dates(self):
        check_course_dates(self.start_date, self.end_date)
        return self


class CourseUpdate(PartialUpdate):
    required_fields: ClassVar[Tuple[str, ...]] = ("title", "credits", "max_students", "status", "level")

    title: Optional[CourseTitle] = None
    course_code: Optional[Code] = None
    description: Optional[str] = None
    credits: Optional[Credits] = None
    duration: Optional[Positive] = None
    max_students: Optional[Positive] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    schedule: Optional[Dict[str, Any]] = None
    status: Optional[CourseStatus] = None
    level: Optional[CourseLevel] = None
    prerequisites: Optional[str] = None
    syllabus: Optional[str] = None
    department: Optional[str] = Field(default=None, max_length=100)
    room: Optional[str] = Field(default=None, max_length=50)
    teacher_id: Optional[int] = None


def check_course_dates(start: Optional[date], end: Optional[date]) -> None:
    """Raise `ValueError` unless `end` falls strictly after `start`."""
    if start is not None and end is not None and end <= start:
        raise ValueError("End date must be after start date")


# Enrollments

class EnrollmentCreate(CamelModel):
    enrollment_date: Optional[date] = None
    status: EnrollmentStatus = EnrollmentStatus.enrolled
    grade: Optional[Grade] = None
    score: Optional[Score] = None


class EnrollmentUpdate(PartialUpdate):
    required_fields: ClassVar[Tuple[str, ...]] = ("enrollment_date", "status")

    enrollment_date: Optional[date] = None
    status: Optional[EnrollmentStatus] = None
    grade: Optional[Grade] = None
    score: Optional[Score] = None


# Responses

class ReadModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class StudentRead(ReadModel):
    id: int
    name: str
    email: str
    student_id: Optional[str]
    date_of_birth: Optional[date]
    phone: Optional[str]
    address: Optional[str]
    enrollment_date: date
    status: StudentStatus
    profile_picture: Optional[str]
    created_at: datetime
    updated_at: datetime


class TeacherRead(ReadModel):
    id: int
    name: str
    email: str
    employee_id: Optional[str]
    department: str
    position: Optional[str]
    qualifications: Optional[str]
    specialization: Optional[str]
    phone: Optional[str]
    address: Optional[str]
    date_of_birth: Optional[date]
    hire_date: date
    salary: Optional[float]
    status: TeacherStatus
    profile_picture: Optional[str]
    created_at: datetime
    updated_at: datetime


class CourseRead(ReadModel):
    id: int
    title: str
    course_code: Optional[str]
    description: Optional[str]
    credits: int
    duration: Optional[int]
    max_students: int
    start_date: Optional[date]
    end_date: Optional[date]
    schedule: Optional[Dict[str, Any]]
    status: CourseStatus
    level: CourseLevel
    prerequisites: Optional[str]
    syllabus: Optional[str]
    department: Optional[str]
    room: Optional[str]
    teacher_id: Optional[int]
    created_at: datetime
    updated_at: datetime


class EnrollmentInfo(ReadModel):
    """Enrollment metadata attached to populated students/courses."""
    enrollment_date: date
    status: EnrollmentStatus
    grade: Optional[str]
    score: Optional[float]


class EnrollmentRead(EnrollmentInfo):
    student_id: int
    course_id: int
    created_at: datetime
    updated_at: datetime


class CourseSummary(ReadModel):
    id: int
    title: str
    description: Optional[str]


class StudentSummary(ReadModel):
    id: int
    name: str
    email: str
    student_id: Optional[str]
    status: StudentStatus


class TeacherSummary(ReadModel):
    id: int
    name: str
    email: str
    employee_id: Optional[str]
    department: str


def dump(schema: Type[ReadModel], obj: Any) -> Dict[str, Any]:
    """Serialize an ORM object through `schema` into a JSON-ready dict."""
    return schema.model_validate(obj).model_dump(mode="json", by_alias=True)
