"""FastAPI application entrypoint and HTTP controllers.

This module defines the HTTP endpoints of the school records admin
backend. Controllers are intentionally thin: they accept requests,
delegate to services, and return JSON responses. Service errors are
turned into JSON bodies by the exception handlers registered here.

Endpoints implemented:
- POST /students, GET /students, GET|PUT|DELETE /students/{id}
- POST /teachers, GET /teachers, GET|PUT|DELETE /teachers/{id}
- POST /courses, GET /courses, GET|PUT|DELETE /courses/{id}
- GET /courses/{id}/students
- POST|GET|PUT|DELETE /courses/{id}/students/{student_id}
- GET /health
"""

import json
import logging
import time
import uuid
from typing import Any, Dict, Optional

from fastapi import Body, Depends, FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlmodel import Session

from . import errors, schemas, services
from .config import settings
from .database import create_db_and_tables, get_session

app = FastAPI(title="School Records Admin API")
logger = logging.getLogger("schooladmin.api")
if not logging.getLogger().handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

# Wide-open CORS keeps local admin frontends working without extra config in dev.
if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


def _client(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                    "client": _client(request),
                },
                ensure_ascii=True,
            ),
        )
        raise
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    logger.info(
        "request_done %s",
        json.dumps(
            {
                "request_id": req_id,
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
                "client": _client(request),
            },
            ensure_ascii=True,
        ),
    )
    return response


@app.exception_handler(errors.SchoolAdminError)
async def school_admin_error_handler(request: Request, exc: errors.SchoolAdminError):
    """Render service errors: 404 as `{message}`, everything else as `{error}`."""
    if isinstance(exc, errors.NotFoundError):
        content: Dict[str, Any] = {"message": exc.message}
    else:
        content = {"error": exc.message}
        details = getattr(exc, "details", None)
        if details:
            content["details"] = jsonable_encoder(details)
    if exc.status_code >= 500:
        logger.error("request_error %s %s: %s", request.method, request.url.path, exc.message, exc_info=exc)
    else:
        logger.warning("request_rejected %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """Report malformed bodies and path values as 400 validation errors."""
    details = jsonable_encoder(exc.errors())
    message = errors.summarize(details)
    logger.warning("request_rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content={"error": message, "details": details})


def list_params(
    limit: Optional[str] = None,
    page: Optional[str] = None,
    sort: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    populate: Optional[str] = None,
) -> Dict[str, Optional[str]]:
    """Collect raw list query parameters; services validate them."""
    return {"limit": limit, "page": page, "sort": sort, "sort_by": sort_by, "populate": populate}


# Students

@app.post('/students', status_code=201)
def create_student(payload: schemas.StudentCreate, db: Session = Depends(get_session)):
    """Create a student; `studentId` is generated when omitted."""
    return services.StudentService(db).create(payload)


@app.get('/students')
def list_students(params: Dict[str, Optional[str]] = Depends(list_params), db: Session = Depends(get_session)):
    """List students with pagination, sorting and optional `populate=courses`."""
    return services.StudentService(db).list(**params)


@app.get('/students/{student_id}')
def get_student(student_id: int, populate: Optional[str] = None, db: Session = Depends(get_session)):
    return services.StudentService(db).get(student_id, populate=populate)


@app.put('/students/{student_id}')
def update_student(student_id: int, payload: Any = Body(...), db: Session = Depends(get_session)):
    """Apply a partial update; only the supplied fields change."""
    return services.StudentService(db).update(student_id, payload)


@app.delete('/students/{student_id}')
def delete_student(student_id: int, db: Session = Depends(get_session)):
    """Delete a student together with their enrollments."""
    return services.StudentService(db).delete(student_id)


# Teachers

@app.post('/teachers', status_code=201)
def create_teacher(payload: schemas.TeacherCreate, db: Session = Depends(get_session)):
    """Create a teacher; `employeeId` is generated when omitted."""
    return services.TeacherService(db).create(payload)


@app.get('/teachers')
def list_teachers(params: Dict[str, Optional[str]] = Depends(list_params), db: Session = Depends(get_session)):
    """List teachers with pagination, sorting and optional `populate=courses`."""
    return services.TeacherService(db).list(**params)


@app.get('/teachers/{teacher_id}')
def get_teacher(teacher_id: int, populate: Optional[str] = None, db: Session = Depends(get_session)):
    return services.TeacherService(db).get(teacher_id, populate=populate)


@app.put('/teachers/{teacher_id}')
def update_teacher(teacher_id: int, payload: Any = Body(...), db: Session = Depends(get_session)):
    return services.TeacherService(db).update(teacher_id, payload)


@app.delete('/teachers/{teacher_id}')
def delete_teacher(teacher_id: int, db: Session = Depends(get_session)):
    """Delete a teacher; their courses stay but become unassigned."""
    return services.TeacherService(db).delete(teacher_id)


# Courses

@app.post('/courses', status_code=201)
def create_course(payload: schemas.CourseCreate, db: Session = Depends(get_session)):
    """Create a course; `courseCode` is generated from the department when omitted."""
    return services.CourseService(db).create(payload)


@app.get('/courses')
def list_courses(params: Dict[str, Optional[str]] = Depends(list_params), db: Session = Depends(get_session)):
    """List courses; `populate` accepts `teacher`, `students` or `all`."""
    return services.CourseService(db).list(**params)


@app.get('/courses/{course_id}')
def get_course(course_id: int, populate: Optional[str] = None, db: Session = Depends(get_session)):
    return services.CourseService(db).get(course_id, populate=populate)


@app.put('/courses/{course_id}')
def update_course(course_id: int, payload: Any = Body(...), db: Session = Depends(get_session)):
    return services.CourseService(db).update(course_id, payload)


@app.delete('/courses/{course_id}')
def delete_course(course_id: int, db: Session = Depends(get_session)):
    """Delete a course together with its enrollments."""
    return services.CourseService(db).delete(course_id)


# Enrollments

@app.get('/courses/{course_id}/students')
def list_enrollments(course_id: int, db: Session = Depends(get_session)):
    """List the enrollment rows of a course."""
    return services.EnrollmentService(db).list_for_course(course_id)


@app.post('/courses/{course_id}/students/{student_id}', status_code=201)
def enroll_student(
    course_id: int,
    student_id: int,
    payload: Optional[schemas.EnrollmentCreate] = Body(None),
    db: Session = Depends(get_session),
):
    """Enroll a student in a course; the body is optional."""
    return services.EnrollmentService(db).enroll(course_id, student_id, payload or schemas.EnrollmentCreate())


@app.get('/courses/{course_id}/students/{student_id}')
def get_enrollment(course_id: int, student_id: int, db: Session = Depends(get_session)):
    return services.EnrollmentService(db).get(course_id, student_id)


@app.put('/courses/{course_id}/students/{student_id}')
def update_enrollment(course_id: int, student_id: int, payload: Any = Body(...), db: Session = Depends(get_session)):
    """Update enrollment status, grade, score or date."""
    return services.EnrollmentService(db).update(course_id, student_id, payload)


@app.delete('/courses/{course_id}/students/{student_id}')
def delete_enrollment(course_id: int, student_id: int, db: Session = Depends(get_session)):
    return services.EnrollmentService(db).delete(course_id, student_id)


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
