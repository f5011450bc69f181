import threading
from datetime import date

import pytest
from sqlmodel import SQLModel, Session, create_engine, select
from sqlalchemy.pool import StaticPool

from schooladmin import models
from schooladmin.database import _engine_kwargs
from schooladmin.errors import ValidationError
from schooladmin.repositories import StudentRepository
from schooladmin.utils.codes import CodeFormat, course_codes, employee_codes, student_codes

YEAR = date.today().year


def test_code_formats():
    assert student_codes(2024).render(1) == "STU20240001"
    assert employee_codes(2023).render(42) == "EMP20230042"
    assert student_codes().render(7) == f"STU{YEAR}0007"


def test_course_code_prefix():
    assert course_codes("Computer Science").render(1) == "COM001"
    assert course_codes(" math").render(12) == "MAT012"
    assert course_codes(None).render(3) == "GEN003"
    assert course_codes("   ").render(3) == "GEN003"


def test_sequence_read_back():
    fmt = CodeFormat("STU2024", 4)
    assert fmt.sequence("STU20240042") == 42
    assert fmt.sequence("STU202410000") == 10000
    assert fmt.sequence("EMP20240042") is None
    assert fmt.sequence("STU2024ABCD") is None


def test_generated_code_skips_taken_sequence(session):
    repo = StudentRepository(session)
    first = repo.create_with_code(models.Student(name="Ann", email="ann@x.com"), "student_id", student_codes(), 5)
    second = repo.create_with_code(models.Student(name="Ben", email="ben@x.com"), "student_id", student_codes(), 5)
    assert first.student_id == f"STU{YEAR}0001"
    assert second.student_id == f"STU{YEAR}0002"

    repo.delete(first)
    # count() + 1 now points at the code `second` already holds
    third = repo.create_with_code(models.Student(name="Cat", email="cat@x.com"), "student_id", student_codes(), 5)
    assert third.student_id == f"STU{YEAR}0003"


def test_generated_code_jumps_past_highest(session):
    repo = StudentRepository(session)
    rows = [
        repo.create_with_code(models.Student(name=f"S{i}", email=f"s{i}@x.com"), "student_id", student_codes(), 5)
        for i in range(10)
    ]
    for row in rows[:5]:
        repo.delete(row)

    # five candidates (6..10) are all taken, yet a single retry is enough
    s = repo.create_with_code(models.Student(name="New", email="new@x.com"), "student_id", student_codes(), 2)
    assert s.student_id == f"STU{YEAR}0011"


def test_allocation_gives_up_after_attempts(session):
    repo = StudentRepository(session)
    first = repo.create_with_code(models.Student(name="Ann", email="ann@x.com"), "student_id", student_codes(), 5)
    repo.create_with_code(models.Student(name="Ben", email="ben@x.com"), "student_id", student_codes(), 5)
    repo.delete(first)

    with pytest.raises(ValidationError) as exc:
        repo.create_with_code(models.Student(name="Cat", email="cat@x.com"), "student_id", student_codes(), 1)
    assert exc.value.message == "could not allocate a unique student_id after 1 attempts"
    assert repo.count() == 1


def test_supplied_code_is_kept(session):
    repo = StudentRepository(session)
    s = repo.create_with_code(
        models.Student(name="Dee", email="dee@x.com", student_id="CUSTOM1"), "student_id", student_codes(), 5
    )
    assert s.student_id == "CUSTOM1"


@pytest.mark.parametrize("url", ["sqlite://", "sqlite:///:memory:"])
def test_in_memory_database_is_shared_across_threads(url):
    kwargs = _engine_kwargs(url)
    assert kwargs["poolclass"] is StaticPool
    memory_engine = create_engine(url, **kwargs)
    SQLModel.metadata.create_all(memory_engine)

    def insert():
        with Session(memory_engine) as s:
            StudentRepository(s).create_with_code(
                models.Student(name="Eve", email="eve@x.com"), "student_id", student_codes(), 5
            )

    worker = threading.Thread(target=insert)
    worker.start()
    worker.join()

    with Session(memory_engine) as s:
        assert [st.name for st in s.exec(select(models.Student)).all()] == ["Eve"]
    memory_engine.dispose()
