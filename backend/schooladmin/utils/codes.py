"""Formatting of generated record codes.

Codes are a fixed prefix followed by a zero padded sequence number
supplied by the repository layer. A `CodeFormat` renders a sequence
into a code and reads the sequence back out of an existing one.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass(frozen=True)
class CodeFormat:
    prefix: str
    width: int

    def render(self, seq: int) -> str:
        return f"{self.prefix}{seq:0{self.width}d}"

    def sequence(self, code: str) -> Optional[int]:
        """Return the sequence number of `code`, or None if it is not ours."""
        if not code.startswith(self.prefix):
            return None
        digits = code[len(self.prefix):]
        if not (digits.isascii() and digits.isdigit()):
            return None
        return int(digits)


def _year(year: Optional[int]) -> int:
    return year if year is not None else date.today().year


def student_codes(year: Optional[int] = None) -> CodeFormat:
    """Student registration codes such as `STU20250001`."""
    return CodeFormat(f"STU{_year(year)}", 4)


def employee_codes(year: Optional[int] = None) -> CodeFormat:
    """Teacher employee codes such as `EMP20250001`."""
    return CodeFormat(f"EMP{_year(year)}", 4)


def course_codes(department: Optional[str] = None) -> CodeFormat:
    """Course codes are prefixed by the department, e.g. `COM001`.

    Courses without a department use the `GEN` prefix.
    """
    dept = (department or "").strip()
    return CodeFormat(dept[:3].upper() if dept else "GEN", 3)
