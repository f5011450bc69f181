"""Error types raised by services and translated to HTTP responses.

Every error carries the HTTP status it maps to so the exception
handlers in `main` stay a single lookup.
"""

from typing import Any, List, Optional


class SchoolAdminError(Exception):
    """Base class for errors surfaced to API clients."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchoolAdminError):
    """Malformed or out-of-range input, or a violated schema constraint."""
    status_code = 400

    def __init__(self, message: str, details: Optional[List[Any]] = None):
        super().__init__(message)
        self.details = details


class NotFoundError(SchoolAdminError):
    """No record matches the requested identifier."""
    status_code = 404

    @classmethod
    def for_entity(cls, entity: str) -> "NotFoundError":
        return cls(f"{entity} not found")


class ResourceExhaustedError(SchoolAdminError):
    """A database connection could not be acquired within the pool timeout."""
    status_code = 503


class InternalError(SchoolAdminError):
    """Unexpected persistence failure."""
    status_code = 500


def summarize(details: List[Any]) -> str:
    """Render a pydantic style error list as one readable message.

    Location prefixes added by FastAPI (`body`, `query`, `path`) are
    dropped so request and service validation read the same.
    """
    parts = []
    for item in details:
        loc = [str(p) for p in item.get("loc", ()) if p not in ("body", "query", "path")]
        msg = item.get("msg", "invalid value")
        parts.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return "; ".join(parts) or "invalid request"
