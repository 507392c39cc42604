"""Domain exceptions for the Resume API.

Services raise these; ``main`` maps each one to its HTTP status code.
"""
from typing import Optional


class ResumeAPIError(Exception):
    """Base class for errors that surface to the caller with a status code."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ResumeAPIError):
    """Malformed or missing request data that pydantic could not catch."""

    status_code = 422


class NotFoundError(ResumeAPIError):
    status_code = 404


class UnauthorizedError(ResumeAPIError):
    """Bad credentials, bad access token, or a resource owned by someone else."""

    status_code = 401


class ConflictError(ResumeAPIError):
    status_code = 409


class ObjectStoreError(Exception):
    """Raised when the object store rejects or fails a request."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


def first_error_message(errors, prefix: str = "") -> str:
    """Summarize pydantic errors as ``"<field>: <msg>"`` for the first one."""
    if not errors:
        return "Validation failed"
    first = errors[0]
    msg = first.get("msg", "Invalid input")
    # Drop the "body" / "query" segment FastAPI puts in front.
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path", "form")]
    if not loc:
        return msg
    return f"{prefix}{'.'.join(loc)}: {msg}"
