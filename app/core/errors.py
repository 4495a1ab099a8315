"""Not-found errors for the report endpoints.

A report request posts a whole gradebook and then names one student or one
subject inside it.  When that id is missing, the route answers 404 with a
stable code next to the human-readable message, e.g.

    {"detail": "Subject latin is not part of this gradebook",
     "error_code": "SUBJECT_NOT_FOUND"}

so dashboards can branch on ``error_code`` without parsing ``detail``.
Bad score rows never end up here: ingest drops them and the engine degrades
to None / "N/A".
"""

from fastapi import HTTPException
from fastapi.responses import JSONResponse


STUDENT_NOT_FOUND = "STUDENT_NOT_FOUND"
SUBJECT_NOT_FOUND = "SUBJECT_NOT_FOUND"


class GradingHTTPException(HTTPException):
    """HTTPException tagged with one of the codes above."""

    def __init__(self, status_code: int, detail: str, error_code: str):
        super().__init__(status_code=status_code, detail=detail)
        self.error_code = error_code


def raise_with_error_code(
    status_code: int,
    detail: str,
    error_code: str,
) -> None:
    raise GradingHTTPException(
        status_code=status_code,
        detail=detail,
        error_code=error_code,
    )


def grading_exception_handler(_request, exc: GradingHTTPException):
    """Render ``detail`` and ``error_code`` side by side."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error_code": exc.error_code},
    )
