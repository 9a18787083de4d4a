# backend/core/errors.py
"""
Error kinds surfaced by the interview session flow.

Each kind carries a stable `code` and the HTTP status the API maps it to;
`install_error_handlers` renders them as {"detail": ..., "code": ...}.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class InterviewError(Exception):
    code = "interview_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(InterviewError):
    code = "not_found"
    status_code = 404


class Forbidden(InterviewError):
    code = "forbidden"
    status_code = 403


class InvalidInput(InterviewError):
    code = "invalid_input"
    status_code = 400


class InvalidState(InterviewError):
    code = "invalid_state"
    status_code = 400


class UpstreamTimeout(InterviewError):
    code = "upstream_timeout"
    status_code = 408


class UpstreamError(InterviewError):
    code = "upstream_error"
    status_code = 500


async def _interview_error_handler(request: Request, exc: InterviewError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(InterviewError, _interview_error_handler)
