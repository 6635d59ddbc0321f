import logging
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from ticket_engine.domain.exceptions import AppError, NotFound, Conflict, Unprocessable, InvalidInput, StorageFailure
from ticket_engine.core.ctx import REQUEST_ID_CTX

logger = logging.getLogger("ticket_engine.api")

MEDIA_TYPE = "application/problem+json"
RETRY_AFTER_SECONDS = "2"

# most specific class first
_PROBLEMS: list[tuple[type[AppError], int, str]] = [
    (NotFound, status.HTTP_404_NOT_FOUND, "Not Found"),
    (Conflict, status.HTTP_409_CONFLICT, "Conflict"),
    (InvalidInput, status.HTTP_400_BAD_REQUEST, "Bad Request"),
    (Unprocessable, status.HTTP_422_UNPROCESSABLE_ENTITY, "Unprocessable Entity"),
    (StorageFailure, status.HTTP_503_SERVICE_UNAVAILABLE, "Service Unavailable"),
]


def problem_for(exc: AppError) -> tuple[int, str]:
    for cls, http_status, title in _PROBLEMS:
        if isinstance(exc, cls):
            return http_status, title
    return status.HTTP_400_BAD_REQUEST, "Application Error"


def problem_body(request: Request, exc: AppError, http_status: int, title: str) -> dict:
    body = {
        "status": http_status,
        "title": title,
        "detail": str(exc) or None,
        "code": type(exc).__name__,
        "instance": str(request.url),
    }
    trace_id = REQUEST_ID_CTX.get()
    if trace_id:
        body["trace_id"] = trace_id
    # storage internals stay in the logs
    if exc.ctx and not isinstance(exc, StorageFailure):
        body["context"] = exc.ctx
    return body


def register_error_handler(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError):
        http_status, title = problem_for(exc)
        headers = {}
        if isinstance(exc, StorageFailure):
            logger.error("Storage failure on %s %s ctx=%s", request.method, request.url.path, exc.ctx)
            headers["Retry-After"] = RETRY_AFTER_SECONDS

        return JSONResponse(
            status_code=http_status,
            content=problem_body(request, exc, http_status, title),
            media_type=MEDIA_TYPE,
            headers=headers,
        )
