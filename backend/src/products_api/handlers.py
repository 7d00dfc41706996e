"""Exception handlers that route every failure through the error translator.

Domain failures, request validation errors and HTTP errors raised inside the
route stack are handled here. Anything else is caught by
RequestContextMiddleware, so each failure is translated exactly once.
"""

from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from products_api.context import request_context
from products_api.exceptions import (
    Failure,
    FailureKind,
    FieldError,
    ValidationFailure,
    failure_for_kind,
)
from products_api.schemas.problem import PROBLEM_MEDIA_TYPE, ProblemDescription
from products_api.translator import ErrorTranslator

VALIDATION_DETAIL = "One or more validation errors occurred."

_KIND_BY_HTTP_STATUS: dict[int, FailureKind] = {
    401: FailureKind.UNAUTHORIZED,
    404: FailureKind.NOT_FOUND,
    409: FailureKind.CONFLICT,
}


class ProblemJSONResponse(JSONResponse):
    media_type = PROBLEM_MEDIA_TYPE


def problem_response(problem: ProblemDescription) -> ProblemJSONResponse:
    """Serialize a problem with its status code and problem+json content type."""
    return ProblemJSONResponse(status_code=problem.status, content=problem.to_wire())


def _field_name(loc: tuple[int | str, ...]) -> str:
    # ("body", "sku") -> "sku"; ("query", "limit") -> "limit";
    # ("body", 12) is a JSON decode error at offset 12 -> "body"
    parts = loc[1:]
    if not parts or not isinstance(parts[0], str):
        return str(loc[0]) if loc else "body"
    return ".".join(str(part) for part in parts)


def validation_failure(exc: RequestValidationError) -> ValidationFailure:
    """Fold FastAPI request validation errors into a domain validation failure."""
    errors = [
        FieldError(field=_field_name(tuple(error.get("loc", ()))), message=error.get("msg", ""))
        for error in exc.errors()
    ]
    return ValidationFailure(VALIDATION_DETAIL, errors=errors)


def install_problem_handlers(app: FastAPI, translator: ErrorTranslator) -> None:
    """Register the exception handlers that produce problem responses."""

    def respond(request: Request, failure: BaseException) -> ProblemJSONResponse:
        return problem_response(translator.translate(failure, request_context(request)))

    @app.exception_handler(Failure)
    async def failure_handler(request: Request, exc: Failure) -> Response:
        return respond(request, exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> Response:
        return respond(request, validation_failure(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
        """Translate 401/404/409; other HTTP errors keep FastAPI's default response."""
        kind = _KIND_BY_HTTP_STATUS.get(exc.status_code)
        if kind is None:
            return await http_exception_handler(request, exc)
        response = respond(request, failure_for_kind(kind, str(exc.detail)))
        if exc.headers:
            response.headers.update(exc.headers)
        return response
