"""Error translator: turns any failure into an RFC 7807 problem description.

This is the last step of a failed request. It classifies the failure by its
``FailureKind`` against a fixed, ordered taxonomy, logs the failure once at
error level and returns a fully populated ``ProblemDescription``. It never
raises.
"""

from dataclasses import asdict, dataclass
from typing import Any, Protocol

from products_api.exceptions import Failure, FailureKind
from products_api.schemas.problem import ProblemDescription

GENERIC_DETAIL = "An unexpected error occurred."


class FailureLogger(Protocol):
    """The slice of a structlog logger the translator needs."""

    def error(self, event: str, **kw: Any) -> Any: ...


@dataclass(frozen=True)
class RequestContext:
    """Read-only metadata about the request that failed."""

    path: str
    request_id: str
    trace_id: str | None = None


@dataclass(frozen=True)
class Category:
    kind: FailureKind
    status: int
    title: str
    slug: str


# Evaluated in order, first match wins.
TAXONOMY: tuple[Category, ...] = (
    Category(
        FailureKind.DOMAIN_VALIDATION, 400, "A domain validation error occurred", "domain-validation"
    ),
    Category(FailureKind.NOT_FOUND, 404, "The requested resource was not found", "not-found"),
    Category(FailureKind.CONFLICT, 409, "The resource already exists", "conflict"),
    Category(FailureKind.UNAUTHORIZED, 401, "Unauthorized access", "unauthorized"),
    Category(FailureKind.APPLICATION, 400, "An application error occurred", "application-error"),
)

DEFAULT_CATEGORY = Category(
    FailureKind.UNKNOWN, 500, "An unexpected error occurred", "internal-error"
)


def classify(kind: FailureKind) -> Category:
    """Return the taxonomy category for ``kind``, or the default category."""
    return next((category for category in TAXONOMY if category.kind is kind), DEFAULT_CATEGORY)


class ErrorTranslator:
    """Maps failures to problem descriptions.

    Args:
        logger: Where the originating failure is logged before translation.
        type_base_url: Prefix of the ``type`` URI; the category slug is appended.
        expose_unexpected_details: When False, exceptions that are not a
            ``Failure`` get a generic ``detail`` instead of ``str(exc)``.
    """

    def __init__(
        self,
        logger: FailureLogger,
        *,
        type_base_url: str,
        expose_unexpected_details: bool = False,
    ) -> None:
        self._logger = logger
        self._type_base_url = type_base_url.rstrip("/")
        self._expose_unexpected_details = expose_unexpected_details

    def type_uri(self, category: Category) -> str:
        return f"{self._type_base_url}/{category.slug}"

    def translate(self, failure: BaseException, context: RequestContext) -> ProblemDescription:
        """Translate ``failure`` raised while serving ``context``.

        Logs the failure first, then builds the problem. Logging errors are
        swallowed; building the problem falls back to the default category if
        anything about the failure itself misbehaves (e.g. a broken ``__str__``).
        """
        kind = failure.kind if isinstance(failure, Failure) else FailureKind.UNKNOWN
        category = classify(kind)
        self._log(failure, kind, category, context)

        try:
            return self._build(failure, category, context)
        except Exception:
            return self._build_default(context)

    def _build(
        self,
        failure: BaseException,
        category: Category,
        context: RequestContext,
    ) -> ProblemDescription:
        extensions: dict[str, Any] = {
            "requestId": context.request_id,
            "traceId": context.trace_id,
        }
        if isinstance(failure, Failure):
            detail = failure.message
            if failure.errors:
                extensions["errors"] = [asdict(error) for error in failure.errors]
        elif self._expose_unexpected_details:
            detail = str(failure) or GENERIC_DETAIL
        else:
            detail = GENERIC_DETAIL

        return ProblemDescription(
            type=self.type_uri(category),
            title=category.title,
            status=category.status,
            detail=detail,
            instance=context.path,
            extensions=extensions,
        )

    def _build_default(self, context: RequestContext) -> ProblemDescription:
        return ProblemDescription(
            type=self.type_uri(DEFAULT_CATEGORY),
            title=DEFAULT_CATEGORY.title,
            status=DEFAULT_CATEGORY.status,
            detail=GENERIC_DETAIL,
            instance=context.path,
            extensions={"requestId": context.request_id, "traceId": context.trace_id},
        )

    def _log(
        self,
        failure: BaseException,
        kind: FailureKind,
        category: Category,
        context: RequestContext,
    ) -> None:
        # Building the record can fail too (odd kind or errors on a subclass).
        # Nothing in the log step may turn an error response into a crash.
        try:
            fields: dict[str, Any] = {
                "failure_kind": str(kind),
                "failure_type": type(failure).__qualname__,
                "status": category.status,
                "path": context.path,
                "request_id": context.request_id,
                "trace_id": context.trace_id,
            }
            if isinstance(failure, Failure):
                fields["resource_id"] = failure.resource_id
                fields["errors"] = [asdict(error) for error in failure.errors]
            self._logger.error("request_failed", exc_info=failure, **fields)
        except Exception:  # noqa: S110
            pass
