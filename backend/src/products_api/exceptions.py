"""Domain failures raised by services and dependencies.

Every failure carries a single ``kind`` discriminant fixed by its class.
The error translator classifies on that value alone, so a failure can never
match two categories. Anything raised that is not a ``Failure`` is treated
as ``FailureKind.UNKNOWN``.
"""

from dataclasses import dataclass
from enum import StrEnum


class FailureKind(StrEnum):
    DOMAIN_VALIDATION = "domain_validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNAUTHORIZED = "unauthorized"
    APPLICATION = "application"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FieldError:
    """A single field-level validation problem."""

    field: str
    message: str


class Failure(Exception):
    """Base class for all domain failures.

    Raising ``Failure`` directly signals an unclassified error whose message
    is still safe to show to clients.
    """

    kind: FailureKind = FailureKind.UNKNOWN

    def __init__(
        self,
        message: str,
        *,
        resource_id: object | None = None,
        errors: list[FieldError] | None = None,
    ) -> None:
        self.message = message
        self.resource_id = resource_id
        self.errors = list(errors or [])
        super().__init__(message)


class ValidationFailure(Failure):
    """Raised when input breaks a domain rule."""

    kind = FailureKind.DOMAIN_VALIDATION


class NotFoundFailure(Failure):
    """Raised when a requested entity does not exist."""

    kind = FailureKind.NOT_FOUND


class ConflictFailure(Failure):
    """Raised when an operation conflicts with existing state (e.g. duplicate)."""

    kind = FailureKind.CONFLICT


class UnauthorizedFailure(Failure):
    kind = FailureKind.UNAUTHORIZED


class ApplicationFailure(Failure):
    """Raised when a request is well-formed but cannot be carried out."""

    kind = FailureKind.APPLICATION


_FAILURE_BY_KIND: dict[FailureKind, type[Failure]] = {
    cls.kind: cls
    for cls in (
        Failure,
        ValidationFailure,
        NotFoundFailure,
        ConflictFailure,
        UnauthorizedFailure,
        ApplicationFailure,
    )
}


def failure_for_kind(kind: FailureKind, message: str, **kwargs: object) -> Failure:
    """Build the failure class that owns ``kind``."""
    return _FAILURE_BY_KIND[kind](message, **kwargs)  # type: ignore[arg-type]
