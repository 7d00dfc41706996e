"""RFC 7807 problem schemas.

``ProblemDescription`` is what the error translator produces. Its
``extensions`` are flattened into the top-level JSON object on the wire::

    {"type": "...", "title": "...", "status": 404, "detail": "...",
     "instance": "/api/products/0", "requestId": "...", "traceId": null}

``ProblemResponse`` documents that flat wire shape in the OpenAPI schema.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PROBLEM_MEDIA_TYPE = "application/problem+json"

_STANDARD_MEMBERS = frozenset({"type", "title", "status", "detail", "instance"})


class ProblemDescription(BaseModel):
    """Uniform structured error payload (RFC 7807 problem details)."""

    model_config = ConfigDict(frozen=True)

    type: str
    title: str
    status: int
    detail: str
    instance: str
    extensions: dict[str, Any] = Field(default_factory=dict)

    def to_wire(self) -> dict[str, Any]:
        """Flatten into the JSON object sent to clients.

        Standard members come first and cannot be shadowed by an extension.
        """
        body: dict[str, Any] = self.model_dump(exclude={"extensions"})
        for key, value in self.extensions.items():
            if key not in _STANDARD_MEMBERS:
                body[key] = value
        return body


class FieldErrorResponse(BaseModel):
    field: str
    message: str


class ProblemResponse(BaseModel):
    """Wire shape of every error response."""

    model_config = ConfigDict(populate_by_name=True)

    type: str
    title: str
    status: int
    detail: str
    instance: str
    request_id: str = Field(alias="requestId")
    trace_id: str | None = Field(alias="traceId")
    errors: list[FieldErrorResponse] | None = None


PROBLEM_RESPONSES: dict[int | str, dict[str, Any]] = {
    "4XX": {"model": ProblemResponse, "content": {PROBLEM_MEDIA_TYPE: {}}},
    "5XX": {"model": ProblemResponse, "content": {PROBLEM_MEDIA_TYPE: {}}},
}
