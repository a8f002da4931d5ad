"""Error taxonomy shared by every layer.

A ``Failure`` is a plain tagged value (kind, message, retry hint). It travels
through ``await`` chains inside a single ``ReviewDashError`` and is turned into
a JSON response at the route boundary without changing kind.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ErrorKind(StrEnum):
    UNAUTHENTICATED = "unauthenticated"
    INVALID_INPUT = "invalid_input"
    QUOTA_EXCEEDED = "quota_exceeded"
    UPSTREAM_ERROR = "upstream_error"


_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.INVALID_INPUT: 400,
    ErrorKind.QUOTA_EXCEEDED: 429,
    ErrorKind.UPSTREAM_ERROR: 500,
}


class Failure(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ErrorKind
    message: str
    retry_after_seconds: int | None = None

    @property
    def status_code(self) -> int:
        return _STATUS_BY_KIND[self.kind]

    @property
    def is_quota(self) -> bool:
        return self.kind is ErrorKind.QUOTA_EXCEEDED

    @classmethod
    def quota(cls, message: str, retry_after_seconds: int) -> Failure:
        return cls(
            kind=ErrorKind.QUOTA_EXCEEDED,
            message=message,
            retry_after_seconds=retry_after_seconds,
        )

    @classmethod
    def upstream(cls, message: str) -> Failure:
        return cls(kind=ErrorKind.UPSTREAM_ERROR, message=message)

    def to_body(self) -> dict[str, object]:
        """JSON body returned by the route boundary."""
        body: dict[str, object] = {"error": self.message, "kind": self.kind.value}
        if self.retry_after_seconds is not None:
            body["retryAfter"] = self.retry_after_seconds
        return body


class ReviewDashError(Exception):
    """Carries a ``Failure`` up the call stack."""

    def __init__(self, failure: Failure) -> None:
        super().__init__(failure.message)
        self.failure = failure

    @property
    def kind(self) -> ErrorKind:
        return self.failure.kind
