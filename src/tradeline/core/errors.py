from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

ERROR_CODE_STATE_MISMATCH = "STATE_MISMATCH"
ERROR_CODE_AUTHORIZATION_FAILURE = "AUTHORIZATION_FAILURE"
ERROR_CODE_CONFLICT = "CONFLICT"
ERROR_CODE_UNKNOWN_TRANSITION = "UNKNOWN_TRANSITION"
ERROR_CODE_INVALID_RECORD = "INVALID_RECORD"

VALID_ERROR_CODES = {
    ERROR_CODE_STATE_MISMATCH,
    ERROR_CODE_AUTHORIZATION_FAILURE,
    ERROR_CODE_CONFLICT,
    ERROR_CODE_UNKNOWN_TRANSITION,
    ERROR_CODE_INVALID_RECORD,
}


@dataclass(slots=True, frozen=True)
class TransitionRejection:
    code: str
    message: str
    transition: str | None = None
    output_id: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }
        if self.transition is not None:
            payload["transition"] = self.transition
        if self.output_id is not None:
            payload["output_id"] = self.output_id
        return payload


class TransitionError(Exception):
    """A transition was rejected. Rejections never leave partial effects."""

    code = ERROR_CODE_INVALID_RECORD

    def __init__(
        self,
        message: str,
        *,
        transition: str | None = None,
        output_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.rejection = TransitionRejection(
            code=self.code,
            message=message,
            transition=transition,
            output_id=output_id,
            details=dict(details or {}),
        )


class StateMismatchError(TransitionError):
    code = ERROR_CODE_STATE_MISMATCH


class AuthorizationError(TransitionError):
    code = ERROR_CODE_AUTHORIZATION_FAILURE


class ConflictError(TransitionError):
    """The output is unknown or was already spent by another transition."""

    code = ERROR_CODE_CONFLICT


class UnknownTransitionError(TransitionError):
    code = ERROR_CODE_UNKNOWN_TRANSITION


class InvalidRecordError(ValueError):
    pass


class RecordFormatError(ValueError):
    pass


__all__ = [
    "ERROR_CODE_AUTHORIZATION_FAILURE",
    "ERROR_CODE_CONFLICT",
    "ERROR_CODE_INVALID_RECORD",
    "ERROR_CODE_STATE_MISMATCH",
    "ERROR_CODE_UNKNOWN_TRANSITION",
    "VALID_ERROR_CODES",
    "AuthorizationError",
    "ConflictError",
    "InvalidRecordError",
    "RecordFormatError",
    "StateMismatchError",
    "TransitionError",
    "TransitionRejection",
    "UnknownTransitionError",
]
