"""Structured results and the rejection taxonomy for discount code operations.

Validation, eligibility and calculation problems are returned as ``Result``
values carrying a ``Failure`` so callers can render them directly. Only
``StorageError`` is raised.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorCode(str, Enum):
    VALIDATION_INPUT = "validation_input_error"
    CODE_NOT_FOUND = "code_not_found"
    CODE_INACTIVE = "code_inactive"
    CODE_EXPIRED = "code_expired"
    CODE_LIMIT_REACHED = "code_limit_reached"
    ACCOUNT_INELIGIBLE = "account_ineligible"
    LOST_RACE = "lost_race"
    CALCULATION_ERROR = "calculation_error"


@dataclass(frozen=True)
class Failure:
    """A rejection with a human-readable message and optional remediation hint."""

    code: ErrorCode
    message: str
    hint: str | None = None
    reasons: list[str] = field(default_factory=list)


@dataclass
class Result(Generic[T]):
    value: T | None = None
    error: Failure | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls,
        code: ErrorCode,
        message: str,
        hint: str | None = None,
        reasons: list[str] | None = None,
    ) -> "Result[T]":
        return cls(error=Failure(code=code, message=message, hint=hint, reasons=reasons or []))


class StorageError(Exception):
    """The durable store failed; raised, never returned."""


CODE_BLANK_MESSAGE = "Discount code cannot be blank"
CODE_NOT_FOUND_MESSAGE = "Invalid discount code"
CODE_INACTIVE_MESSAGE = "This discount code is no longer active"
CODE_EXPIRED_MESSAGE = "This discount code has expired"
CODE_LIMIT_MESSAGE = "This discount code has reached its usage limit"
LOST_RACE_MESSAGE = "This discount code is no longer available"
INELIGIBLE_MESSAGE = "This account is not eligible for discount codes"
