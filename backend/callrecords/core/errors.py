import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class ErrorType(str, enum.Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    UNEXPECTED = "UNEXPECTED"


@dataclass(frozen=True)
class Error:
    type: ErrorType
    code: str
    description: str

    @classmethod
    def validation(cls, description: str = "A validation error has occurred.", code: str = "VALIDATION_ERROR") -> "Error":
        return cls(ErrorType.VALIDATION, code, description)

    @classmethod
    def not_found(cls, description: str = "Entity was not found.", code: str = "NOT_FOUND") -> "Error":
        return cls(ErrorType.NOT_FOUND, code, description)

    @classmethod
    def unexpected(cls, description: str = "An unexpected error has occurred.", code: str = "UNEXPECTED_ERROR") -> "Error":
        return cls(ErrorType.UNEXPECTED, code, description)

    def as_dict(self) -> dict:
        return {"type": self.type.value, "code": self.code, "description": self.description}


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or an :class:`Error`, never both.

    Services and the record store return these instead of raising, so the
    HTTP layer decides how each error type is reported.
    """

    value: Optional[T] = None
    error: Optional[Error] = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @classmethod
    def ok(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, error: Error) -> "Result[T]":
        return cls(error=error)
