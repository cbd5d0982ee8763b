"""
Result objects returned by service-layer mutations.

Mutations report failure through these instead of raising, so callers get a
message they can show and the record is left unchanged.
"""
import enum
from dataclasses import dataclass
from typing import Any, Optional


class ErrorCode(str, enum.Enum):
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_STATE = "INVALID_STATE"
    UNAUTHORIZED = "UNAUTHORIZED"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INTERNAL = "INTERNAL"


@dataclass
class OperationResult:
    success: bool
    data: Any = None
    message: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None) -> "OperationResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def failed(cls, error: str, code: ErrorCode = ErrorCode.INVALID_INPUT) -> "OperationResult":
        return cls(success=False, error=error, error_code=code)
