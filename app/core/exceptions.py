import json
from enum import Enum
from typing import Any, Optional

from fastapi import HTTPException, status


class ErrorCode(str, Enum):
    """Standardized error codes for the API."""
    # Validation errors (2xxx)
    MISSING_FIELDS = "VAL_2001"
    MISSING_TX_REF = "VAL_2002"

    # External service errors (5xxx)
    PAYMENT_INIT_FAILED = "EXT_5001"
    PAYMENT_VERIFY_FAILED = "EXT_5002"

    # System errors (9xxx)
    INTERNAL_ERROR = "SYS_9001"


class APIException(HTTPException):
    """Base exception class for API errors with standardized error codes."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
    ):
        self.error_code = error_code
        super().__init__(status_code=status_code, detail=message)

    def render(self) -> str:
        """Text placed in the ``error`` field of the response envelope."""
        return str(self.detail)


class ValidationException(APIException):
    """Exception for missing or empty caller input."""
    def __init__(self, error_code: ErrorCode, message: str):
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class SystemException(APIException):
    """Exception for system errors."""
    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INTERNAL_ERROR):
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )


class GatewayError(APIException):
    """A call to the payment provider failed.

    Attributes:
        operation: ``"initialize"`` or ``"verify"``
        payload: The provider's error body (decoded JSON or raw text), or the
            transport error message when no response was received
    """

    operation: str
    payload: Any

    _OPERATIONS = {
        "initialize": ErrorCode.PAYMENT_INIT_FAILED,
        "verify": ErrorCode.PAYMENT_VERIFY_FAILED,
    }

    def __init__(self, operation: str, payload: Any, provider_status: Optional[int] = None):
        self.operation = operation
        self.payload = payload
        self.provider_status = provider_status
        super().__init__(
            error_code=self._OPERATIONS[operation],
            message=f"Failed to {operation} payment",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    def render(self) -> str:
        serialized = json.dumps(self.payload, separators=(",", ":"), ensure_ascii=False, default=str)
        return f"{self.detail}: {serialized}"

    def __str__(self) -> str:
        return self.render()
