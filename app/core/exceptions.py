from enum import Enum
from typing import Any, Dict, Optional
from fastapi import HTTPException, status


class ErrorCode(str, Enum):
    """Standardized error codes for the API."""
    # Configuration errors (1xxx)
    INVALID_CONFIGURATION = "CFG_1001"

    # Validation errors (2xxx)
    INVALID_INPUT = "VAL_2001"

    # External service errors (5xxx)
    GATEWAY_UNREACHABLE = "EXT_5001"
    GATEWAY_REJECTED = "EXT_5002"

    # System errors (9xxx)
    INTERNAL_ERROR = "SYS_9001"


class APIException(HTTPException):
    """Base exception class for API errors with standardized error codes."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error_code = error_code
        self.details = details
        super().__init__(status_code=status_code, detail=message)

    def __str__(self) -> str:
        return str(self.detail)


class ConfigurationException(APIException):
    """Raised when required settings are missing or malformed."""
    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            error_code=ErrorCode.INVALID_CONFIGURATION,
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details
        )


class ValidationException(APIException):
    """Exception for validation errors."""
    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            error_code=ErrorCode.INVALID_INPUT,
            message=message,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details=details
        )


class GatewayTransportException(APIException):
    """The gateway could not be reached (DNS, connect, timeout, protocol)."""
    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            error_code=ErrorCode.GATEWAY_UNREACHABLE,
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details
        )


class GatewayRejectedException(APIException):
    """The gateway answered, but with a non-2xx status or an unusable body.

    Attributes:
        upstream_status: HTTP status returned by the gateway, if any
    """

    upstream_status: Optional[int]

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.upstream_status = upstream_status
        super().__init__(
            error_code=ErrorCode.GATEWAY_REJECTED,
            message=message,
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details
        )
