from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID


class ErrorResponse(BaseModel):
    """Standardized error response schema."""
    error: str = Field(..., description="Human-readable error message")
    code: str = Field(..., description="Error code for programmatic handling")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    trace_id: UUID = Field(..., description="Unique request trace ID for debugging")
    timestamp: float = Field(..., description="Unix timestamp of the error")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "M-Pesa token request rejected with status 401",
                "code": "EXT_5002",
                "details": {"status_code": 401},
                "trace_id": "123e4567-e89b-12d3-a456-426614174000",
                "timestamp": 1678901234.567
            }
        }
    )
