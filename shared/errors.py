"""
Shared error handling for the Clash Access proxy.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    model_config = ConfigDict(populate_by_name=True)

    error: str
    message: str
    reason: Optional[str] = None
    request_id: Optional[str] = Field(default=None, alias="requestId")
    details: Dict[str, Any] = {}

    def to_content(self) -> Dict[str, Any]:
        """Serialize for a JSON response body."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ProxyError(Exception):
    """Base exception for proxy failures that end in a fixed response shape."""

    status_code = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None,
                 status_code: Optional[int] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            error=self.code,
            message=self.message,
            request_id=request_id,
            details=self.details
        )


class InvalidIdentifierError(ProxyError):
    """A caller-supplied tag failed validation."""

    status_code = 400

    def __init__(self, reason: str, message: str = "Invalid tag", details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        super().__init__("invalid_tag", message, details)

    def to_response(self, request_id: Optional[str] = None) -> ErrorResponse:
        response = super().to_response(request_id)
        response.reason = self.reason
        return response


class UpstreamTimeoutError(ProxyError):
    """Upstream did not answer within the timeout budget."""

    status_code = 504

    def __init__(self, message: str = "Upstream API did not respond in time", details: Optional[Dict[str, Any]] = None):
        super().__init__("upstream_timeout", message, details)


class UpstreamUnreachableError(ProxyError):
    """Transport-level failure talking to the upstream."""

    status_code = 500

    def __init__(self, message: str = "Failed to contact upstream API", details: Optional[Dict[str, Any]] = None):
        super().__init__("upstream_unreachable", message, details)


class InternalFaultError(ProxyError):
    """Unexpected failure inside the proxy."""

    status_code = 500

    def __init__(self, message: str = "Unexpected server error", details: Optional[Dict[str, Any]] = None):
        super().__init__("internal_error", message, details)
