"""
HTTP-visible error taxonomy.

Every rejection the API produces is one of these, rendered as
`{"success": false, "message": ...}` with the class's status code.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import status
from fastapi.responses import JSONResponse


class ApiError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message}

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_body())


class OriginDenied(ApiError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "CORS not allowed"

    def __init__(self, origin: str) -> None:
        self.origin = origin
        super().__init__(f"CORS not allowed: {origin}")


class MalformedBody(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Malformed JSON body"


class Unauthenticated(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized, no token"


class InvalidCredential(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized, token failed"


class ValidationFailed(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Missing required fields"


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class RouteNotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Route not found"


class UpstreamFailure(ApiError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Upstream generation failed"


class UpstreamTimeout(ApiError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT
    default_message = "Upstream generation timed out"


class Unhandled(ApiError):
    pass
