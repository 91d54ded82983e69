# Copyright (C) 2024 AeroRide Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""Errors raised by the login-code and fare services, and their HTTP rendering."""

from fastapi import Request, status
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base error. Rendered as {"success": false, "error": ..., "code": ...}."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "error"
    message = "Request failed"

    def __init__(self, message: str | None = None, headers: dict[str, str] | None = None):
        self.message = message or self.message
        self.headers = headers
        super().__init__(self.message)


class MalformedInput(AppError):
    code = "malformed_input"
    message = "Valid email is required"


class MalformedCode(MalformedInput):
    code = "malformed_code"
    message = "Code must be 6 digits"


class RateLimited(AppError):
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    code = "rate_limited"
    message = "Too many attempts. Please wait 30 seconds before requesting another code."

    def __init__(self, retry_after: float, message: str | None = None):
        self.retry_after = max(1, int(retry_after + 0.999))
        super().__init__(message, headers={"Retry-After": str(self.retry_after)})


class DeliveryFailed(AppError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "delivery_failed"
    message = "Failed to send login code email"


class InvalidOrExpiredCode(AppError):
    # Wrong and expired codes are reported identically.
    code = "invalid_or_expired_code"
    message = "Invalid or expired code"


class UpstreamUnavailable(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "upstream_unavailable"
    message = "Upstream service unavailable"


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """FastAPI exception handler for AppError."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message, "code": exc.code},
        headers=exc.headers,
    )
