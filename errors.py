"""
Application error hierarchy and FastAPI exception handlers.

AppError is the base for all typed errors. The global exception handler
converts AppError subclasses to consistent JSON responses.

CaptchaError subclasses describe local verification failures. The verifier
raises them internally and flattens them into a failed Verdict before
returning, so they never reach callers of verify_token()/verify_request().
"""

from __future__ import annotations

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base application error. ``field`` names the form field involved, if any."""

    status_code: int = 500
    error_code: str = "internal_error"

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict:
        payload: dict = {"error": self.message, "code": self.error_code}
        if self.field is not None:
            payload["field"] = self.field
        return payload


class CaptchaError(AppError):
    status_code = 429
    error_code = "captcha_error"


class EmptyTokenError(CaptchaError):
    error_code = "empty_token"


class FormParseError(CaptchaError):
    error_code = "form_parse_error"


class SiteVerifyTransportError(CaptchaError):
    error_code = "siteverify_transport_error"


class SiteVerifyReadError(CaptchaError):
    error_code = "siteverify_read_error"


class SiteVerifyDecodeError(CaptchaError):
    error_code = "siteverify_decode_error"


class CaptchaRequiredError(AppError):
    status_code = 429
    error_code = "captcha_required"


def register_error_handlers(app: FastAPI) -> None:
    """Register global exception handlers on the FastAPI app."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        # Sentry integration: if sentry_sdk is initialized it will auto-capture
        # unhandled exceptions before this handler fires.
        return JSONResponse(
            status_code=500,
            content={"error": "An internal server error occurred.", "code": "internal_error"},
        )
