"""
hCaptcha request gate.

dispatch_verified() verifies the inbound request, attaches the Verdict to
``request.state`` and hands the same request to either the inner handler or
the verifier's failure handler. The verdict is attached on both paths so a
failure handler can inspect the error codes.

Two ways to put the gate in front of handlers:

- HCaptchaMiddleware: every HTTP request of the wrapped ASGI app
- require_hcaptcha(verifier): a single Starlette endpoint
"""

from __future__ import annotations

import functools
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from infrastructure.captcha.protocol import CaptchaVerifier
from shared.logging import get_logger
from shared.request_context import store_verdict

log = get_logger(__name__)

Endpoint = Callable[[Request], Awaitable[Response]]


async def dispatch_verified(
    verifier: CaptchaVerifier, request: Request, inner: Endpoint
) -> Response:
    verdict = await verifier.verify_request(request)
    store_verdict(request, verdict, verifier.context_key)

    if verdict.success:
        log.debug("hcaptcha_verified", path=request.url.path, hostname=verdict.hostname)
        return await inner(request)

    log.info(
        "hcaptcha_rejected",
        path=request.url.path,
        error_codes=list(verdict.error_codes),
    )
    return await verifier.failure_handler(request)


class HCaptchaMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, verifier: CaptchaVerifier) -> None:
        super().__init__(app)
        self._verifier = verifier

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        return await dispatch_verified(self._verifier, request, call_next)


def require_hcaptcha(verifier: CaptchaVerifier) -> Callable[[Endpoint], Endpoint]:
    """Decorate a Starlette endpoint so it only runs for verified requests.

    Example:
        >>> @require_hcaptcha(verifier)
        ... async def signup(request: Request) -> Response:
        ...     verdict, _ = get_verdict(request)
        ...     return PlainTextResponse(f"welcome from {verdict.hostname}")
    """

    def decorator(endpoint: Endpoint) -> Endpoint:
        @functools.wraps(endpoint)
        async def wrapper(request: Request) -> Response:
            return await dispatch_verified(verifier, request, endpoint)

        return wrapper

    return decorator
