"""
CaptchaVerifier protocol.

Middleware and dependencies depend on this rather than on the concrete
hCaptcha implementation.
"""

from typing import Awaitable, Callable, Optional, Protocol

from starlette.requests import Request
from starlette.responses import Response

from infrastructure.captcha.verdict import Verdict

FailureHandler = Callable[[Request], Awaitable[Response]]


class CaptchaVerifier(Protocol):
    context_key: str
    failure_handler: FailureHandler

    async def verify_token(
        self,
        token: str,
        *,
        remote_ip: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Verdict: ...

    async def verify_request(self, request: Request) -> Verdict: ...
