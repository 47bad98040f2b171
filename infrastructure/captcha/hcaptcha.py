"""hCaptcha implementation of CaptchaVerifier.

- async httpx via the shared HttpClient, one POST per token, no retries
- secret, site key and caller IP injected at construction
- every failure is flattened into a Verdict; callers only check ``success``
"""

from __future__ import annotations

from typing import Optional

import httpx
from pydantic import ValidationError
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from config import DEFAULT_CONTEXT_KEY, DEFAULT_MAX_MEMORY, HCaptchaSettings
from errors import (
    CaptchaError,
    EmptyTokenError,
    SiteVerifyDecodeError,
    SiteVerifyReadError,
    SiteVerifyTransportError,
)
from infrastructure.captcha.protocol import FailureHandler
from infrastructure.captcha.verdict import Verdict
from infrastructure.http_client import HttpClient
from shared.forms import get_form_value
from shared.ip_utils import get_client_ip
from shared.logging import get_logger

log = get_logger(__name__)

HCAPTCHA_VERIFY_URL = "https://hcaptcha.com/siteverify"
RESPONSE_FORM_FIELD = "h-captcha-response"


async def too_many_requests(request: Request) -> Response:
    """Default failure handler: bare 429 with the status phrase as body."""
    return PlainTextResponse("Too Many Requests", status_code=429)


def _describe(exc: Exception) -> str:
    # Some httpx errors (e.g. timeouts) carry an empty message
    return str(exc) or type(exc).__name__


class HCaptchaVerifier:
    def __init__(
        self,
        secret: str,
        http_client: HttpClient,
        *,
        site_key: str = "",
        remote_ip: str = "",
        forward_client_ip: bool = False,
        failure_handler: Optional[FailureHandler] = None,
        max_memory: int = DEFAULT_MAX_MEMORY,
        context_key: str = DEFAULT_CONTEXT_KEY,
    ) -> None:
        self._secret = secret
        self._http = http_client
        self.site_key = site_key
        self.remote_ip = remote_ip
        self.forward_client_ip = forward_client_ip
        self.failure_handler: FailureHandler = failure_handler or too_many_requests
        self.max_memory = max_memory
        self.context_key = context_key

    @classmethod
    def from_settings(
        cls,
        settings: HCaptchaSettings,
        http_client: HttpClient,
        failure_handler: Optional[FailureHandler] = None,
    ) -> "HCaptchaVerifier":
        if not settings.enabled:
            log.warning("hcaptcha_secret_not_configured")
        return cls(
            settings.hcaptcha_secret,
            http_client,
            site_key=settings.hcaptcha_site_key,
            remote_ip=settings.hcaptcha_remote_ip,
            forward_client_ip=settings.hcaptcha_forward_client_ip,
            failure_handler=failure_handler,
            max_memory=settings.hcaptcha_max_memory,
            context_key=settings.hcaptcha_context_key,
        )

    async def verify_request(self, request: Request) -> Verdict:
        """Verify the ``h-captcha-response`` field posted with ``request``.

        A missing or empty field fails without contacting hCaptcha.
        """
        try:
            token = await get_form_value(
                request, RESPONSE_FORM_FIELD, max_memory=self.max_memory
            )
        except CaptchaError as e:
            log.info("hcaptcha_form_unreadable", error=e.message)
            return Verdict.failure(e.message)

        if not token:
            return Verdict.failure(f"form[{RESPONSE_FORM_FIELD}] is empty")

        remote_ip = None
        if self.forward_client_ip and not self.remote_ip:
            remote_ip = get_client_ip(request) or None

        return await self.verify_token(token, remote_ip=remote_ip)

    async def verify_token(
        self,
        token: str,
        *,
        remote_ip: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> Verdict:
        """Verify ``token`` against hCaptcha's siteverify endpoint.

        Args:
            token: The widget response produced in the browser.
            remote_ip: Caller IP for this call; falls back to the configured one.
            timeout: Per-call transport deadline in seconds.

        Returns:
            The decoded siteverify verdict, or an unsuccessful Verdict whose
            ``error_codes`` describe the local failure.
        """
        try:
            return await self._site_verify(token, remote_ip=remote_ip, timeout=timeout)
        except CaptchaError as e:
            return Verdict.failure(e.message)

    async def _site_verify(
        self,
        token: str,
        *,
        remote_ip: Optional[str],
        timeout: Optional[float],
    ) -> Verdict:
        if not token:
            raise EmptyTokenError("token is empty")

        data = {"secret": self._secret, "response": token}
        remote_ip = remote_ip or self.remote_ip
        if remote_ip:
            data["remoteip"] = remote_ip
        if self.site_key:
            data["sitekey"] = self.site_key

        try:
            response = await self._http.post_form(
                HCAPTCHA_VERIFY_URL, data, timeout=timeout
            )
        except httpx.HTTPError as e:
            log.error(
                "hcaptcha_transport_failed",
                error=_describe(e),
                error_type=type(e).__name__,
            )
            raise SiteVerifyTransportError(_describe(e)) from e

        try:
            body = await response.aread()
        except httpx.HTTPError as e:
            log.error(
                "hcaptcha_read_failed",
                error=_describe(e),
                error_type=type(e).__name__,
            )
            raise SiteVerifyReadError(_describe(e)) from e
        finally:
            await response.aclose()

        if response.status_code != 200:
            log.warning(
                "hcaptcha_unexpected_status",
                status_code=response.status_code,
                body=body[:200].decode("utf-8", "replace"),
            )

        try:
            verdict = Verdict.model_validate_json(body)
        except ValidationError as e:
            log.error("hcaptcha_decode_failed", error_count=e.error_count())
            message = "; ".join(err["msg"] for err in e.errors())
            raise SiteVerifyDecodeError(message or "invalid siteverify response") from e

        if not verdict.success:
            log.info("hcaptcha_verification_failed", error_codes=list(verdict.error_codes))
        return verdict
