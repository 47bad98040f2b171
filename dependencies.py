"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain async functions
used with FastAPI's Depends() system.
"""

from __future__ import annotations

from fastapi import Depends, Request

from errors import CaptchaRequiredError
from infrastructure.captcha.hcaptcha import HCaptchaVerifier
from infrastructure.captcha.verdict import Verdict
from shared.request_context import store_verdict


def get_verifier(request: Request) -> HCaptchaVerifier:
    """Return the shared HCaptchaVerifier stored on app.state."""
    return request.app.state.verifier


async def hcaptcha_verdict(
    request: Request, verifier: HCaptchaVerifier = Depends(get_verifier)
) -> Verdict:
    """Verify the request's hCaptcha response for a single route.

    The verdict is stored on request.state either way; a failed one aborts
    the route with CaptchaRequiredError (429).
    """
    verdict = await verifier.verify_request(request)
    store_verdict(request, verdict, verifier.context_key)
    if not verdict.success:
        raise CaptchaRequiredError("Too Many Requests")
    return verdict
