"""
Per-request verdict storage.

The verdict travels with the request itself (``request.state``, backed by the
ASGI scope) so the next handler in the chain receives it explicitly, and it
is discarded together with the request.
"""

from __future__ import annotations

from starlette.requests import Request

from config import DEFAULT_CONTEXT_KEY
from infrastructure.captcha.verdict import Verdict


def store_verdict(
    request: Request, verdict: Verdict, key: str = DEFAULT_CONTEXT_KEY
) -> None:
    setattr(request.state, key, verdict)


def get_verdict(
    request: Request, key: str = DEFAULT_CONTEXT_KEY
) -> tuple[Verdict, bool]:
    """Return the verdict stored on ``request`` and whether one was found.

    Anything other than a Verdict under ``key`` counts as not found.
    """
    value = getattr(request.state, key, None)
    if isinstance(value, Verdict):
        return value, True
    return Verdict(), False
