"""Shared async HTTP transport for outbound calls."""

from typing import Any, Optional

import httpx

_USER_AGENT = "hcaptcha-gate"


class HttpClient:
    """Thin async wrapper around one pooled httpx.AsyncClient.

    A single instance is shared by every concurrent verification; httpx owns
    connection pooling. The timeout set here is the only deadline applied to
    outbound calls unless a caller passes its own per request.
    """

    def __init__(
        self,
        timeout: float = 5.0,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        limits: Optional[httpx.Limits] = None,
    ) -> None:
        kwargs: dict[str, Any] = {
            "timeout": timeout,
            "headers": {"User-Agent": _USER_AGENT},
        }
        if transport is not None:
            kwargs["transport"] = transport
        if limits is not None:
            kwargs["limits"] = limits
        self._client = httpx.AsyncClient(**kwargs)

    async def post_form(
        self,
        url: str,
        data: dict[str, str],
        *,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """POST ``data`` form-encoded and return the response unread.

        The caller must read the body (``aread``) and close the response
        (``aclose``); keeping the read separate lets it tell send failures
        from body read failures.
        """
        extra: dict[str, Any] = {}
        if timeout is not None:
            extra["timeout"] = timeout
        request = self._client.build_request("POST", url, data=data, **extra)
        return await self._client.send(request, stream=True)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
