"""
Shared fixtures.

Outbound siteverify calls never leave the process: HttpClient is built on an
httpx.MockTransport backed by FakeSiteVerify, which records every request it
receives and answers with a configurable reply.
"""

from __future__ import annotations

from typing import Any, Callable, Optional
from urllib.parse import parse_qs

import httpx
import pytest
from starlette.requests import Request

from infrastructure.captcha.hcaptcha import HCaptchaVerifier
from infrastructure.http_client import HttpClient


class FakeSiteVerify:
    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 200
        self.payload: Any = {
            "success": True,
            "challenge_ts": "2024-01-01T00:00:00Z",
            "hostname": "example.com",
        }
        self.content: Optional[bytes] = None
        self.stream: Optional[httpx.AsyncByteStream] = None
        self.error: Optional[Exception] = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.stream is not None:
            return httpx.Response(self.status_code, stream=self.stream)
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def form(self, index: int = -1) -> dict[str, str]:
        """Decoded form body of a recorded request."""
        parsed = parse_qs(self.requests[index].content.decode())
        return {k: v[0] for k, v in parsed.items()}


@pytest.fixture
def siteverify() -> FakeSiteVerify:
    return FakeSiteVerify()


@pytest.fixture
def http_client(siteverify: FakeSiteVerify) -> HttpClient:
    return HttpClient(transport=httpx.MockTransport(siteverify))


@pytest.fixture
def verifier(http_client: HttpClient) -> HCaptchaVerifier:
    return HCaptchaVerifier("test-secret", http_client)


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Factory for Starlette POST requests with an encoded body.

    Bodies are encoded by httpx, so ``data`` + ``files`` produce a real
    multipart payload and ``data`` alone a urlencoded one. With
    ``chunk_size`` the body arrives in several messages and without a
    Content-Length header, like a chunked upload.
    """

    def _make(
        *,
        data: Optional[dict] = None,
        files: Optional[dict] = None,
        json: Any = None,
        params: Optional[dict] = None,
        headers: Optional[dict] = None,
        client: Optional[tuple[str, int]] = ("203.0.113.7", 51000),
        chunk_size: Optional[int] = None,
    ) -> Request:
        outgoing = httpx.Request(
            "POST",
            "http://testserver/submit",
            data=data,
            files=files,
            json=json,
            params=params,
            headers=headers,
        )
        body = outgoing.read()
        scope = {
            "type": "http",
            "http_version": "1.1",
            "method": "POST",
            "scheme": "http",
            "path": "/submit",
            "raw_path": b"/submit",
            "root_path": "",
            "query_string": outgoing.url.query,
            "headers": [
                (k.lower(), v)
                for k, v in outgoing.headers.raw
                if not (chunk_size and k.lower() == b"content-length")
            ],
            "client": client,
            "server": ("testserver", 80),
        }
        if chunk_size:
            parts = [body[i : i + chunk_size] for i in range(0, len(body), chunk_size)]
        else:
            parts = [body]
        messages = [
            {"type": "http.request", "body": part, "more_body": i < len(parts) - 1}
            for i, part in enumerate(parts)
        ]

        async def receive():
            if messages:
                return messages.pop(0)
            return {"type": "http.disconnect"}

        return Request(scope, receive)

    return _make
