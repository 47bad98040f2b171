"""
Client IP resolution for Starlette/FastAPI requests.

Used to forward the caller's address to hCaptcha as ``remoteip`` when the
verifier is configured to do so.
"""

from __future__ import annotations

import ipaddress

from starlette.requests import Request

# Proxy headers in priority order
_IP_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",  # Cloudflare
    "True-Client-IP",  # Akamai
    "X-Forwarded-For",
    "X-Real-IP",  # nginx
    "X-Client-IP",
)


def _as_ip(value: str) -> str:
    """Return ``value`` normalized if it is an IPv4/IPv6 address, else ``""``."""
    try:
        return str(ipaddress.ip_address(value.strip()))
    except ValueError:
        return ""


def get_client_ip(request: Request) -> str:
    """Return the address to send to siteverify as ``remoteip``.

    The first proxy header whose leading entry parses as an IP address wins.
    Placeholders such as ``unknown`` are skipped so they never reach the
    remote service. Falls back to the socket peer, then to ``""``.
    """
    for header in _IP_HEADERS:
        raw = request.headers.get(header)
        if raw:
            client_ip = _as_ip(raw.split(",")[0])
            if client_ip:
                return client_ip

    if request.client is None:
        return ""
    return _as_ip(request.client.host)
