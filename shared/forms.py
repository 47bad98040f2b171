"""
Form field extraction for Starlette/FastAPI requests.

Reads a single named value from the request body (urlencoded or multipart)
with a fallback to the query string, the way server-side captcha checks
expect to find the widget's response field.
"""

from __future__ import annotations

from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import ClientDisconnect, Request

from config import DEFAULT_MAX_MEMORY
from errors import FormParseError


def _declared_length(request: Request) -> int | None:
    raw = request.headers.get("content-length")
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


async def _read_capped_body(request: Request, key: str, limit: int) -> None:
    """Buffer the body on ``request`` unless it grows past ``limit`` bytes."""
    if hasattr(request, "_body"):
        if len(request._body) > limit:
            raise FormParseError(f"request body exceeds {limit} bytes", field=key)
        return

    size = _declared_length(request)
    if size is not None and size > limit:
        raise FormParseError(f"request body exceeds {limit} bytes", field=key)

    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > limit:
            raise FormParseError(f"request body exceeds {limit} bytes", field=key)
        chunks.append(chunk)
    # Same cache Request.body() fills, so form() and downstream handlers reuse it
    request._body = b"".join(chunks)


async def get_form_value(
    request: Request, key: str, *, max_memory: int = DEFAULT_MAX_MEMORY
) -> str:
    """Return the first non-file value of ``key`` posted with ``request``.

    Lookup order:

    1. Body form fields (``application/x-www-form-urlencoded`` or
       ``multipart/form-data``). File parts are skipped.
    2. URL query parameters.

    A body of any other content type is treated as an empty form. A missing
    field yields ``""``; it is not an error.

    At most ``max_memory`` bytes of body are held in memory. A declared
    ``Content-Length`` above that is refused before anything is read, and a
    chunked body is refused as soon as it passes the ceiling. The accepted
    body stays buffered so handlers further down the chain can still read it.

    Args:
        request: The inbound request.
        key: Form field name.
        max_memory: Ceiling in bytes for the buffered body and for each part.

    Raises:
        FormParseError: The body could not be read or parsed, or it exceeded
            ``max_memory``.
    """
    try:
        await _read_capped_body(request, key, max_memory)
        form = await request.form(max_part_size=max_memory)
    except MultiPartException as exc:
        raise FormParseError(exc.message, field=key) from exc
    except HTTPException as exc:
        # Inside an app Starlette re-raises multipart errors as a 400
        raise FormParseError(str(exc.detail), field=key) from exc
    except ClientDisconnect as exc:
        raise FormParseError("client disconnected while sending form", field=key) from exc

    for value in form.getlist(key):
        if not isinstance(value, UploadFile):
            return value

    return request.query_params.get(key, "")
