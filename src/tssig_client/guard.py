"""Bounded reading and parsing of signing service responses.

A compromised or buggy signing service must not be able to make the client
buffer an arbitrary amount of data. The declared ``Content-Length`` is checked
before the body is touched, and the body itself is counted while streaming
so that a missing or falsified length is caught as well.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from .errors import MalformedResponseError, RequestTimeoutError, ResponseTooLargeError
from .models import DEFAULT_MAX_RESPONSE_BYTES, SignedTimeStamp


def read_bounded(
    response: httpx.Response,
    max_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
    deadline: Optional[float] = None,
    clock: Callable[[], float] = time.monotonic,
) -> bytes:
    """Read a streamed response body, refusing anything over ``max_bytes``.

    The body is read as sent. Compressed bodies are refused rather than inflated,
    since a few kilobytes of gzip can expand to megabytes before any size
    check could run.

    Args:
        response: A response opened with ``httpx.Client.stream``.
        max_bytes: Largest body accepted.
        deadline: ``clock()`` value after which reading is abandoned.
        clock: Monotonic clock the deadline is measured against.

    Returns:
        The complete body.

    Raises:
        ResponseTooLargeError: If the declared length or the bytes actually
            received exceed ``max_bytes``.
        MalformedResponseError: If ``Content-Length`` is not an integer or the
            body carries a content encoding.
        RequestTimeoutError: If the deadline passes before the body is read.
    """
    encoding = response.headers.get("Content-Encoding", "identity").strip().lower()
    if encoding not in ("", "identity"):
        raise MalformedResponseError(f"unsupported Content-Encoding: {encoding!r}")

    declared = response.headers.get("Content-Length")
    if declared is not None:
        try:
            length = int(declared)
        except ValueError as exc:
            raise MalformedResponseError(
                f"invalid Content-Length header: {declared!r}"
            ) from exc
        if length > max_bytes:
            raise ResponseTooLargeError(max_bytes, length)

    body = bytearray()
    # Loop to EOF: a single chunk may hold less than the full body. With the
    # encoding checked above, iter_bytes yields the bytes as sent.
    for chunk in response.iter_bytes():
        body += chunk
        if len(body) > max_bytes:
            raise ResponseTooLargeError(max_bytes)
        if deadline is not None and clock() > deadline:
            raise RequestTimeoutError("response body not received before the request deadline")
    return bytes(body)


def parse_signed_timestamp(payload: bytes) -> SignedTimeStamp:
    """Deserialize a response body into a :class:`SignedTimeStamp`.

    Raises:
        MalformedResponseError: If the body is not a JSON object.
    """
    try:
        return SignedTimeStamp.model_validate_json(payload)
    except ValidationError as exc:
        raise MalformedResponseError(
            f"could not decode signed timestamp: {exc}"
        ) from exc
