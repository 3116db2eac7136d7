"""Exception hierarchy for the TSSig client.

Every failure of a signing attempt resolves to exactly one of two kinds:
:class:`RetryableError` (transient, eligible for backoff) or
:class:`PermanentError` (surfaced immediately). Caller mistakes raise
:class:`DigestValidationError` before any network I/O, and an exhausted
retry budget raises :class:`TimeoutExhaustedError`.
"""

from __future__ import annotations

from typing import Optional


class TimestampClientError(Exception):
    """Base exception for all TSSig client errors."""


class DigestValidationError(TimestampClientError, ValueError):
    """The digest handed to ``sign`` has an unsupported length."""


# ---------------------------------------------------------------------------
# Retryable
# ---------------------------------------------------------------------------


class RetryableError(TimestampClientError):
    """A transient failure. The request may be retried."""


class RetryableStatusError(RetryableError):
    """The service answered 429 or a 5xx status."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"returned non-200 status code {status_code}, retryable")
        self.status_code = status_code


class RequestTimeoutError(RetryableError):
    """A single request exceeded the per-request timeout."""


# ---------------------------------------------------------------------------
# Permanent
# ---------------------------------------------------------------------------


class PermanentError(TimestampClientError):
    """A non-transient failure. Retrying would not help."""


class UnexpectedStatusError(PermanentError):
    """The service answered with a non-200 status that is not retryable."""

    def __init__(self, status_code: int) -> None:
        super().__init__(f"returned non-200 status code {status_code}")
        self.status_code = status_code


class ResponseTooLargeError(PermanentError):
    """The response body exceeds the configured ceiling."""

    def __init__(self, limit: int, size: Optional[int] = None) -> None:
        if size is None:
            message = (
                f"the maximum allowed response size is {limit} bytes. "
                "the returned response is bigger"
            )
        else:
            message = (
                f"the maximum allowed response size is {limit} bytes. "
                f"the returned response is {size} bytes"
            )
        super().__init__(message)
        self.limit = limit
        self.size = size


class MalformedResponseError(PermanentError):
    """The response could not be deserialized into a signed timestamp."""


class SerializationError(PermanentError):
    """The signing request could not be serialized."""


class TransportError(PermanentError):
    """The HTTP exchange failed for a reason other than a timeout."""


# ---------------------------------------------------------------------------
# Terminal
# ---------------------------------------------------------------------------


class TimeoutExhaustedError(TimestampClientError):
    """The retry budget elapsed while only retryable errors were observed.

    Attributes:
        last_error: The retryable error of the final attempt.
        attempts: Number of requests issued.
        elapsed: Seconds spent in the retry loop.
    """

    def __init__(self, last_error: RetryableError, attempts: int, elapsed: float) -> None:
        super().__init__(
            f"gave up after {attempts} attempts in {elapsed:.1f}s: {last_error}"
        )
        self.last_error = last_error
        self.attempts = attempts
        self.elapsed = elapsed
