"""TSSig signing client.

Requests a signed timestamp for a message digest from a TSSig signing
service. Transient failures (timeouts, 429 and 5xx answers) are retried
with exponential backoff until a total time budget runs out; anything else
is surfaced immediately.

Usage::

    from tssig_client.client import TimestampClient
    from tssig_client.digest import hash_bytes

    with TimestampClient("https://tssig.example.com/") as client:
        sts = client.sign(hash_bytes(b"hello world"))
"""

from __future__ import annotations

import random
import time
from typing import Callable, Optional

import httpx

from . import backoff
from .digest import validate_digest
from .errors import (
    PermanentError,
    RequestTimeoutError,
    RetryableError,
    RetryableStatusError,
    SerializationError,
    TimeoutExhaustedError,
    TransportError,
    UnexpectedStatusError,
)
from .guard import parse_signed_timestamp, read_bounded
from .models import ClientConfig, SignedTimeStamp, SigningRequest
from .outcome import AttemptFailed, AttemptOutcome, AttemptRetryable, AttemptSucceeded

# Called with the retryable error and the delay before the next attempt.
Notify = Callable[[RetryableError, float], None]


def is_retryable_status(status_code: int) -> bool:
    """Return True for 429 and every 5xx status."""
    return status_code == 429 or status_code >= 500


class TimestampClient:
    """Client for a TSSig signing service.

    The client keeps no per-call state, so a single instance may be used
    from several threads at once.

    Args:
        endpoint: Signing service URL. Ignored when ``config`` is given.
        config: Full client configuration.
        notify: Optional callback invoked before each retry with the error
            and the delay about to be slept. It runs synchronously on the
            calling thread and must return promptly without raising; an
            exception it raises is not caught and ends the ``sign`` call.
        http_client: Shared ``httpx.Client``. When omitted the client creates
            and owns one.
        sleep: Sleep function used between retries.
        clock: Monotonic clock used to measure the retry budget.
        rng: Random source for backoff jitter.
    """

    def __init__(
        self,
        endpoint: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        notify: Optional[Notify] = None,
        http_client: Optional[httpx.Client] = None,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        rng: Optional[random.Random] = None,
    ) -> None:
        if config is None:
            if endpoint is None:
                raise ValueError("either endpoint or config is required")
            config = ClientConfig(endpoint=endpoint)
        self.config = config
        self.notify = notify
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client()
        self._sleep = sleep
        self._clock = clock
        self._rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "TimestampClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Signing
    # ------------------------------------------------------------------

    def sign(self, digest: bytes) -> SignedTimeStamp:
        """Obtain a signed timestamp for ``digest``, retrying transient failures.

        Args:
            digest: Raw 224, 256, 384 or 512 bit digest.

        Returns:
            The signed timestamp issued by the service.

        Raises:
            DigestValidationError: If the digest length is not accepted. No
                request is made.
            PermanentError: On the first non-transient failure.
            TimeoutExhaustedError: If the retry budget elapsed while only
                transient failures were seen.
        """
        validate_digest(digest)

        policy = self.config.backoff
        state = backoff.start(policy, self.config.total_timeout)
        started = self._clock()
        attempts = 0

        while True:
            attempts += 1
            outcome = self._attempt(digest)

            if isinstance(outcome, AttemptSucceeded):
                return outcome.value
            if isinstance(outcome, AttemptFailed):
                raise outcome.error

            elapsed = self._clock() - started
            delay, state = backoff.next_backoff(state, policy, elapsed, self._rng)
            if delay is None:
                raise TimeoutExhaustedError(
                    outcome.error, attempts, elapsed
                ) from outcome.error

            if self.notify is not None:
                self.notify(outcome.error, delay)
            self._sleep(delay)

    def _attempt(self, digest: bytes) -> AttemptOutcome:
        """Issue one signing request and classify what happened."""
        try:
            body = SigningRequest.from_digest(digest).model_dump_json().encode("utf-8")
        except ValueError as exc:
            return AttemptFailed(SerializationError(f"could not encode request: {exc}"))

        try:
            payload = self._post(body)
        except RetryableError as exc:
            return AttemptRetryable(exc)
        except PermanentError as exc:
            return AttemptFailed(exc)

        try:
            return AttemptSucceeded(parse_signed_timestamp(payload))
        except PermanentError as exc:
            return AttemptFailed(exc)

    def _post(self, body: bytes) -> bytes:
        """POST ``body`` and return the bounded response body.

        Raises:
            RetryableError: On timeouts, 429 and 5xx answers, and when the
                body is still arriving after ``per_request_timeout`` seconds.
            PermanentError: On any other failure.
        """
        headers = {
            "Content-Type": "application/json",
            "User-Agent": self.config.user_agent,
            "Accept-Encoding": "identity",
        }
        deadline = self._clock() + self.config.per_request_timeout
        try:
            with self._http.stream(
                "POST",
                self.config.endpoint,
                content=body,
                headers=headers,
                timeout=self.config.per_request_timeout,
            ) as response:
                if is_retryable_status(response.status_code):
                    raise RetryableStatusError(response.status_code)
                if response.status_code != 200:
                    raise UnexpectedStatusError(response.status_code)
                return read_bounded(
                    response,
                    self.config.max_response_bytes,
                    deadline=deadline,
                    clock=self._clock,
                )
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(
                f"request to {self.config.endpoint} timed out: {exc}"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(
                f"request to {self.config.endpoint} failed: {exc}"
            ) from exc
