"""Shared fixtures for TSSig client tests."""

import json
import random
from typing import Callable, Optional

import httpx
import pytest

from tssig_client.client import TimestampClient
from tssig_client.models import BackoffPolicy, ClientConfig

ENDPOINT = "https://tssig.test/sign"

Reply = Callable[[httpx.Request], httpx.Response]


class FakeClock:
    """Monotonic clock that only moves when slept on (or advanced by hand)."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class MockSigningService:
    """Scripted signing service for ``httpx.MockTransport``.

    Each request gets the next reply from ``replies``; the last reply is
    repeated once the script runs out.
    """

    def __init__(self, *replies: Reply) -> None:
        self.replies = list(replies)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests), len(self.replies)) - 1
        return self.replies[index](request)


def status(code: int, body: bytes = b"") -> Reply:
    """Reply with a fixed status and body."""
    return lambda request: httpx.Response(code, content=body)


def json_body(size: int) -> bytes:
    """A well-formed signed timestamp JSON object of exactly ``size`` bytes."""
    prefix = b'{"signature": "'
    suffix = b'"}'
    return prefix + b"A" * (size - len(prefix) - len(suffix)) + suffix


def signed(extra: Optional[dict] = None) -> Reply:
    """Reply 200 with a small signed timestamp."""
    payload = {"digest": "AAAA", "signature": "c2lnbmF0dXJl"}
    payload.update(extra or {})
    return status(200, json.dumps(payload).encode("utf-8"))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_client(clock: FakeClock):
    """Build a TimestampClient talking to a MockSigningService."""

    clients = []

    def _make(service: MockSigningService, **overrides) -> TimestampClient:
        notify = overrides.pop("notify", None)
        config = ClientConfig(endpoint=ENDPOINT, **overrides)
        http = httpx.Client(transport=httpx.MockTransport(service))
        client = TimestampClient(
            config=config,
            notify=notify,
            http_client=http,
            sleep=clock.sleep,
            clock=clock,
            rng=random.Random(1234),
        )
        clients.append(http)
        return client

    yield _make

    for http in clients:
        http.close()


@pytest.fixture
def no_jitter() -> BackoffPolicy:
    return BackoffPolicy(randomization_factor=0)
