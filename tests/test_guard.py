"""Tests for bounded response reading and signed timestamp parsing."""

import gzip

import httpx
import pytest

from tssig_client.errors import (
    MalformedResponseError,
    PermanentError,
    RequestTimeoutError,
    ResponseTooLargeError,
    RetryableError,
)
from tssig_client.guard import parse_signed_timestamp, read_bounded
from tssig_client.models import DEFAULT_MAX_RESPONSE_BYTES


def _streamed(*chunks: bytes, **headers: str) -> httpx.Response:
    """An unread response whose body arrives in the given chunks."""
    return httpx.Response(200, headers=headers, content=iter(chunks))


class TestReadBounded:
    """read_bounded enforces the ceiling on declared and actual sizes."""

    def test_default_ceiling(self):
        assert DEFAULT_MAX_RESPONSE_BYTES == 768

    def test_reads_body_within_limit(self):
        assert read_bounded(_streamed(b"abc", b"def"), 10) == b"abcdef"

    def test_reads_all_short_chunks(self):
        chunks = [bytes([i]) for i in range(100)]
        assert read_bounded(_streamed(*chunks), 100) == bytes(range(100))

    def test_exactly_at_limit(self):
        assert read_bounded(_streamed(b"x" * 768), 768) == b"x" * 768

    def test_one_over_limit(self):
        with pytest.raises(ResponseTooLargeError) as exc_info:
            read_bounded(_streamed(b"x" * 768, b"y"), 768)
        assert exc_info.value.limit == 768
        assert "bigger" in str(exc_info.value)

    def test_declared_length_over_limit(self):
        response = httpx.Response(200, headers={"Content-Length": "800"}, content=b"{}")
        with pytest.raises(ResponseTooLargeError, match="is 800 bytes"):
            read_bounded(response, 768)

    def test_falsified_declared_length(self):
        response = _streamed(b"x" * 1000, **{"Content-Length": "10"})
        with pytest.raises(ResponseTooLargeError):
            read_bounded(response, 768)

    def test_invalid_declared_length(self):
        response = httpx.Response(200, headers={"Content-Length": "lots"}, content=b"{}")
        with pytest.raises(MalformedResponseError):
            read_bounded(response, 768)

    def test_oversize_is_permanent(self):
        with pytest.raises(PermanentError):
            read_bounded(_streamed(b"x" * 20), 10)

    def test_gzip_encoding_is_refused(self):
        response = _streamed(gzip.compress(b" " * 100_000), **{"Content-Encoding": "gzip"})
        with pytest.raises(MalformedResponseError, match="gzip"):
            read_bounded(response, 768)

    def test_identity_encoding_is_accepted(self):
        response = _streamed(b"{}", **{"Content-Encoding": "identity"})
        assert read_bounded(response, 768) == b"{}"


class TestReadDeadline:
    """read_bounded abandons a body that is still arriving after the deadline."""

    def test_gives_up_once_deadline_passes(self):
        now = [0.0]

        def chunks():
            for _ in range(10):
                now[0] += 1.0
                yield b"x"

        response = httpx.Response(200, content=chunks())
        with pytest.raises(RequestTimeoutError):
            read_bounded(response, 768, deadline=3.0, clock=lambda: now[0])
        assert now[0] == 4.0

    def test_fast_body_meets_deadline(self):
        response = _streamed(b"ab", b"cd")
        assert read_bounded(response, 768, deadline=1.0, clock=lambda: 0.0) == b"abcd"

    def test_deadline_timeout_is_retryable(self):
        assert isinstance(RequestTimeoutError("late"), RetryableError)


class TestParseSignedTimestamp:
    def test_parses_object(self):
        sts = parse_signed_timestamp(b'{"digest": "AAAA", "time": "2026-10-18T12:00:00Z"}')
        assert sts.model_dump() == {"digest": "AAAA", "time": "2026-10-18T12:00:00Z"}

    def test_empty_object(self):
        assert parse_signed_timestamp(b"{}").model_dump() == {}

    @pytest.mark.parametrize("payload", [b"", b"{", b"[]", b"42", b'"text"', b"\xff\xfe"])
    def test_rejects_non_objects(self, payload: bytes):
        with pytest.raises(MalformedResponseError):
            parse_signed_timestamp(payload)
