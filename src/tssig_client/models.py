"""Pydantic models for the TSSig client.

These models represent the data exchanged with a TSSig signing service
(the request payload and the signed timestamp it returns), the client
configuration, and the result of timestamping a file on disk.
"""

from __future__ import annotations

import base64
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

# 60 seconds gives roughly 10 attempts under the default exponential backoff.
DEFAULT_TOTAL_TIMEOUT = 60.0
DEFAULT_REQUEST_TIMEOUT = 5.0
DEFAULT_MAX_RESPONSE_BYTES = 768
DEFAULT_USER_AGENT = "tssig-client-python"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class HashAlgorithm(str, Enum):
    """Hash algorithms whose digests the signing service accepts.

    SHA-256 is the default. The service takes 224, 256, 384 and 512 bit
    digests, one per member.
    """

    SHA224 = "sha224"
    SHA256 = "sha256"
    SHA384 = "sha384"
    SHA512 = "sha512"


# ---------------------------------------------------------------------------
# Wire models
# ---------------------------------------------------------------------------


class SigningRequest(BaseModel):
    """Request body POSTed to the signing service.

    Attributes:
        digest: URL-safe base64 encoding of the raw digest bytes.
    """

    digest: str

    @classmethod
    def from_digest(cls, digest: bytes) -> "SigningRequest":
        return cls(digest=base64.urlsafe_b64encode(digest).decode("ascii"))


class SignedTimeStamp(BaseModel):
    """Signed timestamp issued by the service.

    The structure is opaque to this client: any JSON object is accepted and
    its members are kept as received.
    """

    model_config = {"extra": "allow"}


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class BackoffPolicy(BaseModel):
    """Exponential backoff schedule between retries.

    Attributes:
        initial_interval: First retry interval in seconds.
        randomization_factor: Jitter applied to each interval, as a fraction
            of it (0 disables jitter).
        multiplier: Growth factor applied to the interval after each retry.
        max_interval: Upper bound for the interval in seconds.
    """

    initial_interval: float = Field(default=0.5, gt=0)
    randomization_factor: float = Field(default=0.5, ge=0, lt=1)
    multiplier: float = Field(default=1.5, ge=1)
    max_interval: float = Field(default=60.0, gt=0)


class ClientConfig(BaseModel):
    """Configuration for a :class:`~tssig_client.client.TimestampClient`.

    Attributes:
        endpoint: URL of the signing service.
        total_timeout: Retry budget in seconds across all attempts.
            Zero retries forever.
        per_request_timeout: Timeout in seconds for a single request.
        max_response_bytes: Largest response body accepted.
        user_agent: Value of the ``User-Agent`` header.
        backoff: Backoff schedule between retries.
    """

    endpoint: str
    total_timeout: float = Field(default=DEFAULT_TOTAL_TIMEOUT, ge=0)
    per_request_timeout: float = Field(default=DEFAULT_REQUEST_TIMEOUT, gt=0)
    max_response_bytes: int = Field(default=DEFAULT_MAX_RESPONSE_BYTES, gt=0)
    user_agent: str = DEFAULT_USER_AGENT
    backoff: BackoffPolicy = Field(default_factory=BackoffPolicy)


# ---------------------------------------------------------------------------
# File timestamping result
# ---------------------------------------------------------------------------


class TimestampResult(BaseModel):
    """Result of timestamping a file.

    Attributes:
        result_id: Unique identifier.
        file_path: Absolute path to the file that was timestamped.
        file_hash: Hex-encoded digest of the file contents.
        hash_algorithm: Algorithm used to produce file_hash.
        endpoint: Signing service that issued the timestamp.
        signed_timestamp: The signed timestamp returned by the service.
        sts_path: Path of the saved ``.sts.json`` file, if saved.
        timestamped_at: When the operation completed.
    """

    result_id: str = Field(default_factory=lambda: str(uuid4()))
    file_path: str
    file_hash: str
    hash_algorithm: HashAlgorithm = HashAlgorithm.SHA256
    endpoint: str
    signed_timestamp: SignedTimeStamp
    sts_path: Optional[str] = None
    timestamped_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
