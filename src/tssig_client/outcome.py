"""Tagged result of a single signing attempt.

The retry loop dispatches on the variant, never on the type of an
arbitrary exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from .errors import PermanentError, RetryableError
from .models import SignedTimeStamp


@dataclass(frozen=True)
class AttemptSucceeded:
    value: SignedTimeStamp


@dataclass(frozen=True)
class AttemptRetryable:
    error: RetryableError


@dataclass(frozen=True)
class AttemptFailed:
    error: PermanentError


AttemptOutcome = Union[AttemptSucceeded, AttemptRetryable, AttemptFailed]
