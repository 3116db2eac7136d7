"""Exponential backoff controller.

The controller is an explicit value rather than a stateful timer: the retry
loop passes a :class:`BackoffState` into :func:`next_backoff` together with
the time elapsed so far, and receives the delay to wait plus the state for
the following iteration. Time is never read here, which keeps the stop
condition testable with simulated clocks.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Optional

from .models import BackoffPolicy


@dataclass(frozen=True)
class BackoffState:
    """Backoff controller state for one ``sign`` call.

    Attributes:
        current_interval: Interval, before jitter, of the next delay.
        elapsed: Seconds elapsed when the last delay was computed.
        max_elapsed: Retry budget in seconds. Zero never stops.
    """

    current_interval: float
    elapsed: float
    max_elapsed: float


def start(policy: BackoffPolicy, max_elapsed: float) -> BackoffState:
    """Return the initial state for a new retry loop."""
    return BackoffState(
        current_interval=policy.initial_interval,
        elapsed=0.0,
        max_elapsed=max_elapsed,
    )


def randomized_interval(
    interval: float,
    randomization_factor: float,
    rng: random.Random,
) -> float:
    """Pick a value uniformly from ``interval * [1 - factor, 1 + factor]``."""
    if randomization_factor == 0:
        return interval
    delta = randomization_factor * interval
    return rng.uniform(interval - delta, interval + delta)


def next_backoff(
    state: BackoffState,
    policy: BackoffPolicy,
    elapsed: float,
    rng: Optional[random.Random] = None,
) -> tuple[Optional[float], BackoffState]:
    """Compute the delay before the next attempt.

    Args:
        state: Current controller state.
        policy: Backoff schedule.
        elapsed: Seconds elapsed since the loop started.
        rng: Random source for jitter.

    Returns:
        ``(delay, new_state)``. ``delay`` is ``None`` when waiting it out
        would push the elapsed time past ``state.max_elapsed``, meaning the
        loop must stop.
    """
    rng = rng or random.Random()
    delay = randomized_interval(state.current_interval, policy.randomization_factor, rng)
    grown = min(state.current_interval * policy.multiplier, policy.max_interval)
    new_state = replace(state, current_interval=grown, elapsed=elapsed)

    if state.max_elapsed > 0 and elapsed + delay > state.max_elapsed:
        return None, new_state
    return delay, new_state
