"""Exponential backoff policy for delivery retries.

The policy is a plain value: it computes how long to wait after a failed
attempt and leaves the waiting itself to the caller, so the dispatcher can
inject a fake sleep in tests.
"""

import random
from dataclasses import dataclass, field
from typing import Callable


@dataclass(frozen=True)
class BackoffPolicy:
    """Configuration and computation of exponential retry backoff.

    Delay after the attempt with zero-based index ``n``::

        delay = min(base_delay_ms * 2 ** n, max_delay_ms)
        delay += random() * jitter_ratio * delay

    The jitter spreads simultaneous retries of many notifications so they
    do not hit a recovering provider at the same instant.

    Attributes:
        base_delay_ms: Delay after the first failed attempt (milliseconds)
        max_delay_ms: Cap applied before jitter (milliseconds)
        jitter_ratio: Upper bound of the jitter as a fraction of the delay
        random_source: Callable returning a float in [0, 1)

    Example:
        policy = BackoffPolicy(base_delay_ms=100, max_delay_ms=5000)
        policy.delay_ms(0)  # ~100
        policy.delay_ms(3)  # ~800
        policy.delay_ms(10)  # ~5000
    """

    base_delay_ms: int = 100
    max_delay_ms: int = 5000
    jitter_ratio: float = 0.02
    random_source: Callable[[], float] = field(
        default=random.random, compare=False, repr=False
    )

    def __post_init__(self) -> None:
        """Validate configuration values."""
        if self.base_delay_ms < 0:
            raise ValueError("base_delay_ms must be >= 0")
        if self.max_delay_ms < self.base_delay_ms:
            raise ValueError("max_delay_ms must be >= base_delay_ms")
        if not 0 <= self.jitter_ratio <= 1:
            raise ValueError("jitter_ratio must be between 0 and 1")

    def base_delay_for(self, attempt_index: int) -> int:
        """Capped exponential delay without jitter (milliseconds)."""
        if attempt_index < 0:
            raise ValueError("attempt_index must be >= 0")
        delay = self.base_delay_ms * (2**attempt_index)
        return min(delay, self.max_delay_ms)

    def delay_ms(self, attempt_index: int) -> int:
        """Delay to wait after the attempt with the given zero-based index."""
        delay = self.base_delay_for(attempt_index)
        jitter = self.random_source() * self.jitter_ratio * delay
        return int(delay + jitter)

    def delay_seconds(self, attempt_index: int) -> float:
        return self.delay_ms(attempt_index) / 1000
