"""
Exponential backoff for queue consumers.

Used by BaseRedisQueue.consume() to pause between reconnect attempts when
Redis is unreachable, instead of hammering it at a fixed interval.
"""

import random

from feedback_sync.queues.config import QueueConfig


class ExponentialBackoff:
    """
    Exponential backoff with jitter.

    delay(n) = min(base * multiplier**n, max_delay), then shifted by up to
    +/- jitter_range of itself and clamped at zero. reset() after a
    successful round trip.

    Usage:
        backoff = ExponentialBackoff.from_config(queue_config)
        while True:
            try:
                await read_batch()
                backoff.reset()
            except redis.ConnectionError:
                await asyncio.sleep(backoff.next_delay())
    """

    def __init__(
        self,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        multiplier: float = 2.0,
        jitter_range: float = 0.5,
    ):
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.multiplier = multiplier
        self.jitter_range = jitter_range
        self._attempt = 0

    @classmethod
    def from_config(cls, config: QueueConfig) -> "ExponentialBackoff":
        """Build a backoff from a queue's error-recovery settings."""
        return cls(
            base_delay=config.backoff_base_delay,
            max_delay=config.backoff_max_delay,
        )

    @property
    def attempt(self) -> int:
        """Number of consecutive failures since the last reset."""
        return self._attempt

    def next_delay(self) -> float:
        """Return the delay for the current attempt and advance the counter."""
        delay = min(
            self.base_delay * (self.multiplier ** self._attempt),
            self.max_delay,
        )
        jitter = delay * random.uniform(-self.jitter_range, self.jitter_range)
        self._attempt += 1
        return max(0.0, delay + jitter)

    def reset(self) -> None:
        self._attempt = 0
