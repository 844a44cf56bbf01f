"""
Queue configuration for Redis Streams message reclaim behavior.

Provides settings for idle message detection and retry limits to ensure
at-least-once delivery semantics with dead letter queue handling.
"""

from dataclasses import dataclass


@dataclass
class QueueConfig:
    """
    Configuration for queue message reclaim behavior.

    Attributes:
        idle_timeout_ms: Time in milliseconds after which an unacknowledged
            message is eligible for reclaim. Also acts as the retry delay for
            alerts whose delivery failed and were left pending.

        max_delivery_attempts: Maximum number of times a message can be
            delivered before being moved to the dead letter queue.

        reclaim_batch_size: Number of pending messages to attempt to reclaim
            in a single XAUTOCLAIM call.

        dlq_max_length: Approximate cap on the dead letter stream length.
    """

    idle_timeout_ms: int = 60_000
    max_delivery_attempts: int = 5
    reclaim_batch_size: int = 10
    dlq_max_length: int = 10_000

    # Backoff settings for consume() error recovery
    backoff_base_delay: float = 1.0
    backoff_max_delay: float = 60.0
