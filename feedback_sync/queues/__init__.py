"""
Redis Streams queue abstractions with automatic pending message reclaim.

This package provides a base class for Redis Streams queues that implements
at-least-once delivery semantics by automatically reclaiming messages that
were delivered but never acknowledged (worker crashes, or deliveries that
were deliberately left pending after a transient failure).

Classes:
    BaseRedisQueue: Abstract base class for Redis Streams queues
    StreamConfig: Configuration for a Redis Stream
    QueueConfig: Configuration for reclaim behavior
    ExponentialBackoff: Delay calculator for consumer error recovery
"""

from feedback_sync.queues.backoff import ExponentialBackoff
from feedback_sync.queues.base import BaseRedisQueue, StreamConfig
from feedback_sync.queues.config import QueueConfig

__all__ = ["BaseRedisQueue", "ExponentialBackoff", "QueueConfig", "StreamConfig"]
