"""
Consumer-group queue over a Redis stream.

Entries are delivered at least once. A consumer that cannot finish an
entry leaves it unacknowledged; after ``idle_timeout_ms`` another read
claims it again with XAUTOCLAIM, and once it has been delivered more than
``max_delivery_attempts`` times it is copied to the dead letter stream and
acknowledged. Entries that cannot be decoded are dead-lettered at once.
"""

import asyncio
import logging
import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from dataclasses import dataclass
from types import TracebackType
from typing import Generic, TypeVar

import redis.asyncio as redis

from feedback_sync.observability.metrics import get_metrics
from feedback_sync.queues.backoff import ExponentialBackoff
from feedback_sync.queues.config import QueueConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

REASON_MAX_RETRIES = "max_retries_exceeded"


@dataclass
class StreamConfig:
    """Names and trimming bound of one stream and its dead letter stream."""

    stream_name: str
    consumer_group: str
    dlq_stream_name: str
    max_stream_length: int = 50_000


class BaseRedisQueue(ABC, Generic[T]):
    """
    Stream reader shared by concrete queues.

    A subclass names its stream (_get_stream_config), its consumers
    (_get_consumer_prefix) and turns raw entry fields into jobs
    (_parse_job, _set_job_retry_count). Publishing is left to the subclass.

        async with MyQueue(redis_url) as queue:
            async for job in queue.consume():
                await handle(job)
                await queue.ack(job.message_id)
    """

    def __init__(self, redis_url: str, queue_config: QueueConfig | None = None):
        self._redis_url = redis_url
        self._queue_config = queue_config or QueueConfig()

        self._redis: redis.Redis | None = None
        self._consumer_name: str | None = None
        self._stream_config: StreamConfig | None = None

    @abstractmethod
    def _parse_job(self, message_id: str, fields: dict[str, str]) -> T:
        """Build a job from entry fields; any exception marks the entry unparseable."""

    @abstractmethod
    def _get_stream_config(self) -> StreamConfig: ...

    @abstractmethod
    def _get_consumer_prefix(self) -> str: ...

    @abstractmethod
    def _set_job_retry_count(self, job: T, retry_count: int) -> None:
        """Record how many earlier deliveries of this entry were not acknowledged."""

    # ── Lifecycle ────────────────────────────────────────

    async def connect(self) -> None:
        """Open the client, pick a consumer name and make sure the group exists."""
        self._redis = redis.from_url(self._redis_url, encoding="utf-8", decode_responses=True)
        self._stream_config = self._get_stream_config()
        self._consumer_name = f"{self._get_consumer_prefix()}_{uuid.uuid4().hex[:8]}"

        await self._ensure_group()
        logger.info(
            f"Consumer {self._consumer_name} attached to "
            f"{self._stream_config.stream_name}/{self._stream_config.consumer_group}"
        )

    async def _ensure_group(self) -> None:
        try:
            await self.redis.xgroup_create(
                name=self.stream_config.stream_name,
                groupname=self.stream_config.consumer_group,
                id="0",
                mkstream=True,
            )
        except redis.ResponseError as e:
            # BUSYGROUP: another process created it first
            if "BUSYGROUP" not in str(e):
                raise
            return
        logger.info(f"Created consumer group {self.stream_config.consumer_group}")

    async def close(self) -> None:
        if self._redis is None:
            return
        await self._redis.aclose()
        self._redis = None
        logger.info(f"Consumer {self._consumer_name} disconnected")

    async def __aenter__(self) -> "BaseRedisQueue[T]":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def redis(self) -> redis.Redis:
        if self._redis is None:
            raise RuntimeError("Not connected to Redis; call connect() first")
        return self._redis

    @property
    def stream_config(self) -> StreamConfig:
        if self._stream_config is None:
            raise RuntimeError("Not connected; call connect() first")
        return self._stream_config

    # ── Reading ──────────────────────────────────────────

    async def consume(self, count: int = 10, block_ms: int = 5000) -> AsyncIterator[T]:
        """
        Yield jobs until cancelled.

        Each round first drains idle pending entries, then blocks up to
        ``block_ms`` for new ones. Redis errors pause the loop with
        exponential backoff instead of ending it.
        """
        if self._consumer_name is None:
            raise RuntimeError("Not connected; call connect() first")

        backoff = ExponentialBackoff.from_config(self._queue_config)
        reclaim_count = min(count, self._queue_config.reclaim_batch_size)

        while True:
            try:
                async for job in self._reclaim_pending(reclaim_count):
                    yield job

                response = await self.redis.xreadgroup(
                    groupname=self.stream_config.consumer_group,
                    consumername=self._consumer_name,
                    streams={self.stream_config.stream_name: ">"},
                    count=count,
                    block=block_ms,
                )
                backoff.reset()

                # [[stream, [(id, fields), ...]]]
                for _stream, entries in response or []:
                    for message_id, fields in entries:
                        job = await self._decode(message_id, fields, retry_count=0)
                        if job is not None:
                            yield job

            except asyncio.CancelledError:
                logger.info(f"Consumer {self._consumer_name} cancelled")
                break
            except redis.RedisError as e:
                delay = backoff.next_delay()
                logger.error(
                    f"Stream read failed ({e}); retry {backoff.attempt} in {delay:.1f}s"
                )
                await asyncio.sleep(delay)

    async def _decode(self, message_id: str, fields: dict[str, str], retry_count: int) -> T | None:
        """Parse an entry, dead-lettering it when it cannot be parsed."""
        try:
            job = self._parse_job(message_id, fields)
        except Exception as e:
            logger.error(f"Entry {message_id} is unparseable: {e}")
            await self._dead_letter(message_id, fields, f"unparseable: {e}")
            return None
        self._set_job_retry_count(job, retry_count)
        return job

    async def _reclaim_pending(self, count: int) -> AsyncIterator[T]:
        """Claim entries idle longer than idle_timeout_ms and yield them again."""
        try:
            # [next_start_id, [(id, fields), ...]] plus [deleted_ids] on Redis 7+
            result = await self.redis.xautoclaim(
                name=self.stream_config.stream_name,
                groupname=self.stream_config.consumer_group,
                consumername=self._consumer_name,
                min_idle_time=self._queue_config.idle_timeout_ms,
                start_id="0-0",
                count=count,
            )
        except redis.ResponseError as e:
            if "unknown command" in str(e).lower():
                logger.warning("XAUTOCLAIM needs Redis 6.2+; pending entries are not reclaimed")
            else:
                logger.error(f"XAUTOCLAIM failed: {e}")
            return

        claimed = result[1] if result else []
        if not claimed:
            return

        stream = self.stream_config.stream_name
        max_attempts = self._queue_config.max_delivery_attempts
        metrics = get_metrics()
        deliveries = await self._get_delivery_counts([message_id for message_id, _ in claimed])
        logger.info(f"Claimed {len(claimed)} idle entries from {stream}")

        for message_id, fields in claimed:
            delivered = deliveries.get(message_id, 1)
            if delivered > max_attempts:
                logger.warning(
                    f"Entry {message_id} delivered {delivered} times (limit {max_attempts})"
                )
                await self._dead_letter(message_id, fields, REASON_MAX_RETRIES)
                metrics.dlq_max_retries.labels(queue=stream).inc()
                continue

            # This delivery is counted in `delivered` but is not itself a retry
            job = await self._decode(message_id, fields, retry_count=delivered - 1)
            if job is not None:
                metrics.pending_reclaimed.labels(queue=stream).inc()
                yield job

    async def _get_delivery_counts(self, message_ids: list[str]) -> dict[str, int]:
        """times_delivered per entry from XPENDING; 1 where the lookup fails."""
        counts: dict[str, int] = {}
        for message_id in message_ids:
            try:
                # Exact-id range: the entry may sit anywhere in the pending list
                pending = await self.redis.xpending_range(
                    name=self.stream_config.stream_name,
                    groupname=self.stream_config.consumer_group,
                    min=message_id,
                    max=message_id,
                    count=1,
                )
            except redis.RedisError as e:
                logger.error(f"XPENDING failed for {message_id}, assuming first delivery: {e}")
                pending = []
            counts[message_id] = next(
                (p["times_delivered"] for p in pending if p["message_id"] == message_id), 1
            )
        return counts

    # ── Settling ─────────────────────────────────────────

    async def ack(self, message_id: str) -> None:
        await self.redis.xack(
            self.stream_config.stream_name,
            self.stream_config.consumer_group,
            message_id,
        )
        logger.debug(f"Acked {message_id}")

    async def _dead_letter(self, message_id: str, fields: dict[str, str], reason: str | None) -> None:
        await self._move_to_dlq(message_id, fields, reason)
        await self.ack(message_id)

    async def _move_to_dlq(self, original_id: str, fields: dict[str, str], error: str | None) -> None:
        await self.redis.xadd(
            self.stream_config.dlq_stream_name,
            {
                **fields,
                "original_id": original_id,
                "error": error or "unknown",
                "failed_at": str(time.time()),
            },
            maxlen=self._queue_config.dlq_max_length,
            approximate=True,
        )
        logger.warning(
            f"Dead-lettered {original_id} to {self.stream_config.dlq_stream_name}: {error}"
        )

    # ── Introspection ────────────────────────────────────

    async def get_pending_count(self) -> int:
        """Delivered but unacknowledged entries; 0 if Redis cannot answer."""
        try:
            summary = await self.redis.xpending(
                self.stream_config.stream_name,
                self.stream_config.consumer_group,
            )
        except redis.RedisError:
            return 0
        return summary["pending"] if summary else 0

    async def health_check(self) -> bool:
        try:
            return bool(await self.redis.ping())
        except (redis.RedisError, RuntimeError):
            return False
