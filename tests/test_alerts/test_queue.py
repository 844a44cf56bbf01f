"""Tests for the critical-feedback Redis stream."""

import json
from unittest.mock import AsyncMock

import pytest

from feedback_sync.alerts.config import AlertConfig
from feedback_sync.alerts.queue import CriticalFeedbackQueue
from feedback_sync.observability.tracing import TRACE_PARENT_FIELD


@pytest.fixture
def alert_config():
    return AlertConfig(
        stream_name="critical_test",
        consumer_group="admins_test",
        dlq_stream_name="critical_test:dlq",
        max_stream_length=5_000,
        idle_timeout_ms=2_000,
        max_delivery_attempts=4,
    )


@pytest.fixture
def queue(alert_config):
    q = CriticalFeedbackQueue(config=alert_config, redis_url="redis://localhost:6379/1")
    q._redis = AsyncMock()
    q._redis.xadd.return_value = "1700000000000-0"
    q._consumer_name = "notify_worker_test"
    q._stream_config = q._get_stream_config()
    return q


class TestCriticalFeedbackQueueConfig:
    """The queue is shaped by AlertConfig."""

    def test_stream_config(self, queue):
        sc = queue.stream_config
        assert sc.stream_name == "critical_test"
        assert sc.consumer_group == "admins_test"
        assert sc.dlq_stream_name == "critical_test:dlq"
        assert sc.max_stream_length == 5_000

    def test_reclaim_settings(self, queue):
        assert queue._queue_config.idle_timeout_ms == 2_000
        assert queue._queue_config.max_delivery_attempts == 4

    def test_consumer_prefix(self, queue):
        assert queue._get_consumer_prefix() == "notify_worker"

    def test_defaults(self):
        config = AlertConfig()
        assert config.stream_name == "critical_feedbacks"
        assert config.consumer_group == "admin_notifiers"
        assert config.dlq_stream_name == "critical_feedbacks:dlq"


class TestPublish:
    """Tests for CriticalFeedbackQueue.publish."""

    @pytest.mark.asyncio
    async def test_publish_fields(self, queue, critical_feedback):
        message_id = await queue.publish(critical_feedback)

        assert message_id == "1700000000000-0"
        kwargs = queue._redis.xadd.call_args.kwargs
        assert kwargs["name"] == "critical_test"
        assert kwargs["maxlen"] == 5_000
        assert kwargs["approximate"] is True

        fields = kwargs["fields"]
        assert json.loads(fields["feedback"]) == critical_feedback.to_dict()
        assert float(fields["published_at"]) > 0

    @pytest.mark.asyncio
    async def test_no_trace_field_without_span(self, queue, critical_feedback):
        await queue.publish(critical_feedback)
        assert TRACE_PARENT_FIELD not in queue._redis.xadd.call_args.kwargs["fields"]


class TestParseJob:
    """Tests for turning stream fields back into jobs."""

    def test_round_trip(self, queue, critical_feedback):
        fields = {
            "feedback": json.dumps(critical_feedback.to_dict()),
            "published_at": "1700000000.5",
        }

        job = queue._parse_job("1-0", fields)

        assert job.message_id == "1-0"
        assert job.feedback == critical_feedback
        assert job.published_at == 1700000000.5
        assert job.retry_count == 0
        assert job.trace_fields == {}

    def test_carries_traceparent(self, queue, critical_feedback):
        traceparent = "00-0af7651916cd43dd8448eb211c80319c-b7ad6b7169203331-01"
        fields = {
            "feedback": json.dumps(critical_feedback.to_dict()),
            TRACE_PARENT_FIELD: traceparent,
        }

        job = queue._parse_job("1-0", fields)

        assert job.published_at is None
        assert job.trace_fields == {TRACE_PARENT_FIELD: traceparent}

    def test_missing_payload_raises(self, queue):
        with pytest.raises(KeyError):
            queue._parse_job("1-0", {"published_at": "1"})

    def test_set_retry_count(self, queue, critical_feedback):
        job = queue._parse_job("1-0", {"feedback": json.dumps(critical_feedback.to_dict())})
        queue._set_job_retry_count(job, 3)
        assert job.retry_count == 3
