"""Tests for the consumer reconnect backoff."""

from feedback_sync.queues.backoff import ExponentialBackoff
from feedback_sync.queues.config import QueueConfig


class TestExponentialBackoff:
    """Tests for ExponentialBackoff delay calculation."""

    def test_first_delay_is_base(self):
        backoff = ExponentialBackoff(base_delay=1.0, max_delay=60.0, jitter_range=0.0)
        assert backoff.next_delay() == 1.0

    def test_delays_grow_geometrically(self):
        backoff = ExponentialBackoff(
            base_delay=0.5, max_delay=60.0, multiplier=3.0, jitter_range=0.0
        )
        assert [backoff.next_delay() for _ in range(3)] == [0.5, 1.5, 4.5]

    def test_caps_at_max_delay(self):
        backoff = ExponentialBackoff(
            base_delay=10.0, max_delay=30.0, multiplier=2.0, jitter_range=0.0
        )
        delays = [backoff.next_delay() for _ in range(5)]
        assert delays[-1] == 30.0
        assert max(delays) == 30.0

    def test_jitter_within_range(self):
        backoff = ExponentialBackoff(base_delay=4.0, max_delay=4.0, jitter_range=0.25)
        for _ in range(50):
            assert 3.0 <= backoff.next_delay() <= 5.0

    def test_never_negative(self):
        backoff = ExponentialBackoff(base_delay=0.5, max_delay=60.0, jitter_range=1.0)
        for _ in range(100):
            assert backoff.next_delay() >= 0

    def test_reset(self):
        backoff = ExponentialBackoff(base_delay=1.0, jitter_range=0.0)
        for _ in range(3):
            backoff.next_delay()
        assert backoff.attempt == 3

        backoff.reset()
        assert backoff.attempt == 0
        assert backoff.next_delay() == 1.0

    def test_from_config(self):
        config = QueueConfig(backoff_base_delay=0.2, backoff_max_delay=5.0)
        backoff = ExponentialBackoff.from_config(config)
        assert backoff.base_delay == 0.2
        assert backoff.max_delay == 5.0
