"""Weekly window and aggregation math.

Pure functions over ``Feedback`` lists, kept apart from the report service
so they can be tested without stores or clocks.
"""

from collections import Counter
from datetime import date, datetime, time, timedelta, tzinfo
from decimal import ROUND_HALF_UP, Decimal

from feedback_sync.feedback.schemas import Feedback, Urgency

_TWO_PLACES = Decimal("0.01")


def _at(day: date, clock_time: time, tz: tzinfo | None) -> datetime:
    if tz is None:
        # Naive -> system local zone
        return datetime.combine(day, clock_time).astimezone()
    return datetime.combine(day, clock_time, tzinfo=tz)


def previous_week_window(today: date, tz: tzinfo | None = None) -> tuple[datetime, datetime]:
    """Return the Monday 00:00:00 to Sunday 23:59:59 window of last week.

    "Last week" is the ISO week containing ``today - 7 days``.

    Args:
        today: Current date in the reference zone.
        tz: Reference zone, None for the system local zone.
    """
    reference = today - timedelta(days=7)
    monday = reference - timedelta(days=reference.weekday())
    sunday = monday + timedelta(days=6)
    return _at(monday, time(0, 0, 0), tz), _at(sunday, time(23, 59, 59), tz)


def average_score(feedbacks: list[Feedback]) -> float:
    """Mean score rounded half-up to 2 decimals; 0.0 for no feedback."""
    if not feedbacks:
        return 0.0
    total = Decimal(sum(f.score.value for f in feedbacks))
    mean = total / Decimal(len(feedbacks))
    return float(mean.quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def count_by_day(feedbacks: list[Feedback], tz: tzinfo | None = None) -> dict[str, int]:
    """Count feedback per calendar day of ``created_at`` in the reference zone."""
    counts = Counter(
        f.created_at.astimezone(tz).date().isoformat()
        for f in feedbacks
        if f.created_at is not None
    )
    return dict(sorted(counts.items()))


def count_by_urgency(feedbacks: list[Feedback]) -> dict[str, int]:
    """Count feedback per urgency; labels never observed are omitted."""
    counts = Counter(f.urgency for f in feedbacks)
    return {u.value: counts[u] for u in Urgency if counts[u]}
