"""Schema definitions for survey feedback.

``Score`` and ``Urgency`` are value objects that validate on construction.
``Feedback`` is the entity persisted by the feedback store and carried on the
critical-feedback queue. Its content fields are fixed once built; only the
identity fields (``id``, ``created_at``) may be filled in later, and only once.
"""

import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from feedback_sync.errors import ValidationError

MIN_SCORE = 0
MAX_SCORE = 10

# Scores at or below this value raise an admin alert
CRITICAL_SCORE_THRESHOLD = 3

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Current time as an aware datetime in the system local zone."""
    return datetime.now().astimezone()


def as_aware(value: datetime) -> datetime:
    """Attach the system local zone to a naive datetime."""
    if value.tzinfo is None:
        return value.astimezone()
    return value


@dataclass(frozen=True)
class Score:
    """An integer rating between 0 and 10 inclusive."""

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(f"Score must be an integer, got {self.value!r}")
        if not (MIN_SCORE <= self.value <= MAX_SCORE):
            raise ValidationError(
                f"Score must be between {MIN_SCORE} and {MAX_SCORE}, got {self.value}"
            )

    @property
    def is_critical(self) -> bool:
        return self.value <= CRITICAL_SCORE_THRESHOLD

    def __str__(self) -> str:
        return str(self.value)


class Urgency(str, Enum):
    """How urgently the submitter wants the feedback looked at."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"

    @classmethod
    def parse(cls, value: "str | Urgency | None") -> "Urgency":
        """Parse a free-form urgency label.

        Surrounding whitespace and case are ignored. A missing or blank
        label means LOW.

        Raises:
            ValidationError: If the label is not LOW, MEDIUM or HIGH.
        """
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.LOW
        if not isinstance(value, str):
            raise ValidationError(f"Invalid urgency {value!r}")

        normalized = value.strip().upper()
        if not normalized:
            return cls.LOW
        try:
            return cls(normalized)
        except ValueError:
            raise ValidationError(
                f"Invalid urgency {value!r}. Must be one of: "
                f"{', '.join(u.value for u in cls)}"
            ) from None


_CONTENT_FIELDS = frozenset({"description", "score", "urgency"})
_IDENTITY_FIELDS = frozenset({"id", "created_at"})


@dataclass
class Feedback:
    """A single survey answer.

    Build new submissions with ``Feedback.create`` and stored ones with
    ``Feedback.rehydrate``. Direct construction validates the same way but
    does not assign identity.

    Attributes:
        description: Free-text comment, trimmed, never blank.
        score: Numeric rating.
        urgency: Urgency tag, LOW when the submitter gave none.
        id: Opaque unique identifier (UUID4 string).
        created_at: Submission time, timezone-aware.
    """

    description: str
    score: Score
    urgency: Urgency = Urgency.LOW
    id: str | None = None
    created_at: datetime | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.description, str) or not self.description.strip():
            raise ValidationError("Description is required")
        if not isinstance(self.score, Score):
            raise ValidationError(f"Invalid score {self.score!r}")
        object.__setattr__(self, "description", self.description.strip())
        object.__setattr__(self, "urgency", Urgency.parse(self.urgency))
        if self.created_at is not None:
            object.__setattr__(self, "created_at", as_aware(self.created_at))

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _CONTENT_FIELDS and name in self.__dict__:
            raise AttributeError(f"Feedback.{name} cannot be reassigned")
        if name in _IDENTITY_FIELDS and self.__dict__.get(name) is not None:
            raise AttributeError(f"Feedback.{name} is already set")
        super().__setattr__(name, value)

    @classmethod
    def create(
        cls,
        description: str,
        score: "int | Score",
        urgency: "str | Urgency | None" = None,
        *,
        clock: Clock = local_now,
    ) -> "Feedback":
        """Build a new submission with a fresh id and the current time."""
        return cls(
            description=description,
            score=score if isinstance(score, Score) else Score(score),
            urgency=Urgency.parse(urgency),
            id=str(uuid.uuid4()),
            created_at=clock(),
        )

    @classmethod
    def rehydrate(
        cls,
        id: str | None,
        description: str,
        score: "int | Score",
        urgency: "str | Urgency | None",
        created_at: datetime | None,
    ) -> "Feedback":
        """Rebuild a stored feedback, keeping its original identity."""
        return cls(
            description=description,
            score=score if isinstance(score, Score) else Score(score),
            urgency=Urgency.parse(urgency),
            id=id,
            created_at=created_at,
        )

    @property
    def is_critical(self) -> bool:
        return self.score.is_critical

    def backfill_identity(self, clock: Clock = local_now) -> None:
        """Assign an id and creation time if they are still unset."""
        if self.id is None:
            self.id = str(uuid.uuid4())
        if self.created_at is None:
            self.created_at = clock()

    def to_dict(self) -> dict[str, Any]:
        """Serialize for queue payloads."""
        return {
            "id": self.id,
            "description": self.description,
            "score": self.score.value,
            "urgency": self.urgency.value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Feedback":
        """Deserialize a queue payload produced by ``to_dict``."""
        created_at = data.get("created_at")
        return cls.rehydrate(
            id=data.get("id"),
            description=data.get("description"),
            score=data.get("score"),
            urgency=data.get("urgency"),
            created_at=datetime.fromisoformat(created_at) if created_at else None,
        )
