"""Error taxonomy shared by every feedback-sync component.

Each error carries an ``ErrorKind`` tag so transports and workers can map
failures to a response without matching on concrete classes:

- VALIDATION: the caller supplied bad input (maps to HTTP 400)
- PERSISTENCE: a store was unavailable or rejected a write (maps to 503)
- NOTIFICATION: an alert could not be published or delivered (maps to 502)
"""

import enum


class ErrorKind(str, enum.Enum):
    """Category of a feedback-sync failure."""

    VALIDATION = "validation"
    PERSISTENCE = "persistence"
    NOTIFICATION = "notification"


class FeedbackSyncError(Exception):
    """Base class for all domain errors.

    Attributes:
        kind: Failure category used for dispatch.
        message: Human-readable description.
    """

    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class ValidationError(FeedbackSyncError):
    """Input violated a domain rule (score range, urgency, description)."""

    kind = ErrorKind.VALIDATION


class PersistenceError(FeedbackSyncError):
    """A feedback or report store failed."""

    kind = ErrorKind.PERSISTENCE


class NotificationError(FeedbackSyncError):
    """An alert could not be published or delivered."""

    kind = ErrorKind.NOTIFICATION
