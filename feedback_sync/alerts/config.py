"""Critical-alert configuration.

``AlertConfig`` controls the Redis stream that carries critical feedback from
the API to the notify worker (``ALERTS_*`` environment variables).
``NotifierConfig`` controls how the admin is reached (``NOTIFIER_*``).
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AlertConfig(BaseSettings):
    """Configuration for the critical-feedback queue and its worker."""

    model_config = SettingsConfigDict(
        env_prefix="ALERTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    stream_name: str = Field(
        default="critical_feedbacks",
        description="Redis stream carrying critical feedback",
    )
    consumer_group: str = Field(
        default="admin_notifiers",
        description="Consumer group shared by notify workers",
    )
    dlq_stream_name: str = Field(
        default="critical_feedbacks:dlq",
        description="Dead letter stream for undeliverable alerts",
    )
    max_stream_length: int = Field(
        default=100_000,
        ge=1_000,
        description="Approximate cap on the alert stream length",
    )
    idle_timeout_ms: int = Field(
        default=60_000,
        ge=1_000,
        description=(
            "How long an unacknowledged alert waits before it is redelivered. "
            "Also the retry delay after a failed delivery."
        ),
    )
    max_delivery_attempts: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Deliveries before an alert is moved to the dead letter stream",
    )
    worker_batch_size: int = Field(
        default=10,
        ge=1,
        le=500,
        description="Messages read per XREADGROUP call",
    )
    worker_block_ms: int = Field(
        default=5_000,
        ge=100,
        description="How long the worker blocks waiting for new alerts",
    )


class NotifierConfig(BaseSettings):
    """How admin notifications are delivered.

    SendGrid e-mail is used when an API key and admin address are set,
    otherwise a webhook when ``webhook_url`` is set, otherwise alerts are
    only logged.
    """

    model_config = SettingsConfigDict(
        env_prefix="NOTIFIER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    sendgrid_api_key: str | None = None
    sendgrid_url: str = "https://api.sendgrid.com/v3/mail/send"
    admin_email: str | None = None
    from_email: str = "noreply@feedback-sync.local"
    subject: str = "ALERT: Critical feedback received"

    webhook_url: str | None = None

    timeout_seconds: float = Field(default=10.0, gt=0.0, le=120.0)

    @property
    def sendgrid_configured(self) -> bool:
        """Check if e-mail delivery is configured."""
        return bool(self.sendgrid_api_key) and bool(self.admin_email)
