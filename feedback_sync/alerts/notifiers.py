"""Admin notification channels.

An ``AdminNotifier`` delivers the plain-text alert built by ``NotifyAdmin``.
Concrete channels post over HTTP with a short-lived ``httpx.AsyncClient``
per call; any failure surfaces as ``NotificationError`` so the worker can
leave the alert pending for redelivery.
"""

import logging
from abc import ABC, abstractmethod

import httpx

from feedback_sync.alerts.config import NotifierConfig
from feedback_sync.errors import NotificationError

logger = logging.getLogger(__name__)


class AdminNotifier(ABC):
    """Abstract base for admin notification channels."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Channel identifier (e.g. 'sendgrid', 'webhook')."""

    @abstractmethod
    async def send(self, message: str) -> None:
        """Deliver a message to the administrator.

        Raises:
            NotificationError: If delivery failed.
        """


class SendGridNotifier(AdminNotifier):
    """Sends the alert as a plain-text e-mail through the SendGrid v3 API."""

    def __init__(
        self,
        api_key: str,
        admin_email: str,
        from_email: str,
        subject: str,
        url: str = "https://api.sendgrid.com/v3/mail/send",
        timeout: float = 10.0,
    ) -> None:
        self._api_key = api_key
        self._admin_email = admin_email
        self._from_email = from_email
        self._subject = subject
        self._url = url
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "sendgrid"

    def _build_payload(self, message: str) -> dict:
        return {
            "personalizations": [{"to": [{"email": self._admin_email}]}],
            "from": {"email": self._from_email},
            "subject": self._subject,
            "content": [{"type": "text/plain", "value": message}],
        }

    async def send(self, message: str) -> None:
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    self._url,
                    json=self._build_payload(message),
                    headers=headers,
                )
        except httpx.TimeoutException as e:
            raise NotificationError("SendGrid request timed out") from e
        except httpx.HTTPError as e:
            raise NotificationError(f"SendGrid request failed: {e}") from e

        if not resp.is_success:
            raise NotificationError(
                f"SendGrid rejected the e-mail. Status: {resp.status_code}"
            )
        logger.info("Admin e-mail sent to %s", self._admin_email)


class WebhookNotifier(AdminNotifier):
    """Posts the alert as ``{"text": message}`` to a chat-style webhook."""

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._url = url
        self._headers = headers or {}
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "webhook"

    async def send(self, message: str) -> None:
        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(
                    self._url,
                    json={"text": message},
                    headers=self._headers,
                )
        except httpx.TimeoutException as e:
            raise NotificationError(f"Webhook {self._url} timed out") from e
        except httpx.HTTPError as e:
            raise NotificationError(f"Webhook {self._url} failed: {e}") from e

        if not resp.is_success:
            raise NotificationError(
                f"Webhook {self._url} returned {resp.status_code}"
            )


class LogNotifier(AdminNotifier):
    """Writes the alert to the log. Used when no channel is configured."""

    @property
    def name(self) -> str:
        return "log"

    async def send(self, message: str) -> None:
        logger.warning("Admin notification (no delivery channel configured):\n%s", message)


def build_notifier(config: NotifierConfig | None = None) -> AdminNotifier:
    """Pick the delivery channel from configuration."""
    config = config or NotifierConfig()

    if config.sendgrid_configured:
        return SendGridNotifier(
            api_key=config.sendgrid_api_key,
            admin_email=config.admin_email,
            from_email=config.from_email,
            subject=config.subject,
            url=config.sendgrid_url,
            timeout=config.timeout_seconds,
        )
    if config.webhook_url:
        return WebhookNotifier(url=config.webhook_url, timeout=config.timeout_seconds)

    logger.warning("No admin notification channel configured, alerts will only be logged")
    return LogNotifier()
