"""
Notification Service Tool
Delivers composed alerts to emergency contacts by email
"""

import logging
from typing import List, Optional, Sequence
from dataclasses import dataclass
from datetime import datetime
import uuid

import httpx

from config import settings


logger = logging.getLogger(__name__)


@dataclass
class NotificationResult:
    """Result of sending a notification"""
    success: bool
    message_id: Optional[str] = None
    delivered_at: Optional[datetime] = None
    error: Optional[str] = None


class NotificationService:
    """
    Email delivery through an HTTP email API.

    When no EMAIL_API_URL is configured, sends are simulated and logged so
    the daily job still completes in development.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        api_key: Optional[str] = None,
        sender: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_url = api_url if api_url is not None else settings.EMAIL_API_URL
        self.api_key = api_key if api_key is not None else settings.EMAIL_API_KEY
        self.sender = sender or settings.EMAIL_SENDER
        self.timeout = timeout or settings.EMAIL_TIMEOUT_SECONDS
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_url)

    def _headers(self) -> dict:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    async def send_email(
        self,
        recipients: Sequence[str],
        subject: str,
        body: str
    ) -> NotificationResult:
        """
        Send one email to all recipients.

        Transport and HTTP errors are logged and returned as a failed result.
        """
        recipients: List[str] = [r.strip() for r in recipients if r and r.strip()]
        if not recipients:
            return NotificationResult(success=False, error="No recipients")

        if not self.is_configured:
            logger.info(f"[EMAIL] Simulated send to {', '.join(recipients)}: {subject}")
            return NotificationResult(
                success=True,
                message_id=f"email_{uuid.uuid4().hex[:12]}",
                delivered_at=datetime.now()
            )

        payload = {
            "from": self.sender,
            "to": recipients,
            "subject": subject,
            "text": body
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, json=payload, headers=self._headers())
                response.raise_for_status()

            message_id = None
            if response.headers.get("content-type", "").startswith("application/json"):
                message_id = response.json().get("id")

            logger.info(f"[EMAIL] Sent to {len(recipients)} recipient(s): {subject}")
            return NotificationResult(
                success=True,
                message_id=message_id or f"email_{uuid.uuid4().hex[:12]}",
                delivered_at=datetime.now()
            )

        except httpx.TimeoutException:
            logger.error(f"Email API timeout sending '{subject}'")
            return NotificationResult(success=False, error="Email API timeout")
        except httpx.HTTPStatusError as e:
            logger.error(f"Email API returned {e.response.status_code} for '{subject}'")
            return NotificationResult(
                success=False,
                error=f"Email API error: HTTP {e.response.status_code}"
            )
        except httpx.HTTPError as e:
            logger.error(f"Email send error: {e}")
            return NotificationResult(success=False, error=str(e))


# Singleton instance
notification_service = NotificationService()
