"""Outbound email through the Resend HTTP API."""

from abc import ABC, abstractmethod
from typing import Optional

import httpx

from gostly.logging_config import get_logger

logger = get_logger("email_service")

RESEND_API_URL = "https://api.resend.com/emails"


class Mailer(ABC):
    @abstractmethod
    def send(self, to: str, subject: str, html: str) -> bool:
        """Deliver one message. Returns True when the provider accepted it."""
        pass


class ResendMailer(Mailer):
    def __init__(self, api_key: Optional[str], sender: str, timeout_seconds: float = 10.0):
        self.api_key = api_key
        self.sender = sender
        self.timeout_seconds = timeout_seconds

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def send(self, to: str, subject: str, html: str) -> bool:
        if not self.configured:
            logger.info("Email not configured, skipping send", extra={"context": {"to": to}})
            return False

        with httpx.Client(timeout=self.timeout_seconds) as client:
            response = client.post(
                RESEND_API_URL,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"from": self.sender, "to": [to], "subject": subject, "html": html},
            )

        if response.status_code >= 300:
            logger.error(f"Resend error: {response.status_code} {response.text[:300]}")
            return False
        return True
