"""
LocalMarket Backend: Mail Relay Adapter
========================================

What:  Sends plain-text email through an HTTP mail relay.
How:   `Mailer` is the abstract contract; `HttpMailRelay` POSTs a JSON message
       ({"from", "to", "subject", "text", "reply_to"}) with a bearer API key
       using httpx, which matches Resend-style relay APIs.
Who:   Used by ContactService for POST /contact.

A non-2xx answer or a transport error becomes ExternalServiceError (→ 500).
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from localmarket.config import Settings, settings as default_settings
from localmarket.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailMessage:
    to: str
    subject: str
    text: str
    reply_to: Optional[str] = None


class Mailer(ABC):
    @abstractmethod
    async def send(self, message: EmailMessage) -> None:
        """Deliver one message or raise ExternalServiceError."""
        ...


class HttpMailRelay(Mailer):
    def __init__(
        self,
        url: str,
        api_key: str,
        sender: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.sender = sender
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, config: Optional[Settings] = None) -> "HttpMailRelay":
        config = config or default_settings
        return cls(
            url=config.mail_relay_url,
            api_key=config.mail_relay_api_key,
            sender=config.mail_from,
            timeout=config.mail_timeout,
        )

    async def send(self, message: EmailMessage) -> None:
        if not self.url:
            raise ExternalServiceError(service="mail_relay", message="Mail relay is not configured.")

        payload: Dict[str, Any] = {
            "from": self.sender,
            "to": [message.to],
            "subject": message.subject,
            "text": message.text,
        }
        if message.reply_to:
            payload["reply_to"] = message.reply_to

        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error("Mail relay answered %d", e.response.status_code)
            raise ExternalServiceError(
                service="mail_relay",
                context={"status_code": e.response.status_code},
            )
        except httpx.HTTPError as e:
            logger.error("Mail relay unreachable: %s", type(e).__name__)
            raise ExternalServiceError(
                service="mail_relay",
                context={"error_type": type(e).__name__},
            )

        logger.info("Relayed mail to %s (%s)", message.to, message.subject)
