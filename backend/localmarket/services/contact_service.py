"""Contact form: relays a visitor's message to the support inbox."""

import logging

from localmarket.schemas.contact import ContactMessage
from localmarket.services.mailer import EmailMessage, Mailer

logger = logging.getLogger(__name__)


class ContactService:
    def __init__(self, mailer: Mailer, inbox: str):
        self.mailer = mailer
        self.inbox = inbox

    async def send(self, body: ContactMessage) -> None:
        subject = body.subject or f"Contact form message from {body.name}"
        text = f"From: {body.name} <{body.email}>\n\n{body.message}"
        await self.mailer.send(
            EmailMessage(to=self.inbox, subject=subject, text=text, reply_to=body.email)
        )
        logger.info("Contact message from %s relayed", body.email)
