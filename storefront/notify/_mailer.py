"""
Mail transport — the Mailer protocol and its Mailgun implementation.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from storefront.errors import UpstreamError

logger = logging.getLogger(__name__)


class Mailer(Protocol):
    async def send(self, to: str, subject: str, text: str, html: str) -> None: ...


class MailgunMailer:
    """
    Sends through the Mailgun messages API.

    Raises UpstreamError on any failure; callers decide whether that is fatal.
    """

    def __init__(
        self,
        api_key: str,
        domain: str,
        sender: str,
        *,
        base_url: str = "https://api.mailgun.net",
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._domain = domain
        self._sender = sender
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            auth=("api", api_key),
            timeout=timeout,
            transport=transport,
        )

    async def send(self, to: str, subject: str, text: str, html: str) -> None:
        data = {
            "from": self._sender,
            "to": to,
            "subject": subject,
            "text": text,
            "html": html,
        }
        try:
            response = await self._client.post(f"/v3/{self._domain}/messages", data=data)
        except httpx.HTTPError as e:
            logger.error("Mailgun transport error sending %r: %s", subject, e)
            raise UpstreamError("Failed to send email", cause=e) from e

        if response.is_error:
            logger.error(
                "Mailgun returned %s for %r: %s",
                response.status_code, subject, response.text[:200],
            )
            raise UpstreamError("Failed to send email")

        logger.info("Sent %r", subject)

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ("Mailer", "MailgunMailer")
