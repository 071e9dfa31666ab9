"""Postmark mailer for preflight report emails.

Sends a rendered ``ReportEmail`` through Postmark's ``/email`` endpoint.
Any non-2xx reply or transport failure is raised as ``ReportDeliveryError``
so the web layer can answer 502.
"""

from __future__ import annotations

import logging
from typing import Final

import httpx

from WebGL_Preflight.models.report import ReportEmail
from WebGL_Preflight.utils.exceptions import ReportDeliveryError

logger = logging.getLogger(__name__)

POSTMARK_API_BASE_URL: Final[str] = "https://api.postmarkapp.com"
POSTMARK_EMAIL_PATH: Final[str] = "/email"
POSTMARK_TOKEN_HEADER: Final[str] = "X-Postmark-Server-Token"
DEFAULT_MESSAGE_STREAM: Final[str] = "outbound"


class PostmarkMailer:
    """Send report emails through the Postmark HTTP API.

    Usage::

        async with PostmarkMailer(token, "noreply@example.com") as mailer:
            await mailer.send(email)
    """

    def __init__(
        self,
        server_token: str,
        from_email: str,
        *,
        message_stream: str = DEFAULT_MESSAGE_STREAM,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._from_email = from_email
        self._message_stream = message_stream
        self._client = httpx.AsyncClient(
            base_url=POSTMARK_API_BASE_URL,
            headers={
                "Accept": "application/json",
                POSTMARK_TOKEN_HEADER: server_token,
            },
            timeout=httpx.Timeout(connect=5.0, read=30.0, write=10.0, pool=5.0),
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the shared httpx client."""
        await self._client.aclose()

    async def __aenter__(self) -> PostmarkMailer:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def send(self, email: ReportEmail) -> None:
        """Deliver one email.

        Raises:
            ReportDeliveryError: Postmark was unreachable or refused the message.
        """
        payload = {
            "From": self._from_email,
            "To": email.to,
            "Subject": email.subject,
            "HtmlBody": email.html_body,
            "TextBody": email.text_body,
            "MessageStream": self._message_stream,
        }
        try:
            response = await self._client.post(POSTMARK_EMAIL_PATH, json=payload)
        except httpx.HTTPError as exc:
            msg = f"Postmark request failed: {exc}"
            logger.error(msg)
            raise ReportDeliveryError(msg) from exc

        if response.is_error:
            msg = response.text or "Postmark error"
            logger.warning("Postmark returned HTTP %d for %s", response.status_code, email.to)
            raise ReportDeliveryError(msg, http_status=response.status_code)

        logger.info("Preflight report sent to %s", email.to)
