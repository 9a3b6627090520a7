"""
Outbound delivery through the WhatsApp Cloud API send-message endpoint.

One POST per reply, no retries. Failures are raised as WhatsAppSendError
for the webhook route to log and turn into a 500.
"""

import logging
from typing import Optional

import httpx

from app.config import Settings
from app.logging_utils import mask_phone
from app.schemas import OutboundTextMessage

logger = logging.getLogger(__name__)


class WhatsAppSendError(Exception):
    """The send-message API could not be reached or rejected the message."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class WhatsAppClient:
    """Sends text messages as the configured WhatsApp business number."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._url = settings.messages_url
        self._token = settings.WHATSAPP_TOKEN
        self._timeout = settings.WHATSAPP_SEND_TIMEOUT
        self._transport = transport

    async def send_text(self, to: str, body: str) -> None:
        """
        Send a text message.

        Args:
            to: Recipient phone number as given by the webhook
            body: Message text

        Raises:
            WhatsAppSendError: on transport failure or a non-2xx response
        """
        payload = OutboundTextMessage.build(to=to, body=body)
        headers = {"Authorization": f"Bearer {self._token}"}

        logger.debug(f"Sending text message to {mask_phone(to)}")

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._url, json=payload.model_dump(), headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.error(f"Send-message API returned {status_code} for {mask_phone(to)}")
            raise WhatsAppSendError(f"send-message API returned {status_code}", status_code) from e
        except httpx.HTTPError as e:
            logger.error(f"Send-message request failed: {e!r}")
            raise WhatsAppSendError(f"send-message request failed: {e}") from e

        logger.info(f"Text message sent to {mask_phone(to)}")
