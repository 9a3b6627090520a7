"""
Pydantic schemas for request/response validation.

This module contains:
- Request/response models for the order-flow API
- A lenient model of the WhatsApp Cloud API webhook envelope
- The outbound send-message payload
- Health check responses
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError


logger = logging.getLogger(__name__)


# =============================================================================
# Order-Flow API Models
# =============================================================================

class ChatRequest(BaseModel):
    """
    Body of POST /api/message as sent by the chat middleware.

    Both fields are optional: a missing message is answered with a prompt,
    never a validation error.
    """
    phone: Optional[str] = Field(None, description="Sender phone number")
    message: Optional[str] = Field(None, description="Raw message text")

    model_config = ConfigDict(
        extra="ignore",
        coerce_numbers_to_str=True,  # middleware may send "2" as a number
        json_schema_extra={
            "examples": [
                {"phone": "919999999999", "message": "Hi"}
            ]
        },
    )


class ChatReply(BaseModel):
    """Response model for POST /api/message."""
    reply: str = Field(..., description="Text to show the user")


# =============================================================================
# WhatsApp Webhook Envelope
# =============================================================================

class WhatsAppText(BaseModel):
    body: str = ""


class WhatsAppMessage(BaseModel):
    """A single entry of value.messages; only text messages are answered."""
    # Note: 'from' is a reserved word in Python, so we use alias
    from_msisdn: str = Field(..., alias="from")
    type: str
    text: Optional[WhatsAppText] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class WhatsAppChangeValue(BaseModel):
    messages: list[Any] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class WhatsAppChange(BaseModel):
    value: Optional[WhatsAppChangeValue] = None

    model_config = ConfigDict(extra="ignore")


class WhatsAppEntry(BaseModel):
    changes: list[Any] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class WhatsAppWebhookPayload(BaseModel):
    """
    Envelope posted by the WhatsApp Cloud API.

    Status callbacks (delivered, read) carry no `messages` and parse to an
    empty list. List items stay raw: only the first of each is validated.
    """
    entry: list[Any] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


def _first(items: list[Any], model: type[BaseModel]) -> Optional[BaseModel]:
    """Validate only the first item of a list; later items are never looked at."""
    if not items:
        return None
    return model.model_validate(items[0])


@dataclass(frozen=True)
class InboundMessage:
    """A text message received from a chat user."""
    sender: str
    text: str


def extract_inbound_message(payload: Any) -> Optional[InboundMessage]:
    """
    Pull entry[0].changes[0].value.messages[0] out of a webhook payload.

    Returns None when the payload is malformed, carries no message, or the
    first message is not of type "text".
    """
    try:
        envelope = WhatsAppWebhookPayload.model_validate(payload)
        entry = _first(envelope.entry, WhatsAppEntry)
        change = _first(entry.changes, WhatsAppChange) if entry else None
        value = change.value if change else None
        message = _first(value.messages, WhatsAppMessage) if value else None
    except ValidationError as e:
        logger.debug(f"Unrecognised webhook payload: {e.error_count()} validation errors")
        return None

    if message is None:
        return None

    if message.type != "text" or message.text is None:
        return None

    return InboundMessage(sender=message.from_msisdn, text=message.text.body)


# =============================================================================
# Outbound Send-Message Payload
# =============================================================================

class OutboundTextMessage(BaseModel):
    """Body of POST /{api-version}/{phone-number-id}/messages."""
    messaging_product: str = "whatsapp"
    to: str
    type: str = "text"
    text: WhatsAppText

    @classmethod
    def build(cls, to: str, body: str) -> "OutboundTextMessage":
        return cls(to=to, text=WhatsAppText(body=body))


# =============================================================================
# Health Models
# =============================================================================

class HealthResponse(BaseModel):
    """Response model for health check endpoints."""
    status: str = Field(..., description="Health status")
    reason: Optional[str] = Field(None, description="Reason if not ready")
