"""
Order-or-support classification for WhatsApp webhook messages.
"""

import logging
from enum import Enum

logger = logging.getLogger(__name__)


ORDER_KEYWORDS = (
    "order",
    "buy",
    "groundnut",
    "ground nut",
    "oil",
    "1l",
    "1 l",
    "1 litre",
    "1 liter",
    "5l",
    "5 l",
    "5 litre",
    "5 liter",
    "15l",
    "15 l",
    "15 litre",
    "15 liter",
)

ORDER_INSTRUCTIONS_REPLY = (
    "Hi 👋 Thank you for your interest in *Sasyam Edibles* 🌿\n\n"
    "Please place your order via our WhatsApp assistant.\n\n"
    "Say *Hi* to get started, then choose a pack size:\n"
    "• 1 litre\n"
    "• 5 litre"
)

SUPPORT_CONTACT_REPLY = (
    "Hi 👋 Thanks for reaching out to *Sasyam Edibles* 🌿\n\n"
    "For any other questions, please contact our support team at "
    "{support_number}."
)


class MessageCategory(str, Enum):
    ORDER = "order"
    OTHER = "other"


def classify(text: str) -> MessageCategory:
    """Any order keyword contained in the lowercased text makes it an order."""
    lowered = text.lower()
    if any(keyword in lowered for keyword in ORDER_KEYWORDS):
        return MessageCategory.ORDER
    return MessageCategory.OTHER


def reply_for(category: MessageCategory, support_number: str) -> str:
    if category is MessageCategory.ORDER:
        return ORDER_INSTRUCTIONS_REPLY
    return SUPPORT_CONTACT_REPLY.format(support_number=support_number)


def respond(text: str, support_number: str) -> tuple[MessageCategory, str]:
    """
    Classify a message and pick its reply.

    Args:
        text: Raw message body
        support_number: Number quoted in the support-contact reply

    Returns:
        The category and the reply text
    """
    category = classify(text)
    logger.debug(f"Classified message as {category.value}")
    return category, reply_for(category, support_number)
