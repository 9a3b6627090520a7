"""
Scripted order flow for the chat middleware (POST /api/message).

Every reply is chosen from the current message alone; there is no
conversation memory. The middleware's UI decides what the user can type
next, which is what makes the steps look like a conversation.
"""

import logging
import re
import time
from dataclasses import dataclass
from decimal import Decimal, localcontext
from typing import Callable, Optional

logger = logging.getLogger(__name__)


PRICE_PER_BOTTLE = 324

# The summary always reports 1 litre: the quantity step cannot know which
# pack size was picked in an earlier turn. A 5 litre order is summarised
# and priced as 1 litre bottles.
SUMMARY_PACK_SIZE = "1 litre"

ORDER_ID_PREFIX = "SASYAM"

GREETINGS = frozenset({"hi", "hey", "hello"})
ONE_LITRE_PACKS = frozenset({"1 litre", "1 liter", "1l"})
FIVE_LITRE_PACKS = frozenset({"5 litre", "5 liter", "5l"})

# Addresses are told apart from other free text by length alone
MIN_ADDRESS_LENGTH = 10

# Base-10 integer or decimal with an optional sign, ASCII digits only.
# Unlike JavaScript isNaN, exponent forms such as "1e3" are not quantities.
_NUMBER_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)")


INVALID_MESSAGE_REPLY = "Please send a valid message to continue."

GREETING_REPLY = (
    "Hey! 👋 Welcome to *Sasyam Edibles* 🌿\n\n"
    "We sell *cold-pressed groundnut oil*.\n\n"
    "Please choose the pack size:\n"
    "• 1 litre\n"
    "• 5 litre"
)

ONE_LITRE_REPLY = (
    "Great choice 👍\n\n"
    f"Each *1 litre* bottle costs ₹{PRICE_PER_BOTTLE}.\n\n"
    "How many bottles would you like to order?"
)

FIVE_LITRE_REPLY = (
    "Great choice 👍\n\n"
    "Please enter the number of *5 litre* cans you want to order."
)

SUMMARY_REPLY = (
    "🧾 *Order Summary*\n\n"
    "• Pack size: {pack_size}\n"
    "• Quantity: {quantity}\n"
    "• Price per bottle: ₹{price}\n"
    "• Total amount: ₹{total}\n\n"
    "Please share your *delivery address*."
)

CONFIRMATION_REPLY = (
    "✅ *Order Confirmed!*\n\n"
    "Order ID: {order_id}\n\n"
    "You will receive your order within *24–48 hours* 🚚\n\n"
    "Thank you for choosing *Sasyam Edibles* 🌿"
)

FALLBACK_REPLY = (
    "I didn’t quite get that 🤔\n\n"
    "Please reply with:\n"
    "• Hi\n"
    "• 1 litre\n"
    "• 5 litre"
)


@dataclass(frozen=True)
class OrderFlowReply:
    """Reply text plus the step that produced it (for logs and metrics)."""
    step: str
    text: str


def normalize_text(message: Optional[str]) -> str:
    """Trim and lowercase a raw message; None becomes an empty string."""
    if message is None:
        return ""
    return message.strip().lower()


def parse_quantity(text: str) -> Optional[Decimal]:
    """Return the quantity if text is a plain decimal number, else None."""
    if not _NUMBER_RE.fullmatch(text):
        return None
    return Decimal(text)


def _significant_digits(value: Decimal) -> int:
    _, digits, exponent = value.as_tuple()
    return len(digits) + max(exponent, 0)


def format_number(value: Decimal) -> str:
    """Render a decimal without exponent or trailing zeros ("3", "2.5")."""
    if value.is_zero():
        return "0"
    # Default context precision (28 digits) would round long quantities
    with localcontext() as ctx:
        ctx.prec = _significant_digits(value)
        if value == value.to_integral_value():
            value = value.quantize(Decimal(1))
        else:
            value = value.normalize()
    return format(value, "f")


def generate_order_id(clock: Callable[[], int] = time.time_ns) -> str:
    """SASYAM followed by the last six digits of the epoch time in ms."""
    millis = clock() // 1_000_000
    return ORDER_ID_PREFIX + str(millis)[-6:].rjust(6, "0")


def order_total(quantity: Decimal) -> Decimal:
    """Exact quantity * unit price, whatever the length of the quantity."""
    price = Decimal(PRICE_PER_BOTTLE)
    with localcontext() as ctx:
        ctx.prec = _significant_digits(quantity) + _significant_digits(price)
        return quantity * price


def order_summary(quantity: Decimal) -> str:
    total = order_total(quantity)
    return SUMMARY_REPLY.format(
        pack_size=SUMMARY_PACK_SIZE,
        quantity=format_number(quantity),
        price=PRICE_PER_BOTTLE,
        total=format_number(total),
    )


def respond(text: str, clock: Callable[[], int] = time.time_ns) -> OrderFlowReply:
    """
    Pick the reply for an already normalized message.

    Rules are tried in order and the first match wins:
    greeting, 1 litre pack, 5 litre pack, quantity, address, fallback.

    Args:
        text: Trimmed, lowercased message text
        clock: Nanosecond clock used for order ids

    Returns:
        The reply and the name of the matching step
    """
    if text in GREETINGS:
        return OrderFlowReply("greeting", GREETING_REPLY)

    if text in ONE_LITRE_PACKS:
        return OrderFlowReply("pack_1l", ONE_LITRE_REPLY)

    if text in FIVE_LITRE_PACKS:
        return OrderFlowReply("pack_5l", FIVE_LITRE_REPLY)

    quantity = parse_quantity(text)
    if quantity is not None:
        logger.debug(f"Quantity step: {quantity}")
        return OrderFlowReply("summary", order_summary(quantity))

    if len(text) > MIN_ADDRESS_LENGTH:
        order_id = generate_order_id(clock)
        logger.info(f"Order confirmed: {order_id}")
        return OrderFlowReply("confirmation", CONFIRMATION_REPLY.format(order_id=order_id))

    return OrderFlowReply("fallback", FALLBACK_REPLY)


def handle_message(message: Optional[str], clock: Callable[[], int] = time.time_ns) -> OrderFlowReply:
    """Normalize a raw middleware message and answer it."""
    text = normalize_text(message)
    if not text:
        return OrderFlowReply("invalid", INVALID_MESSAGE_REPLY)
    return respond(text, clock)
