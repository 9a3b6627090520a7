"""
Utility functions for the bot server.
"""

import hmac
import logging
from typing import Optional

logger = logging.getLogger(__name__)


def verify_webhook_subscription(
    mode: Optional[str],
    token: Optional[str],
    challenge: Optional[str],
    verify_token: str,
) -> Optional[str]:
    """
    Check a Meta webhook verification handshake.

    Args:
        mode: hub.mode query parameter
        token: hub.verify_token query parameter
        challenge: hub.challenge query parameter
        verify_token: configured WHATSAPP_VERIFY_TOKEN

    Returns:
        The challenge to echo back if the handshake is valid, None otherwise
    """
    logger.info("Verifying webhook subscription")
    logger.debug(f"hub.mode={mode}, token present: {bool(token)}")

    if mode != "subscribe":
        logger.info("Webhook verification rejected: mode is not 'subscribe'")
        return None

    # An unset secret must never match a missing token
    if not verify_token or token is None:
        logger.info("Webhook verification rejected: verify token missing")
        return None

    # Use constant-time comparison to prevent timing attacks
    is_valid = hmac.compare_digest(token.encode("utf-8"), verify_token.encode("utf-8"))
    logger.info(f"Webhook verification: {'valid' if is_valid else 'invalid'}")

    if not is_valid:
        return None
    return challenge if challenge is not None else ""
