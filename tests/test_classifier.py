"""
Tests for order-or-support classification of WhatsApp messages.
"""

import pytest

from app import classifier
from app.classifier import (
    ORDER_INSTRUCTIONS_REPLY,
    MessageCategory,
    classify,
    reply_for,
)


class TestClassify:

    @pytest.mark.parametrize("text", [
        "I want to order 5L",
        "Can I BUY some?",
        "Groundnut oil price",
        "ground nut",
        "do you have 15 litre cans",
        "need 1 l",
        "send 5 liter",
        "15L please",
    ])
    def test_order_intent(self, text):
        assert classify(text) is MessageCategory.ORDER

    @pytest.mark.parametrize("text", [
        "what are your hours?",
        "hello",
        "",
        "where is my delivery",
    ])
    def test_other(self, text):
        assert classify(text) is MessageCategory.OTHER

    def test_substring_match_inside_words(self):
        """Containment, not word matching: 'boiled' contains 'oil'."""
        assert classify("boiled eggs") is MessageCategory.ORDER


class TestReplies:

    def test_order_reply_is_static(self):
        assert reply_for(MessageCategory.ORDER, "+91 1") == ORDER_INSTRUCTIONS_REPLY
        assert "+91 1" not in ORDER_INSTRUCTIONS_REPLY

    def test_support_reply_quotes_support_number(self):
        reply = reply_for(MessageCategory.OTHER, "+91 98765 43210")
        assert "+91 98765 43210" in reply

    def test_respond(self):
        category, reply = classifier.respond("what are your hours?", "+91 98765 43210")
        assert category is MessageCategory.OTHER
        assert "+91 98765 43210" in reply

        category, reply = classifier.respond("I want to order 5L", "+91 98765 43210")
        assert category is MessageCategory.ORDER
        assert reply == ORDER_INSTRUCTIONS_REPLY
