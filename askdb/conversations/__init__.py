"""Conversation persistence."""

from askdb.conversations.ledger import ConversationLedger

__all__ = ["ConversationLedger"]
