"""Message types passed between the webhook ingress and the chat channel."""

from jellyzap.bus.events import Conversation, OutboundMessage

__all__ = ["Conversation", "OutboundMessage"]
