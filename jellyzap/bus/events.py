"""Event types for the notification pipeline."""

from dataclasses import dataclass
from typing import Any

# JID suffix WhatsApp uses for group chats
WHATSAPP_GROUP_SUFFIX = "@g.us"


@dataclass
class OutboundMessage:
    """Text to deliver to a single chat (the configured group)."""
    chat_id: str
    content: str
    notification_type: str = ""


@dataclass
class Conversation:
    """A chat known to the WhatsApp session."""
    id: str
    name: str
    is_group: bool = False

    @classmethod
    def from_bridge(cls, data: dict[str, Any]) -> "Conversation":
        """Build from a bridge chat entry. The id may be a plain JID or {"_serialized": JID}."""
        raw_id = data.get("id")
        if isinstance(raw_id, dict):
            raw_id = raw_id.get("_serialized")
        chat_id = str(raw_id or "")
        is_group = bool(data.get("isGroup")) or chat_id.endswith(WHATSAPP_GROUP_SUFFIX)
        return cls(id=chat_id, name=str(data.get("name") or ""), is_group=is_group)

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "id": self.id}
