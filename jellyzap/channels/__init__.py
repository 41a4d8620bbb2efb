"""WhatsApp session handling: client boundary, supervisor and liveness monitor."""

from jellyzap.channels.base import ChatSessionClient
from jellyzap.channels.liveness import LivenessMonitor
from jellyzap.channels.supervisor import ConnectionSupervisor, SessionState

__all__ = ["ChatSessionClient", "ConnectionSupervisor", "LivenessMonitor", "SessionState"]
