"""Base interface for chat session clients."""

import inspect
from abc import ABC, abstractmethod
from typing import Any, Callable

from jellyzap.bus.events import Conversation

# State the session reports once it is authenticated and can send
CONNECTED_STATE = "CONNECTED"

StateChangeCallback = Callable[[str], Any]
DisconnectedCallback = Callable[[str], Any]


class ChatSessionClient(ABC):
    """
    One authenticated session against the chat network.

    Instances are single-use: once disconnected or closed they are discarded
    and a new one is created for the next attempt. Callbacks may be plain
    functions or coroutine functions.
    """

    def __init__(self, session: str):
        self.session = session
        self._state_callbacks: list[StateChangeCallback] = []
        self._disconnected_callbacks: list[DisconnectedCallback] = []

    @abstractmethod
    async def connect(self) -> None:
        """Open the session. Raises ConnectFailure if it cannot be established."""

    @abstractmethod
    def is_connected(self) -> bool:
        """True while the session is open and authenticated."""

    @abstractmethod
    async def send_text(self, chat_id: str, text: str) -> Any:
        """Send a text message; returns the transport's message id when known."""

    @abstractmethod
    async def get_all_chats(self) -> list[Conversation]:
        """Enumerate the chats known to the session."""

    @abstractmethod
    async def close(self) -> None:
        """Tear the session down."""

    def on_state_change(self, callback: StateChangeCallback) -> None:
        self._state_callbacks.append(callback)

    def on_disconnected(self, callback: DisconnectedCallback) -> None:
        self._disconnected_callbacks.append(callback)

    async def _emit_state(self, state: str) -> None:
        for callback in list(self._state_callbacks):
            await _maybe_await(callback(state))

    async def _emit_disconnected(self, reason: str) -> None:
        for callback in list(self._disconnected_callbacks):
            await _maybe_await(callback(reason))


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result
