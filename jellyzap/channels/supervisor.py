"""Supervisor for the single WhatsApp session.

Owns the only ChatSessionClient handle and drives its lifecycle:
DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED -> ...
The rest of the system only sees is_usable(), send(), list_groups() and recover().
"""

import asyncio
from enum import Enum
from functools import partial
from typing import Any, Callable, Coroutine

from loguru import logger

from jellyzap.bus.events import Conversation
from jellyzap.channels.base import CONNECTED_STATE, ChatSessionClient
from jellyzap.config.schema import DEFAULT_SESSION_NAME
from jellyzap.errors import ChannelUnavailable, DeliveryFailure

ClientFactory = Callable[[str], ChatSessionClient]


class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class ConnectionSupervisor:
    """
    Keeps one live session handle and replaces it wholesale on reconnect.

    Recovery is triggered both by the client's own disconnect signal and by
    the LivenessMonitor; both end up in recover(). A single in-progress flag
    keeps the two from racing into two live handles.
    """

    def __init__(self, client_factory: ClientFactory, session_name: str = DEFAULT_SESSION_NAME):
        self._client_factory = client_factory
        self.session_name = session_name
        self._client: ChatSessionClient | None = None
        self._state = SessionState.DISCONNECTED
        self._connecting = False
        self._tasks: set[asyncio.Task] = set()
        self.connect_attempts = 0

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def connect_in_progress(self) -> bool:
        return self._connecting

    def is_usable(self) -> bool:
        """True only when CONNECTED with a live handle that reports connected."""
        client = self._client
        return (
            self._state is SessionState.CONNECTED
            and client is not None
            and client.is_connected()
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Schedule the initial connect without blocking the caller."""
        self._spawn(self.connect())

    async def stop(self) -> None:
        """Cancel background work and close the current handle."""
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        client, self._client = self._client, None
        if client is not None:
            await self._discard(client)
        self._transition(SessionState.DISCONNECTED)

    async def recover(self) -> bool:
        """Reconnect unless the channel is already usable. Returns True if a new session came up."""
        if self.is_usable():
            return False
        return await self.connect()

    async def connect(self) -> bool:
        """
        Replace the current handle with a fresh one and open it.

        Never raises for transport failures: they are logged and leave the
        state DISCONNECTED for the next recovery trigger. Returns False if the
        attempt failed or another attempt was already running.
        """
        if self._connecting:
            logger.info("WhatsApp connect already in progress; skipping")
            return False
        self._connecting = True
        try:
            return await self._connect()
        finally:
            self._connecting = False

    async def _connect(self) -> bool:
        if self._state is SessionState.CONNECTED:
            # Handle went quiet without a disconnect signal
            self._transition(SessionState.DISCONNECTED)
        self._transition(SessionState.CONNECTING)
        self.connect_attempts += 1

        previous = self._client
        try:
            client = self._client_factory(self.session_name)
        except Exception as e:
            logger.error(f"Error creating WhatsApp client: {e}")
            self._client = None
            if previous is not None:
                await self._discard(previous)
            self._transition(SessionState.DISCONNECTED)
            return False

        client.on_state_change(partial(self._on_state_change, client))
        client.on_disconnected(partial(self._on_disconnected, client))
        self._client = client
        if previous is not None:
            await self._discard(previous)

        try:
            await client.connect()
        except Exception as e:
            logger.error(f"Error initializing WhatsApp client: {e}")
            if self._client is client:
                self._client = None
                self._transition(SessionState.DISCONNECTED)
            await self._discard(client)
            return False

        if self._client is not client:
            return False
        logger.info("WhatsApp client is ready")
        if self._state is SessionState.CONNECTING and client.is_connected():
            self._mark_connected()
        return self._state is SessionState.CONNECTED

    # ------------------------------------------------------------------
    # Client notifications
    # ------------------------------------------------------------------

    def _on_state_change(self, client: ChatSessionClient, state: str) -> None:
        if client is not self._client:
            logger.debug(f"Ignoring state {state!r} from a superseded session handle")
            return
        logger.info(f"State changed: {state}")
        if state == CONNECTED_STATE:
            if self._state is SessionState.CONNECTING:
                self._mark_connected()
        elif self._state is SessionState.CONNECTED:
            # The next disconnect signal or liveness tick replaces the handle
            logger.warning(f"WhatsApp session left CONNECTED (now {state}); sends are paused")
            self._transition(SessionState.DISCONNECTED)

    def _on_disconnected(self, client: ChatSessionClient, reason: str) -> None:
        if client is not self._client:
            logger.debug(f"Ignoring disconnect from a superseded session handle: {reason}")
            return
        logger.warning(f"WhatsApp client was disconnected: {reason}")
        self._client = None
        self._transition(SessionState.DISCONNECTED)
        self._spawn(self.recover())

    def _mark_connected(self) -> None:
        self._transition(SessionState.CONNECTED)
        logger.info("Client is authenticated and ready to send messages")
        self._spawn(self._log_groups())

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def send(self, chat_id: str, text: str) -> Any:
        """Send through the live handle. Raises ChannelUnavailable or DeliveryFailure."""
        client = self._client
        if client is None or not self.is_usable():
            raise ChannelUnavailable()
        try:
            return await client.send_text(chat_id, text)
        except Exception as e:
            raise DeliveryFailure(str(e) or e.__class__.__name__) from e

    async def list_groups(self) -> list[Conversation]:
        """Group chats visible to the session, in the order the client reports them."""
        client = self._client
        if client is None or not self.is_usable():
            raise ChannelUnavailable()
        chats = await client.get_all_chats()
        return [chat for chat in chats if chat.is_group]

    async def _log_groups(self) -> None:
        try:
            groups = await self.list_groups()
        except Exception as e:
            logger.error(f"Error listing groups: {e}")
            return
        logger.info(f"Available groups: {len(groups)}")
        for group in groups:
            logger.info(f"Name: {group.name}, ID: {group.id}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _transition(self, new: SessionState) -> None:
        if new is self._state:
            return
        logger.info(f"Session {self.session_name}: {self._state.value} -> {new.value}")
        self._state = new

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _discard(self, client: ChatSessionClient) -> None:
        try:
            await client.close()
        except Exception as e:
            logger.warning(f"Error closing superseded WhatsApp client: {e}")
