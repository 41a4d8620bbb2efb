"""Pytest config: project root on sys.path plus in-memory WhatsApp session fakes."""
import asyncio
import sys
from pathlib import Path

import pytest

root = Path(__file__).resolve().parent.parent
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

from jellyzap.bus.events import Conversation  # noqa: E402
from jellyzap.channels.base import CONNECTED_STATE, ChatSessionClient  # noqa: E402
from jellyzap.channels.supervisor import ConnectionSupervisor  # noqa: E402

GROUP_ID = "120363000000000001@g.us"

DEFAULT_CHATS = [
    Conversation(id=GROUP_ID, name="Movie Night", is_group=True),
    Conversation(id="5511999999999@c.us", name="Alice", is_group=False),
    Conversation(id="120363000000000002@g.us", name="Family", is_group=True),
]


class FakeSessionClient(ChatSessionClient):
    """ChatSessionClient that never leaves the process."""

    def __init__(
        self,
        session: str,
        connect_error: Exception | None = None,
        auto_connected: bool = True,
        send_error: Exception | None = None,
        chats: list[Conversation] | None = None,
        connect_gate: asyncio.Event | None = None,
    ):
        super().__init__(session)
        self.connect_error = connect_error
        self.auto_connected = auto_connected
        self.send_error = send_error
        self.chats = list(DEFAULT_CHATS if chats is None else chats)
        self.connect_gate = connect_gate
        self.opened = False
        self.connected = False
        self.closed = False
        self.sent: list[tuple[str, str]] = []
        self.list_calls = 0

    async def connect(self) -> None:
        if self.connect_gate is not None:
            await self.connect_gate.wait()
        if self.connect_error is not None:
            raise self.connect_error
        self.opened = True
        if self.auto_connected:
            await self.report_connected()

    async def report_connected(self) -> None:
        self.connected = True
        await self._emit_state(CONNECTED_STATE)

    async def report_status(self, state: str) -> None:
        self.connected = state == CONNECTED_STATE
        await self._emit_state(state)

    async def drop(self, reason: str = "CONFLICT") -> None:
        self.opened = False
        self.connected = False
        await self._emit_disconnected(reason)

    def is_connected(self) -> bool:
        return self.opened and self.connected

    async def send_text(self, chat_id: str, text: str):
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((chat_id, text))
        return f"wamid-{len(self.sent)}"

    async def get_all_chats(self) -> list[Conversation]:
        self.list_calls += 1
        return list(self.chats)

    async def close(self) -> None:
        self.closed = True
        self.opened = False


class FakeClientFactory:
    """Creates FakeSessionClient handles and remembers every one of them."""

    def __init__(self, **options):
        self.options = options
        self.clients: list[FakeSessionClient] = []
        self.sessions: list[str] = []

    def __call__(self, session: str) -> FakeSessionClient:
        client = FakeSessionClient(session, **self.options)
        self.clients.append(client)
        self.sessions.append(session)
        return client

    @property
    def last(self) -> FakeSessionClient:
        return self.clients[-1]


async def settle(rounds: int = 10) -> None:
    """Let background tasks spawned by the supervisor run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def client_factory():
    return FakeClientFactory()


@pytest.fixture
def supervisor(client_factory):
    return ConnectionSupervisor(client_factory)
