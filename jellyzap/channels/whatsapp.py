"""WhatsApp session client using the Node.js bridge.

The bridge owns the WhatsApp Web session (QR pairing, persisted auth, browser
automation). We talk to it with JSON frames over a WebSocket: one socket per
session handle, requests correlated by request_id.
"""

import asyncio
import json
import uuid
from typing import Any

import websockets
from loguru import logger
from websockets.exceptions import ConnectionClosed, WebSocketException

from jellyzap.bus.events import Conversation
from jellyzap.channels.base import CONNECTED_STATE, ChatSessionClient
from jellyzap.config.schema import Config, WhatsAppConfig
from jellyzap.errors import BridgeError, ConnectFailure


class WhatsAppBridgeClient(ChatSessionClient):
    """
    ChatSessionClient backed by the WhatsApp bridge.
    The socket being open is not enough to send: the bridge must also report
    the session as CONNECTED.
    """

    def __init__(self, config: WhatsAppConfig, session: str | None = None):
        super().__init__(session or config.session)
        self.config = config
        self._ws = None
        self._reader: asyncio.Task | None = None
        self._state = ""
        self._open = False
        self._closing = False
        self._pending: dict[str, asyncio.Future] = {}

    async def connect(self) -> None:
        """Open the socket, ask the bridge to start our session and begin reading."""
        url = self.config.bridge_url
        logger.info(f"Connecting to WhatsApp bridge at {url} (session={self.session})")
        try:
            self._ws = await websockets.connect(url, open_timeout=self.config.connect_timeout)
        except (OSError, asyncio.TimeoutError, WebSocketException, ValueError) as e:
            raise ConnectFailure(f"Could not reach WhatsApp bridge at {url}: {e}") from e

        self._open = True
        start: dict[str, Any] = {"type": "start", "session": self.session}
        if self.config.bridge_token:
            start["token"] = self.config.bridge_token
        try:
            await self._ws.send(json.dumps(start))
        except ConnectionClosed as e:
            self._open = False
            raise ConnectFailure(f"WhatsApp bridge closed during start: {e}") from e

        self._reader = asyncio.create_task(self._read_loop(self._ws))

    def is_connected(self) -> bool:
        return self._open and self._state == CONNECTED_STATE

    async def send_text(self, chat_id: str, text: str) -> Any:
        """Send a text message and wait for the bridge to confirm it."""
        result = await self._request({"type": "send", "to": chat_id, "text": text})
        return result.get("id")

    async def get_all_chats(self) -> list[Conversation]:
        result = await self._request({"type": "list_chats"})
        return [Conversation.from_bridge(c) for c in result.get("chats") or [] if isinstance(c, dict)]

    async def close(self) -> None:
        """Close the socket. Does not emit a disconnected notification."""
        self._closing = True
        self._open = False
        if self._reader and not self._reader.done():
            self._reader.cancel()
            try:
                await self._reader
            except asyncio.CancelledError:
                pass
        if self._ws is not None:
            try:
                await self._ws.close()
            except WebSocketException as e:
                logger.debug(f"Error closing bridge socket: {e}")
            self._ws = None
        self._fail_pending("session closed")

    async def _request(self, payload: dict[str, Any]) -> dict[str, Any]:
        if not self._open or self._ws is None:
            raise BridgeError("WhatsApp bridge socket is not open")

        request_id = uuid.uuid4().hex
        future = asyncio.get_running_loop().create_future()
        self._pending[request_id] = future
        try:
            await self._ws.send(json.dumps({**payload, "request_id": request_id}))
            return await asyncio.wait_for(future, timeout=self.config.request_timeout)
        except asyncio.TimeoutError as e:
            raise BridgeError(
                f"WhatsApp bridge did not answer {payload['type']!r} within {self.config.request_timeout}s"
            ) from e
        except ConnectionClosed as e:
            raise BridgeError(f"WhatsApp bridge connection closed: {e}") from e
        finally:
            self._pending.pop(request_id, None)

    async def _read_loop(self, ws) -> None:
        reason = "connection closed"
        try:
            async for raw in ws:
                try:
                    await self._handle_bridge_message(raw)
                except Exception as e:
                    logger.exception(f"Error handling bridge message: {e}")
        except ConnectionClosed as e:
            reason = str(e) or reason
        except asyncio.CancelledError:
            raise
        except Exception as e:
            reason = f"bridge read failed: {e}"
            logger.warning(f"WhatsApp bridge read error: {e}")

        self._open = False
        self._fail_pending(reason)
        if not self._closing:
            await self._emit_disconnected(reason)

    def _fail_pending(self, reason: str) -> None:
        for future in self._pending.values():
            if not future.done():
                future.set_exception(BridgeError(f"WhatsApp bridge request aborted: {reason}"))
        self._pending.clear()

    async def _handle_bridge_message(self, raw: str | bytes) -> None:
        """Handle one frame from the bridge."""
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            logger.warning(f"Invalid JSON from bridge: {str(raw)[:100]}")
            return
        if not isinstance(data, dict):
            logger.warning(f"Unexpected frame from bridge: {str(raw)[:100]}")
            return

        msg_type = data.get("type")
        request_id = data.get("request_id")

        if msg_type in ("sent", "chats"):
            self._resolve(request_id, data)

        elif msg_type == "status":
            state = str(data.get("status") or "").upper()
            self._state = state
            logger.info(f"WhatsApp status: {state}")
            await self._emit_state(state)

        elif msg_type == "qr":
            logger.info("Scan the QR code in the bridge terminal to pair WhatsApp")

        elif msg_type == "error":
            error = data.get("error") or "unknown bridge error"
            if request_id and request_id in self._pending:
                future = self._pending.pop(request_id)
                if not future.done():
                    future.set_exception(BridgeError(str(error)))
            else:
                logger.error(f"WhatsApp bridge error: {error}")

        else:
            logger.debug(f"Ignoring bridge frame type={msg_type!r}")

    def _resolve(self, request_id: str | None, data: dict[str, Any]) -> None:
        future = self._pending.pop(request_id, None) if request_id else None
        if future is None:
            logger.debug(f"No pending request for bridge reply {request_id!r}")
            return
        if not future.done():
            future.set_result(data)


def make_client_factory(config: Config):
    """Return a factory creating a fresh bridge client per connect attempt."""
    wa = config.channels.whatsapp

    def factory(session: str) -> WhatsAppBridgeClient:
        return WhatsAppBridgeClient(wa, session)

    return factory
