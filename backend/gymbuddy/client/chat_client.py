"""Client connection manager for the chat socket.

One manager owns one socket connection, the chat room it is in and one
callback per server event. Registering a callback for an event replaces
the previous one.
"""

import asyncio
import inspect
import json
import logging
from typing import Any, Callable, Dict, Optional

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, WebSocketException

logger = logging.getLogger(__name__)

DEFAULT_RECONNECTION_ATTEMPTS = 5
DEFAULT_RECONNECTION_DELAY = 1.0

# Server events callbacks can be registered for, plus connection lifecycle
SERVER_EVENTS = {
    "new_message",
    "user_typing",
    "user_stopped_typing",
    "message_notification",
    "error",
    "connect",
    "disconnect",
    "reconnect_failed",
}


class ChatConnectionManager:
    """
    Chat socket client.

    Usage::

        chat = ChatConnectionManager("wss://api.example.com/ws/chat")
        chat.on("new_message", handle_message)
        await chat.connect(access_token)
        await chat.join_chat(match_id)
        await chat.send_message(match_id, "See you at 7?")

    The connection is authenticated once, when it is opened, with the
    bearer token. Lost connections are retried a fixed number of times with
    a fixed delay, and the last joined chat is re-joined afterwards.
    """

    def __init__(
        self,
        url: str,
        reconnection_attempts: int = DEFAULT_RECONNECTION_ATTEMPTS,
        reconnection_delay: float = DEFAULT_RECONNECTION_DELAY,
        connector: Callable = ws_connect,
    ):
        self.url = url
        self.reconnection_attempts = reconnection_attempts
        self.reconnection_delay = reconnection_delay
        self._connector = connector
        self._token: Optional[str] = None
        self._websocket = None
        self._receiver: Optional[asyncio.Task] = None
        self._closing = False
        self._handlers: Dict[str, Callable[[Any], Any]] = {}
        self.current_chat_id: Optional[int] = None
        self.is_connected = False

    # ---------- Callbacks ----------

    def on(self, event: str, callback: Callable[[Any], Any]) -> None:
        """Register the callback for `event`, replacing any previous one."""
        if event not in SERVER_EVENTS:
            raise ValueError(f"Unknown chat event: {event}")
        self._handlers[event] = callback

    def off(self, event: str) -> None:
        self._handlers.pop(event, None)

    async def _fire(self, event: str, data: Any = None) -> None:
        callback = self._handlers.get(event)
        if callback is None:
            return
        try:
            result = callback(data)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Chat callback for %s failed", event)

    # ---------- Connection ----------

    async def connect(self, token: str) -> None:
        """Open the socket with `token`; raises if the first attempt fails."""
        if self.is_connected:
            return
        self._token = token
        self._closing = False
        await self._open()
        self._receiver = asyncio.create_task(self._receive_loop())

    async def disconnect(self) -> None:
        self._closing = True
        receiver, self._receiver = self._receiver, None
        if receiver is not None:
            receiver.cancel()
            try:
                await receiver
            except asyncio.CancelledError:
                pass
        if self._websocket is not None:
            await self._websocket.close()
            self._websocket = None
        self.is_connected = False
        self.current_chat_id = None

    async def _open(self) -> None:
        self._websocket = await self._connector(
            self.url,
            additional_headers={"Authorization": f"Bearer {self._token}"},
        )
        self.is_connected = True
        logger.info("Chat socket connected")
        await self._fire("connect")

    async def _reconnect(self) -> bool:
        for attempt in range(1, self.reconnection_attempts + 1):
            await asyncio.sleep(self.reconnection_delay)
            if self._closing:
                return False
            try:
                await self._open()
            except (OSError, WebSocketException) as e:
                logger.warning(
                    "Chat reconnect attempt %d/%d failed: %s",
                    attempt,
                    self.reconnection_attempts,
                    e,
                )
                continue
            if self.current_chat_id is not None:
                await self._emit("join_chat", self.current_chat_id)
            return True
        logger.error("Chat socket gave up after %d reconnect attempts", self.reconnection_attempts)
        await self._fire("reconnect_failed")
        return False

    async def _receive_loop(self) -> None:
        while True:
            try:
                async for raw in self._websocket:
                    await self._dispatch(raw)
            except ConnectionClosed:
                pass
            if self._closing:
                return
            self.is_connected = False
            logger.info("Chat socket disconnected")
            await self._fire("disconnect")
            if not await self._reconnect():
                self.current_chat_id = None
                return

    async def _dispatch(self, raw: Any) -> None:
        try:
            frame = json.loads(raw)
            event = frame["event"]
        except (ValueError, TypeError, KeyError):
            logger.warning("Ignoring malformed chat frame")
            return
        await self._fire(event, frame.get("data"))

    async def _emit(self, event: str, data: Any) -> bool:
        if not self.is_connected or self._websocket is None:
            return False
        await self._websocket.send(json.dumps({"event": event, "data": data}))
        return True

    # ---------- Chat operations ----------

    async def join_chat(self, match_id: int) -> bool:
        """Join a match room, leaving the current one first."""
        if not self.is_connected:
            return False
        if self.current_chat_id is not None and self.current_chat_id != match_id:
            await self._emit("leave_chat", self.current_chat_id)
        await self._emit("join_chat", match_id)
        self.current_chat_id = match_id
        return True

    async def leave_chat(self) -> bool:
        if self.current_chat_id is None:
            return False
        await self._emit("leave_chat", self.current_chat_id)
        self.current_chat_id = None
        return True

    async def send_message(self, match_id: int, text: str) -> bool:
        return await self._emit("send_message", {"matchId": match_id, "text": text})

    async def start_typing(self, match_id: int) -> bool:
        return await self._emit("typing_start", match_id)

    async def stop_typing(self, match_id: int) -> bool:
        return await self._emit("typing_stop", match_id)
