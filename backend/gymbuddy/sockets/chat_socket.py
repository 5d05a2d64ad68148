"""Real-time chat over WebSocket.

Frames are JSON objects ``{"event": <name>, "data": <payload>}`` in both
directions.

Client events: ``join_chat``, ``leave_chat``, ``send_message``,
``typing_start``, ``typing_stop``.
Server events: ``new_message``, ``user_typing``, ``user_stopped_typing``,
``message_notification``, ``error``.

There are no acknowledgements or delivery receipts.
"""

import json
import logging
from typing import Any, Callable, Dict, Optional, Set

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from sqlalchemy.orm import Session

from gymbuddy.database import get_session_factory
from gymbuddy.errors import GymBuddyError, NotAuthenticated
from gymbuddy.models import User
from gymbuddy.schemas import MessageCreate, MessageResponse, SocketEnvelope, message_preview
from gymbuddy.services.auth_service import AuthService
from gymbuddy.services.match_service import MatchService

logger = logging.getLogger(__name__)

router = APIRouter()

# Close code sent when the bearer token is missing or invalid
WS_CLOSE_UNAUTHORIZED = 4401


class ConnectionManager:
    """
    Tracks open chat sockets and the rooms they are in.

    Every socket sits in its personal room ``user:{id}`` and in at most one
    chat room ``chat:{match_id}``; joining a chat leaves the previous one.
    """

    def __init__(self):
        self.rooms: Dict[str, Set[WebSocket]] = {}
        self.current_chat: Dict[WebSocket, int] = {}
        self.socket_user: Dict[WebSocket, int] = {}

    @staticmethod
    def chat_room(match_id: int) -> str:
        return f"chat:{match_id}"

    @staticmethod
    def user_room(user_id: int) -> str:
        return f"user:{user_id}"

    def _join(self, websocket: WebSocket, room: str) -> None:
        self.rooms.setdefault(room, set()).add(websocket)

    def _leave(self, websocket: WebSocket, room: str) -> None:
        members = self.rooms.get(room)
        if not members:
            return
        members.discard(websocket)
        if not members:
            del self.rooms[room]

    def connect(self, websocket: WebSocket, user_id: int) -> None:
        self.socket_user[websocket] = user_id
        self._join(websocket, self.user_room(user_id))
        logger.info("User %s connected to chat socket", user_id)

    def disconnect(self, websocket: WebSocket) -> None:
        """Forget a socket: its chat room, its personal room and its owner."""
        self.leave_chat(websocket)
        user_id = self.socket_user.pop(websocket, None)
        if user_id is None:
            return
        self._leave(websocket, self.user_room(user_id))
        logger.info("User %s disconnected from chat socket", user_id)

    def join_chat(self, websocket: WebSocket, match_id: int) -> None:
        previous = self.current_chat.get(websocket)
        if previous is not None and previous != match_id:
            self._leave(websocket, self.chat_room(previous))
        self._join(websocket, self.chat_room(match_id))
        self.current_chat[websocket] = match_id

    def leave_chat(self, websocket: WebSocket, match_id: Optional[int] = None) -> None:
        current = self.current_chat.get(websocket)
        if current is None or (match_id is not None and match_id != current):
            return
        self._leave(websocket, self.chat_room(current))
        del self.current_chat[websocket]

    def in_chat(self, websocket: WebSocket, match_id: int) -> bool:
        return self.current_chat.get(websocket) == match_id

    def is_online(self, user_id: int) -> bool:
        return bool(self.rooms.get(self.user_room(user_id)))

    async def emit(self, websocket: WebSocket, event: str, data: Any) -> None:
        await websocket.send_json({"event": event, "data": data})

    async def emit_to_room(
        self,
        room: str,
        event: str,
        data: Any,
        exclude: Optional[WebSocket] = None,
    ) -> int:
        """Send an event to every socket in `room`. Returns the number reached."""
        sent = 0
        for websocket in list(self.rooms.get(room, ())):
            if websocket is exclude:
                continue
            try:
                await self.emit(websocket, event, data)
                sent += 1
            except Exception:
                logger.warning("Dropping closed socket after failed %s in %s", event, room)
                self.disconnect(websocket)
        return sent


manager = ConnectionManager()


def get_connection_manager() -> ConnectionManager:
    return manager


def _bearer_token(websocket: WebSocket, token: Optional[str]) -> Optional[str]:
    if token:
        return token
    header = websocket.headers.get("authorization", "")
    if header.lower().startswith("bearer "):
        return header[7:].strip()
    return None


def _match_id(data: Any) -> int:
    if isinstance(data, dict):
        data = data.get("matchId")
    try:
        return int(data)
    except (TypeError, ValueError):
        raise ValueError("A valid match id is required")


class ChatSession:
    """
    Handles the events of one authenticated socket.

    Only the user id is kept between events; every event that touches the
    database runs in its own short-lived session.
    """

    def __init__(
        self,
        websocket: WebSocket,
        user_id: int,
        session_factory: Callable[[], Session],
        connections: ConnectionManager,
    ):
        self.websocket = websocket
        self.user_id = user_id
        self.session_factory = session_factory
        self.connections = connections
        self.handlers = {
            "join_chat": self.join_chat,
            "leave_chat": self.leave_chat,
            "send_message": self.send_message,
            "typing_start": self.typing_start,
            "typing_stop": self.typing_stop,
        }

    async def error(self, message: str) -> None:
        await self.connections.emit(self.websocket, "error", {"message": message})

    async def handle(self, raw: str) -> None:
        try:
            envelope = SocketEnvelope.model_validate(json.loads(raw))
        except (ValueError, ValidationError):
            await self.error("Invalid event frame")
            return

        handler = self.handlers.get(envelope.event)
        if handler is None:
            await self.error(f"Unknown event: {envelope.event}")
            return

        db = self.session_factory()
        try:
            await handler(db, envelope.data)
        except GymBuddyError as e:
            await self.error(e.message)
        except ValidationError as e:
            await self.error(e.errors()[0]["msg"])
        except ValueError as e:
            await self.error(str(e))
        except Exception:
            logger.exception("Chat event %s from user %s failed", envelope.event, self.user_id)
            await self.error("Something went wrong")
        finally:
            db.close()

    def _load_user(self, db: Session) -> User:
        user = AuthService(db).get_user_by_id(self.user_id)
        if not user or not user.is_active:
            raise NotAuthenticated()
        return user

    async def join_chat(self, db: Session, data: Any) -> None:
        match = MatchService(db).get_match_for_participant(_match_id(data), self._load_user(db))
        self.connections.join_chat(self.websocket, match.id)
        logger.debug("User %s joined chat:%s", self.user_id, match.id)

    async def leave_chat(self, db: Session, data: Any) -> None:
        self.connections.leave_chat(self.websocket, _match_id(data))

    async def send_message(self, db: Session, data: Any) -> None:
        if not isinstance(data, dict):
            raise ValueError("send_message expects {matchId, text}")
        match_id = _match_id(data)
        payload = MessageCreate.model_validate({"text": data.get("text")})

        sender = self._load_user(db)
        match, message = MatchService(db).create_message(match_id, sender, payload.text)
        response = MessageResponse.model_validate(message).model_dump(mode="json", by_alias=True)
        room = self.connections.chat_room(match.id)
        other_id = match.other_user_id(sender.id)
        notice = {
            "matchId": match.id,
            "senderName": sender.name or "Someone",
            "preview": message_preview(message.text),
        }
        # Nothing below needs the database
        db.close()

        await self.connections.emit_to_room(room, "new_message", response)
        if self.connections.is_online(other_id):
            await self.connections.emit_to_room(
                self.connections.user_room(other_id),
                "message_notification",
                notice,
            )

    async def _typing(self, data: Any, event: str) -> None:
        match_id = _match_id(data)
        if not self.connections.in_chat(self.websocket, match_id):
            raise ValueError("Join the chat first")
        await self.connections.emit_to_room(
            self.connections.chat_room(match_id),
            event,
            {"matchId": match_id, "userId": self.user_id},
            exclude=self.websocket,
        )

    async def typing_start(self, db: Session, data: Any) -> None:
        await self._typing(data, "user_typing")

    async def typing_stop(self, db: Session, data: Any) -> None:
        await self._typing(data, "user_stopped_typing")


def _authenticate(session_factory: Callable[[], Session], token: Optional[str]) -> Optional[int]:
    db = session_factory()
    try:
        user = AuthService(db).user_from_token(token)
        return user.id if user else None
    finally:
        db.close()


@router.websocket("/ws/chat")
async def chat_endpoint(
    websocket: WebSocket,
    token: Optional[str] = Query(None),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
    connections: ConnectionManager = Depends(get_connection_manager),
):
    user_id = _authenticate(session_factory, _bearer_token(websocket, token))
    if user_id is None:
        logger.info("Rejected chat socket without a valid token")
        await websocket.close(code=WS_CLOSE_UNAUTHORIZED)
        return

    await websocket.accept()
    connections.connect(websocket, user_id)
    session = ChatSession(websocket, user_id, session_factory, connections)
    try:
        while True:
            raw = await websocket.receive_text()
            await session.handle(raw)
    except WebSocketDisconnect:
        pass
    finally:
        connections.disconnect(websocket)
