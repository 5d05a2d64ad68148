import os
import shutil
import tempfile
import unittest
from unittest.mock import AsyncMock

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.pool import QueuePool
from starlette.websockets import WebSocketDisconnect

from gymbuddy.main import app
from gymbuddy.sockets.chat_socket import WS_CLOSE_UNAUTHORIZED, ConnectionManager
from tests.base import ApiTestCase


class SocketHelpers:
    def connect(self, client: TestClient, user_id: int):
        return client.websocket_connect(f"/ws/chat?token={self.token(user_id)}")

    def emit(self, ws, event: str, data=None) -> None:
        ws.send_json({"event": event, "data": data})

    def flush(self, ws) -> None:
        """Round-trip a throwaway event so every earlier frame is handled."""
        self.emit(ws, "ping")
        self.assertEqual(ws.receive_json(), {"event": "error", "data": {"message": "Unknown event: ping"}})

    def join(self, ws, match_id: int = None) -> None:
        self.emit(ws, "join_chat", {"matchId": match_id or self.match_id})
        self.flush(ws)


class ChatSocketTests(SocketHelpers, ApiTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.anna = self.create_user("Anna")
        self.bram = self.create_user("Bram")
        self.cees = self.create_user("Cees")
        self.match_id = self.create_match(self.anna, self.bram)

    def test_invalid_token_is_closed_before_accept(self) -> None:
        with TestClient(app) as client:
            with self.assertRaises(WebSocketDisconnect) as ctx:
                with client.websocket_connect("/ws/chat?token=garbage"):
                    pass
        self.assertEqual(ctx.exception.code, WS_CLOSE_UNAUTHORIZED)

    def test_missing_token_is_closed_before_accept(self) -> None:
        with TestClient(app) as client:
            with self.assertRaises(WebSocketDisconnect) as ctx:
                with client.websocket_connect("/ws/chat"):
                    pass
        self.assertEqual(ctx.exception.code, WS_CLOSE_UNAUTHORIZED)

    def test_token_in_authorization_header(self) -> None:
        with TestClient(app) as client:
            with client.websocket_connect("/ws/chat", headers=self.auth(self.anna)) as ws:
                self.join(ws)
                self.assertTrue(self.connections.is_online(self.anna))

    def test_message_reaches_both_sides_and_is_stored(self) -> None:
        with TestClient(app) as client:
            with self.connect(client, self.anna) as anna, self.connect(client, self.bram) as bram:
                self.join(anna)
                self.join(bram)

                self.emit(anna, "send_message", {"matchId": self.match_id, "text": " hi there "})

                own = anna.receive_json()
                self.assertEqual(own["event"], "new_message")
                self.assertEqual(own["data"]["text"], "hi there")
                self.assertEqual(own["data"]["senderId"], self.anna)
                self.assertEqual(bram.receive_json(), own)

                notice = bram.receive_json()
                self.assertEqual(notice["event"], "message_notification")
                self.assertEqual(
                    notice["data"],
                    {"matchId": self.match_id, "senderName": "Anna", "preview": "hi there"},
                )
                self.flush(anna)

            history = client.get(f"/matches/{self.match_id}/messages", headers=self.auth(self.bram)).json()
            self.assertEqual([m["text"] for m in history["data"]["messages"]], ["hi there"])

        # Pushes only go out through the REST endpoint
        self.assertEqual(self.dispatcher.sent, [])

    def test_rest_message_is_broadcast_to_the_room(self) -> None:
        with TestClient(app) as client:
            with self.connect(client, self.anna) as anna:
                self.join(anna)

                res = client.post(
                    f"/matches/{self.match_id}/messages",
                    json={"text": "on my way"},
                    headers=self.auth(self.bram),
                )

                frame = anna.receive_json()
                self.assertEqual(frame["event"], "new_message")
                self.assertEqual(frame["data"], res.json()["data"])

        self.assertEqual(len(self.dispatcher.sent), 1)

    def test_left_chat_only_gets_the_notification(self) -> None:
        with TestClient(app) as client:
            with self.connect(client, self.anna) as anna, self.connect(client, self.bram) as bram:
                self.join(anna)
                self.join(bram)
                self.emit(anna, "leave_chat", {"matchId": self.match_id})
                self.flush(anna)

                self.emit(bram, "send_message", {"matchId": self.match_id, "text": "still coming?"})
                self.assertEqual(bram.receive_json()["event"], "new_message")

                self.assertEqual(anna.receive_json()["event"], "message_notification")
                self.flush(anna)

    def test_typing_is_relayed_to_the_other_side_only(self) -> None:
        with TestClient(app) as client:
            with self.connect(client, self.anna) as anna, self.connect(client, self.bram) as bram:
                self.join(anna)
                self.join(bram)

                self.emit(bram, "typing_start", {"matchId": self.match_id})
                self.assertEqual(
                    anna.receive_json(),
                    {"event": "user_typing", "data": {"matchId": self.match_id, "userId": self.bram}},
                )
                self.emit(bram, "typing_stop", {"matchId": self.match_id})
                self.assertEqual(anna.receive_json()["event"], "user_stopped_typing")
                self.flush(bram)

    def test_typing_requires_joining_first(self) -> None:
        with TestClient(app) as client:
            with self.connect(client, self.anna) as anna:
                self.emit(anna, "typing_start", {"matchId": self.match_id})
                self.assertEqual(anna.receive_json()["data"], {"message": "Join the chat first"})

    def test_outsider_cannot_join_or_send(self) -> None:
        with TestClient(app) as client:
            with self.connect(client, self.cees) as cees:
                self.emit(cees, "join_chat", {"matchId": self.match_id})
                self.assertEqual(cees.receive_json(), {"event": "error", "data": {"message": "Not authorized"}})

                self.emit(cees, "send_message", {"matchId": self.match_id, "text": "hello"})
                self.assertEqual(cees.receive_json()["data"], {"message": "Not authorized"})

                self.emit(cees, "join_chat", {"matchId": 999})
                self.assertEqual(cees.receive_json()["data"], {"message": "Match not found"})

        self.assertEqual(self.count_messages(self.match_id), 0)

    def test_invalid_messages_are_reported_and_not_stored(self) -> None:
        with TestClient(app) as client:
            with self.connect(client, self.anna) as anna:
                self.join(anna)

                self.emit(anna, "send_message", {"matchId": self.match_id, "text": "   "})
                self.assertEqual(anna.receive_json()["data"], {"message": "Message cannot be empty"})

                self.emit(anna, "send_message", {"matchId": self.match_id, "text": "x" * 1001})
                self.assertIn("1000", anna.receive_json()["data"]["message"])

                self.emit(anna, "send_message", {"text": "no match"})
                self.assertEqual(anna.receive_json()["data"], {"message": "A valid match id is required"})

        self.assertEqual(self.count_messages(self.match_id), 0)

    def test_malformed_frame_is_reported(self) -> None:
        with TestClient(app) as client:
            with self.connect(client, self.anna) as anna:
                anna.send_text("not json")
                self.assertEqual(anna.receive_json(), {"event": "error", "data": {"message": "Invalid event frame"}})
                # The socket stays usable
                self.join(anna)


class ChatSocketPoolTests(SocketHelpers, ApiTestCase):
    """Runs against a small file-backed pool like the production engine."""

    def build_engine(self):
        directory = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, directory, True)
        return create_engine(
            f"sqlite:///{os.path.join(directory, 'chat.db')}",
            connect_args={"check_same_thread": False},
            poolclass=QueuePool,
            pool_size=2,
            max_overflow=0,
            pool_timeout=1,
        )

    def setUp(self) -> None:
        super().setUp()
        self.anna = self.create_user("Anna")
        self.bram = self.create_user("Bram")
        self.match_id = self.create_match(self.anna, self.bram)

    def test_idle_sockets_hold_no_pool_connections(self) -> None:
        with TestClient(app) as client:
            with self.connect(client, self.anna) as anna, self.connect(client, self.bram) as bram:
                self.join(anna)
                self.join(bram)

                self.assertEqual(self.engine.pool.checkedout(), 0)

                res = client.get("/matches", headers=self.auth(self.anna))
                self.assertEqual(res.status_code, 200)
                self.assertEqual([m["id"] for m in res.json()["data"]], [self.match_id])

    def test_sending_over_idle_sockets_releases_connections(self) -> None:
        with TestClient(app) as client:
            with self.connect(client, self.anna) as anna, self.connect(client, self.bram) as bram:
                self.join(anna)
                self.join(bram)
                for text in ("one", "two", "three"):
                    self.emit(anna, "send_message", {"matchId": self.match_id, "text": text})
                    self.assertEqual(anna.receive_json()["event"], "new_message")
                self.flush(anna)

                self.assertEqual(self.engine.pool.checkedout(), 0)
                history = client.get(f"/matches/{self.match_id}/messages", headers=self.auth(self.bram))
                self.assertEqual(history.status_code, 200)
                self.assertEqual(len(history.json()["data"]["messages"]), 3)


class ConnectionManagerTests(unittest.IsolatedAsyncioTestCase):
    async def test_dead_socket_is_forgotten_everywhere(self) -> None:
        connections = ConnectionManager()
        alive, dead = AsyncMock(), AsyncMock()
        dead.send_json.side_effect = RuntimeError("socket closed")
        connections.connect(alive, 1)
        connections.connect(dead, 2)
        connections.join_chat(alive, 7)
        connections.join_chat(dead, 7)

        reached = await connections.emit_to_room("chat:7", "new_message", {"id": 1})

        self.assertEqual(reached, 1)
        self.assertFalse(connections.is_online(2))
        self.assertFalse(connections.in_chat(dead, 7))
        self.assertNotIn(dead, connections.socket_user)
        self.assertEqual(connections.rooms["chat:7"], {alive})
        self.assertTrue(connections.is_online(1))

    async def test_disconnect_of_unknown_socket_is_a_no_op(self) -> None:
        connections = ConnectionManager()
        connections.disconnect(AsyncMock())
        self.assertEqual(connections.rooms, {})


if __name__ == "__main__":
    unittest.main()
