import asyncio
import json
import unittest
from unittest.mock import AsyncMock

from gymbuddy.client import ChatConnectionManager


class FakeSocket:
    """In-memory stand-in for a websockets client connection."""

    def __init__(self):
        self.sent = []
        self.incoming = asyncio.Queue()
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        raw = await self.incoming.get()
        if raw is None:
            raise StopAsyncIteration
        return raw

    async def send(self, raw):
        self.sent.append(json.loads(raw))

    async def close(self):
        self.closed = True

    def push(self, event, data=None):
        self.incoming.put_nowait(json.dumps({"event": event, "data": data}))

    def drop(self):
        self.incoming.put_nowait(None)


async def wait_until(predicate, timeout=1.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


class ChatConnectionManagerTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        self.socket = FakeSocket()
        self.connector = AsyncMock(return_value=self.socket)
        self.chat = ChatConnectionManager(
            "ws://testserver/ws/chat",
            reconnection_attempts=2,
            reconnection_delay=0,
            connector=self.connector,
        )

    async def asyncTearDown(self) -> None:
        await self.chat.disconnect()

    async def test_connect_sends_bearer_token(self) -> None:
        connected = []
        self.chat.on("connect", lambda _: connected.append(True))

        await self.chat.connect("jwt-token")

        self.connector.assert_awaited_once_with(
            "ws://testserver/ws/chat",
            additional_headers={"Authorization": "Bearer jwt-token"},
        )
        self.assertTrue(self.chat.is_connected)
        self.assertEqual(connected, [True])

    async def test_operations_before_connect_are_refused(self) -> None:
        self.assertFalse(await self.chat.join_chat(1))
        self.assertFalse(await self.chat.send_message(1, "hi"))
        self.assertFalse(await self.chat.start_typing(1))
        self.connector.assert_not_awaited()

    async def test_joining_a_chat_leaves_the_previous_one(self) -> None:
        await self.chat.connect("jwt-token")

        await self.chat.join_chat(1)
        await self.chat.join_chat(2)
        await self.chat.join_chat(2)

        self.assertEqual(
            self.socket.sent,
            [
                {"event": "join_chat", "data": 1},
                {"event": "leave_chat", "data": 1},
                {"event": "join_chat", "data": 2},
                {"event": "join_chat", "data": 2},
            ],
        )
        self.assertEqual(self.chat.current_chat_id, 2)

    async def test_chat_operations_emit_frames(self) -> None:
        await self.chat.connect("jwt-token")
        await self.chat.join_chat(3)

        self.assertTrue(await self.chat.send_message(3, "See you at 7?"))
        await self.chat.start_typing(3)
        await self.chat.stop_typing(3)
        self.assertTrue(await self.chat.leave_chat())
        self.assertFalse(await self.chat.leave_chat())

        self.assertEqual(
            [frame["event"] for frame in self.socket.sent],
            ["join_chat", "send_message", "typing_start", "typing_stop", "leave_chat"],
        )
        self.assertEqual(self.socket.sent[1]["data"], {"matchId": 3, "text": "See you at 7?"})
        self.assertIsNone(self.chat.current_chat_id)

    async def test_registering_a_callback_replaces_the_previous_one(self) -> None:
        first, second = [], []
        self.chat.on("new_message", first.append)
        self.chat.on("new_message", second.append)
        await self.chat.connect("jwt-token")

        self.socket.push("new_message", {"id": 1, "text": "hi"})
        await wait_until(lambda: second)

        self.assertEqual(first, [])
        self.assertEqual(second, [{"id": 1, "text": "hi"}])

    async def test_async_callbacks_are_awaited(self) -> None:
        received = []

        async def on_typing(data):
            received.append(data)

        self.chat.on("user_typing", on_typing)
        await self.chat.connect("jwt-token")

        self.socket.push("user_typing", {"matchId": 3, "userId": 9})
        await wait_until(lambda: received)

        self.assertEqual(received, [{"matchId": 3, "userId": 9}])

    async def test_off_removes_the_callback(self) -> None:
        received = []
        self.chat.on("error", received.append)
        self.chat.off("error")
        self.chat.on("user_typing", received.append)
        await self.chat.connect("jwt-token")

        self.socket.push("error", {"message": "nope"})
        self.socket.push("user_typing", {"matchId": 1, "userId": 2})
        await wait_until(lambda: received)

        self.assertEqual(received, [{"matchId": 1, "userId": 2}])

    async def test_unknown_event_cannot_be_registered(self) -> None:
        with self.assertRaises(ValueError):
            self.chat.on("match_created", print)

    async def test_reconnect_rejoins_the_current_chat(self) -> None:
        replacement = FakeSocket()
        self.connector.side_effect = [self.socket, replacement]
        disconnects = []
        self.chat.on("disconnect", lambda _: disconnects.append(True))

        await self.chat.connect("jwt-token")
        await self.chat.join_chat(5)
        self.socket.drop()

        await wait_until(lambda: replacement.sent)

        self.assertEqual(disconnects, [True])
        self.assertEqual(replacement.sent, [{"event": "join_chat", "data": 5}])
        self.assertTrue(self.chat.is_connected)
        self.assertEqual(self.connector.await_count, 2)

    async def test_gives_up_after_the_configured_attempts(self) -> None:
        self.connector.side_effect = [self.socket, OSError("refused"), OSError("refused")]
        failed = []
        self.chat.on("reconnect_failed", lambda _: failed.append(True))

        await self.chat.connect("jwt-token")
        await self.chat.join_chat(5)

        with self.assertLogs("gymbuddy.client.chat_client", level="WARNING"):
            self.socket.drop()
            await wait_until(lambda: failed)

        self.assertEqual(self.connector.await_count, 3)
        self.assertFalse(self.chat.is_connected)
        self.assertIsNone(self.chat.current_chat_id)
        self.assertFalse(await self.chat.send_message(5, "anyone?"))

    async def test_disconnect_closes_socket_without_reconnecting(self) -> None:
        await self.chat.connect("jwt-token")
        await self.chat.join_chat(5)

        await self.chat.disconnect()

        self.assertTrue(self.socket.closed)
        self.assertFalse(self.chat.is_connected)
        self.assertIsNone(self.chat.current_chat_id)
        self.assertEqual(self.connector.await_count, 1)


if __name__ == "__main__":
    unittest.main()
