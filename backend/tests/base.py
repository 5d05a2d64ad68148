"""Shared fixtures for API tests: in-memory database and recorded pushes."""

import unittest

from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from gymbuddy.database import Base, get_db, get_session_factory
from gymbuddy.main import app
from gymbuddy.models import Match, Message, User
from gymbuddy.services.auth_service import AuthService
from gymbuddy.services.notification_service import get_push_dispatcher
from gymbuddy.sockets.chat_socket import ConnectionManager, get_connection_manager


class RecordingDispatcher:
    """Stands in for PushDispatcher and keeps every queued notification."""

    def __init__(self):
        self.sent = []

    async def dispatch(self, notification):
        self.sent.append(notification)


class ApiTestCase(unittest.TestCase):
    def build_engine(self):
        return create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    def setUp(self) -> None:
        self.engine = self.build_engine()
        Base.metadata.create_all(self.engine)
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, autocommit=False)

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        self.dispatcher = RecordingDispatcher()
        self.connections = ConnectionManager()
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_session_factory] = lambda: self.SessionLocal
        app.dependency_overrides[get_push_dispatcher] = lambda: self.dispatcher
        app.dependency_overrides[get_connection_manager] = lambda: self.connections
        self.client = TestClient(app)

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        Base.metadata.drop_all(self.engine)
        self.engine.dispose()

    # ---------- data helpers ----------

    def create_user(self, name: str, **fields) -> int:
        db = self.SessionLocal()
        try:
            user = User(
                email=f"{name.lower()}@example.com",
                name=name,
                goals=fields.pop("goals", []),
                availability=fields.pop("availability", []),
                interest_tags=fields.pop("interest_tags", []),
                likes_remaining=fields.pop("likes_remaining", 25),
                **fields,
            )
            db.add(user)
            db.commit()
            return user.id
        finally:
            db.close()

    def create_match(self, first_id: int, second_id: int) -> int:
        user_a_id, user_b_id = Match.ordered_pair(first_id, second_id)
        db = self.SessionLocal()
        try:
            match = Match(user_a_id=user_a_id, user_b_id=user_b_id)
            db.add(match)
            db.commit()
            return match.id
        finally:
            db.close()

    def count_messages(self, match_id: int) -> int:
        db = self.SessionLocal()
        try:
            return db.query(Message).filter(Message.match_id == match_id).count()
        finally:
            db.close()

    def token(self, user_id: int) -> str:
        return AuthService.create_access_token({"sub": str(user_id)})

    def auth(self, user_id: int) -> dict:
        return {"Authorization": f"Bearer {self.token(user_id)}"}
