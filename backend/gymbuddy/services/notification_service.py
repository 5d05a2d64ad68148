"""Push tokens and Expo push notification dispatch."""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

import httpx
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from gymbuddy.config import Settings, get_settings
from gymbuddy.models import PushToken


logger = logging.getLogger(__name__)


class PushTokenService:
    """Registration of device tokens for a user."""

    def __init__(self, db: Session):
        self.db = db

    def register(self, user_id: int, token: str, platform: str) -> PushToken:
        """Upsert a token: an existing token value is reassigned to `user_id`."""
        push_token = self.db.query(PushToken).filter(PushToken.token == token).first()
        if push_token:
            if push_token.user_id != user_id:
                logger.info("Push token reassigned from user %s to user %s", push_token.user_id, user_id)
            push_token.user_id = user_id
            push_token.platform = platform
        else:
            push_token = PushToken(user_id=user_id, token=token, platform=platform)
            self.db.add(push_token)
        self.db.commit()
        self.db.refresh(push_token)
        return push_token

    def remove(self, user_id: int, token: str) -> int:
        """Delete a token owned by `user_id`. Returns the number of rows removed."""
        removed = (
            self.db.query(PushToken)
            .filter(PushToken.token == token, PushToken.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.db.commit()
        return removed

    def tokens_for(self, user_id: int) -> List[PushToken]:
        return (
            self.db.query(PushToken)
            .filter(PushToken.user_id == user_id)
            .order_by(PushToken.id)
            .all()
        )


@dataclass
class PushNotification:
    user_id: int
    title: str
    body: str
    data: Optional[Dict[str, Any]] = field(default=None)


class PushDispatcher:
    """
    Sends one batched request to the Expo push gateway per notification.

    Delivery contract: callers queue `dispatch` as a background task after
    their response is produced. Each notification is attempted at most once.
    There is no retry, no backoff, no pruning of dead tokens and no delivery
    confirmation; every failure is logged and swallowed.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.session_factory = session_factory
        self.settings = settings or get_settings()
        self.transport = transport

    def build_messages(self, tokens: List[str], notification: PushNotification) -> List[Dict[str, Any]]:
        """One gateway message per device token."""
        return [
            {
                "to": token,
                "sound": "default",
                "title": notification.title,
                "body": notification.body,
                "data": notification.data or {},
            }
            for token in tokens
        ]

    def _load_tokens(self, user_id: int) -> List[str]:
        db = self.session_factory()
        try:
            return [t.token for t in PushTokenService(db).tokens_for(user_id)]
        finally:
            db.close()

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.settings.expo_access_token:
            headers["Authorization"] = f"Bearer {self.settings.expo_access_token}"
        return headers

    async def dispatch(self, notification: PushNotification) -> None:
        """Send `notification` to every device of its user. Never raises."""
        if not self.settings.push_enabled:
            return
        try:
            tokens = await run_in_threadpool(self._load_tokens, notification.user_id)
            if not tokens:
                return

            messages = self.build_messages(tokens, notification)
            async with httpx.AsyncClient(
                transport=self.transport,
                timeout=self.settings.push_timeout_seconds,
            ) as client:
                response = await client.post(
                    self.settings.expo_push_url,
                    json=messages,
                    headers=self._headers(),
                )
                response.raise_for_status()
                result = response.json()

            self._log_tickets(notification.user_id, result)
        except Exception:
            logger.exception("Push notification to user %s failed", notification.user_id)

    def _log_tickets(self, user_id: int, result: Any) -> None:
        tickets = result.get("data", []) if isinstance(result, dict) else []
        errors = [t for t in tickets if isinstance(t, dict) and t.get("status") == "error"]
        for ticket in errors:
            logger.warning(
                "Push ticket error for user %s: %s",
                user_id,
                ticket.get("message") or ticket.get("details"),
            )
        logger.info(
            "Push sent to user %s: %d ticket(s), %d error(s)",
            user_id,
            len(tickets),
            len(errors),
        )


_dispatcher: Optional[PushDispatcher] = None


def get_push_dispatcher() -> PushDispatcher:
    """Dependency returning the process-wide dispatcher."""
    global _dispatcher
    if _dispatcher is None:
        from gymbuddy.database import SessionLocal
        _dispatcher = PushDispatcher(SessionLocal)
    return _dispatcher
