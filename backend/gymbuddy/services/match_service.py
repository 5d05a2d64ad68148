"""Match and message operations shared by the REST API and the chat socket."""

import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gymbuddy.errors import Forbidden, NotFound
from gymbuddy.models import Match, Message, User
from gymbuddy.schemas import (
    LastMessage,
    MatchDetail,
    MatchMessages,
    MatchSummary,
    MessageResponse,
    message_preview,
)
from gymbuddy.services.notification_service import PushNotification
from gymbuddy.services.profile_service import to_user_profile


logger = logging.getLogger(__name__)

MATCH_NOT_FOUND = "Match not found"


class MatchService:
    """Service for matches and the chat history inside them."""

    def __init__(self, db: Session):
        self.db = db

    # ---------- Matches ----------

    def _find_match(self, user_a_id: int, user_b_id: int) -> Optional[Match]:
        return (
            self.db.query(Match)
            .filter(Match.user_a_id == user_a_id, Match.user_b_id == user_b_id)
            .first()
        )

    def get_or_create_match(self, first_id: int, second_id: int) -> tuple:
        """Return (match, created) for two distinct users."""
        if first_id == second_id:
            raise ValueError("A match needs two different users")
        user_a_id, user_b_id = Match.ordered_pair(first_id, second_id)
        match = self._find_match(user_a_id, user_b_id)
        if match:
            return match, False
        match = Match(user_a_id=user_a_id, user_b_id=user_b_id)
        self.db.add(match)
        try:
            self.db.commit()
        except IntegrityError:
            # The other user completed the same match first
            self.db.rollback()
            match = self._find_match(user_a_id, user_b_id)
            if match is None:
                raise
            return match, False
        self.db.refresh(match)
        logger.info("Match %s created between users %s and %s", match.id, user_a_id, user_b_id)
        return match, True

    def get_match_for_participant(self, match_id: int, user: User) -> Match:
        """Load a match the caller takes part in; 404 before 403."""
        match = self.db.query(Match).filter(Match.id == match_id).first()
        if not match:
            raise NotFound(MATCH_NOT_FOUND)
        if not match.has_participant(user.id):
            raise Forbidden()
        return match

    def counterparty(self, match: Match, user: User) -> User:
        return match.user_b if user.id == match.user_a_id else match.user_a

    def last_message(self, match_id: int) -> Optional[Message]:
        return (
            self.db.query(Message)
            .filter(Message.match_id == match_id)
            .order_by(Message.created_at.desc(), Message.id.desc())
            .first()
        )

    def list_matches(self, user: User) -> List[MatchSummary]:
        """
        All matches of `user`, newest first.

        Each entry carries the other user's profile (as seen by `user`) and
        the latest message, or None when the chat is still empty.
        """
        matches = (
            self.db.query(Match)
            .filter(or_(Match.user_a_id == user.id, Match.user_b_id == user.id))
            .order_by(Match.created_at.desc(), Match.id.desc())
            .all()
        )

        result = []
        for match in matches:
            last = self.last_message(match.id)
            result.append(
                MatchSummary(
                    id=match.id,
                    other_user=to_user_profile(self.counterparty(match, user), user),
                    last_message=LastMessage.model_validate(last) if last else None,
                    created_at=match.created_at,
                )
            )
        return result

    def match_detail(self, match: Match, user: User) -> MatchDetail:
        return MatchDetail(
            id=match.id,
            other_user=to_user_profile(self.counterparty(match, user), user),
            created_at=match.created_at,
        )

    # ---------- Messages ----------

    def list_messages(self, match_id: int, user: User) -> MatchMessages:
        """Full history of a match in send order."""
        match = self.get_match_for_participant(match_id, user)
        messages = (
            self.db.query(Message)
            .filter(Message.match_id == match.id)
            .order_by(Message.created_at.asc(), Message.id.asc())
            .all()
        )
        return MatchMessages(
            match=self.match_detail(match, user),
            messages=[MessageResponse.model_validate(m) for m in messages],
        )

    def create_message(self, match_id: int, sender: User, text: str) -> tuple:
        """
        Persist a message from `sender` into the match.

        `text` must already be validated (see MessageCreate). Returns
        (match, message) so callers can notify the counterparty.
        """
        match = self.get_match_for_participant(match_id, sender)
        message = Message(match_id=match.id, sender_id=sender.id, text=text)
        self.db.add(message)
        self.db.commit()
        self.db.refresh(message)
        return match, message

    def message_push(self, match: Match, sender: User, message: Message) -> PushNotification:
        """Push notification announcing `message` to the other participant."""
        return PushNotification(
            user_id=match.other_user_id(sender.id),
            title=f"New message from {sender.name or 'someone'}",
            body=message_preview(message.text),
            data={"type": "message", "matchId": match.id},
        )
