"""Workout sessions scheduled inside a match."""

from typing import List

from sqlalchemy import or_
from sqlalchemy.orm import Session

from gymbuddy.errors import Forbidden, NotFound, ValidationFailed
from gymbuddy.models import (
    Match,
    User,
    WorkoutSession,
    WorkoutSessionStatus,
    WORKOUT_SESSION_TRANSITIONS,
)
from gymbuddy.schemas import WorkoutSessionCreate
from gymbuddy.services.match_service import MatchService


class WorkoutSessionService:
    def __init__(self, db: Session):
        self.db = db
        self.match_service = MatchService(db)

    def create(self, user: User, data: WorkoutSessionCreate) -> WorkoutSession:
        match = self.match_service.get_match_for_participant(data.match_id, user)
        session = WorkoutSession(
            match_id=match.id,
            created_by_id=user.id,
            scheduled_time=data.scheduled_time,
            location=data.location,
            workout_type=data.workout_type,
            status=WorkoutSessionStatus.SCHEDULED,
        )
        self.db.add(session)
        self.db.commit()
        self.db.refresh(session)
        return session

    def list_for(self, user: User) -> List[WorkoutSession]:
        """Sessions across all of the user's matches, soonest first."""
        return (
            self.db.query(WorkoutSession)
            .join(Match, Match.id == WorkoutSession.match_id)
            .filter(or_(Match.user_a_id == user.id, Match.user_b_id == user.id))
            .order_by(WorkoutSession.scheduled_time.asc(), WorkoutSession.id.asc())
            .all()
        )

    def update_status(self, session_id: int, user: User, status: WorkoutSessionStatus) -> WorkoutSession:
        session = self.db.query(WorkoutSession).filter(WorkoutSession.id == session_id).first()
        if not session:
            raise NotFound("Workout session not found")
        if not session.match.has_participant(user.id):
            raise Forbidden()
        if (session.status, status) not in WORKOUT_SESSION_TRANSITIONS:
            raise ValidationFailed(
                f"Workout session cannot change from {session.status.value} to {status.value}"
            )
        session.status = status
        self.db.commit()
        self.db.refresh(session)
        return session
