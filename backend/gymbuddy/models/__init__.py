"""Database models package."""

from gymbuddy.models.user import User
from gymbuddy.models.swipe import Like, Pass
from gymbuddy.models.match import Match
from gymbuddy.models.message import Message
from gymbuddy.models.push_token import PushToken
from gymbuddy.models.invitation import Invitation, InvitationStatus, INVITATION_TRANSITIONS
from gymbuddy.models.workout_session import (
    WorkoutSession,
    WorkoutSessionStatus,
    WORKOUT_SESSION_TRANSITIONS,
)

__all__ = [
    "User",
    "Like",
    "Pass",
    "Match",
    "Message",
    "PushToken",
    "Invitation",
    "InvitationStatus",
    "INVITATION_TRANSITIONS",
    "WorkoutSession",
    "WorkoutSessionStatus",
    "WORKOUT_SESSION_TRANSITIONS",
]
