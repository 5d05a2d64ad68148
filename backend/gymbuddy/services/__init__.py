"""Services package."""

from gymbuddy.services.auth_service import AuthService
from gymbuddy.services.match_service import MatchService
from gymbuddy.services.notification_service import (
    PushDispatcher,
    PushNotification,
    PushTokenService,
    get_push_dispatcher,
)
from gymbuddy.services.swipe_service import SwipeService
from gymbuddy.services.invitation_service import InvitationService
from gymbuddy.services.workout_session_service import WorkoutSessionService

__all__ = [
    "AuthService",
    "MatchService",
    "PushDispatcher",
    "PushNotification",
    "PushTokenService",
    "get_push_dispatcher",
    "SwipeService",
    "InvitationService",
    "WorkoutSessionService",
]
