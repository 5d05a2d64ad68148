"""Routers package."""

from gymbuddy.routers.auth import router as auth_router
from gymbuddy.routers.users import router as users_router
from gymbuddy.routers.swipe import router as swipe_router
from gymbuddy.routers.matches import router as matches_router
from gymbuddy.routers.notifications import router as notifications_router
from gymbuddy.routers.invitations import router as invitations_router
from gymbuddy.routers.sessions import router as sessions_router

__all__ = [
    "auth_router",
    "users_router",
    "swipe_router",
    "matches_router",
    "notifications_router",
    "invitations_router",
    "sessions_router",
]
