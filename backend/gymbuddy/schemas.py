"""Pydantic schemas for API request/response validation."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError
from typing import Optional, List, Any, Generic, TypeVar
from datetime import datetime
from enum import Enum

from gymbuddy.models import InvitationStatus, WorkoutSessionStatus


MESSAGE_MAX_LENGTH = 1000

DataT = TypeVar("DataT")


class CamelModel(BaseModel):
    """Base schema exchanging camelCase field names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# ============== Envelope ==============

class ApiResponse(CamelModel, Generic[DataT]):
    """Success envelope wrapping every payload."""
    success: bool = True
    data: DataT


class ErrorResponse(BaseModel):
    success: bool = False
    error: str


# ============== Auth Schemas ==============

class UserRegister(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str = Field(..., min_length=2, max_length=50)


class UserLogin(CamelModel):
    email: EmailStr
    password: str


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    user_id: int
    name: str


# ============== Profile Schemas ==============

class AvailabilitySlot(CamelModel):
    day: str
    time_slots: List[str] = []


class UserProfile(CamelModel):
    """A user as seen by another user."""
    id: int
    name: str
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    age_range: Optional[str] = None
    gym_name: Optional[str] = None
    distance: Optional[float] = None  # km from the viewer
    goals: List[str] = []
    level: Optional[str] = None
    training_style: Optional[str] = None
    availability: List[AvailabilitySlot] = []
    interest_tags: List[str] = []
    verification_score: int = 0
    compatibility_score: int = 0


# ============== Message Schemas ==============

class MessageCreate(CamelModel):
    text: str

    @field_validator("text", mode="before")
    @classmethod
    def validate_text(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise PydanticCustomError("message_type", "Message must be text")
        value = value.strip()
        if not value:
            raise PydanticCustomError("message_empty", "Message cannot be empty")
        if len(value) > MESSAGE_MAX_LENGTH:
            raise PydanticCustomError(
                "message_too_long",
                "Message cannot be longer than {max_length} characters",
                {"max_length": MESSAGE_MAX_LENGTH},
            )
        return value


class MessageResponse(CamelModel):
    id: int
    match_id: int
    sender_id: int
    text: str
    created_at: datetime


class LastMessage(CamelModel):
    id: int
    sender_id: int
    text: str
    created_at: datetime


# ============== Match Schemas ==============

class MatchSummary(CamelModel):
    id: int
    other_user: UserProfile
    last_message: Optional[LastMessage] = None
    created_at: datetime


class MatchDetail(CamelModel):
    id: int
    other_user: UserProfile
    created_at: datetime


class MatchMessages(CamelModel):
    match: MatchDetail
    messages: List[MessageResponse]


# ============== Swipe Schemas ==============

class SwipeRequest(CamelModel):
    to_user_id: int


class LikeResult(CamelModel):
    liked: bool = True
    is_match: bool
    match: Optional[MatchDetail] = None
    likes_remaining: int


class PassResult(CamelModel):
    passed: bool = True


# ============== Push Token Schemas ==============

class Platform(str, Enum):
    IOS = "ios"
    ANDROID = "android"


class PushTokenRegister(CamelModel):
    token: str = Field(..., min_length=1)
    platform: Platform


class PushTokenRemove(CamelModel):
    token: str = Field(..., min_length=1)


# ============== Invitation Schemas ==============

class InvitationCreate(CamelModel):
    to_user_id: int
    workout_type: str = Field(..., min_length=2, max_length=30)
    proposed_time: datetime
    location: str = Field(..., min_length=2, max_length=200)
    note: Optional[str] = Field(None, max_length=500)


class InvitationStatusUpdate(CamelModel):
    status: InvitationStatus


class InvitationResponse(CamelModel):
    id: int
    from_user_id: int
    to_user_id: int
    workout_type: str
    proposed_time: datetime
    location: str
    note: Optional[str] = None
    status: InvitationStatus
    created_at: datetime


# ============== Workout Session Schemas ==============

class WorkoutSessionCreate(CamelModel):
    match_id: int
    scheduled_time: datetime
    location: str = Field(..., min_length=2, max_length=200)
    workout_type: str = Field(..., min_length=2, max_length=30)


class WorkoutSessionStatusUpdate(CamelModel):
    status: WorkoutSessionStatus


class WorkoutSessionResponse(CamelModel):
    id: int
    match_id: int
    created_by_id: int
    scheduled_time: datetime
    location: str
    workout_type: str
    status: WorkoutSessionStatus
    created_at: datetime


# ============== Simple Acknowledgements ==============

class RegisteredAck(CamelModel):
    registered: bool = True


class RemovedAck(CamelModel):
    removed: bool = True


class SocketEnvelope(BaseModel):
    """Frame exchanged on the chat socket."""
    event: str
    data: Optional[Any] = None


def message_preview(text: str, limit: int = 50) -> str:
    """Shorten a message for notifications."""
    return text[:limit] + "..." if len(text) > limit else text


