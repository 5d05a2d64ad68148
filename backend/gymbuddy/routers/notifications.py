"""Push token registration router."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gymbuddy.database import get_db
from gymbuddy.models import User
from gymbuddy.routers.auth import get_current_user
from gymbuddy.schemas import ApiResponse, PushTokenRegister, PushTokenRemove, RegisteredAck, RemovedAck
from gymbuddy.services.notification_service import PushTokenService

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.post("/token", response_model=ApiResponse[RegisteredAck])
def register_token(
    payload: PushTokenRegister,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Register (or take over) a device push token."""
    PushTokenService(db).register(user.id, payload.token, payload.platform.value)
    return ApiResponse(data=RegisteredAck())


@router.delete("/token", response_model=ApiResponse[RemovedAck])
def remove_token(
    payload: PushTokenRemove,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Remove one of the caller's push tokens."""
    PushTokenService(db).remove(user.id, payload.token)
    return ApiResponse(data=RemovedAck())
