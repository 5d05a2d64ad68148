"""Workout invitations router."""

from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from gymbuddy.database import get_db
from gymbuddy.models import User
from gymbuddy.routers.auth import get_current_user
from gymbuddy.schemas import (
    ApiResponse,
    InvitationCreate,
    InvitationResponse,
    InvitationStatusUpdate,
)
from gymbuddy.services.invitation_service import InvitationService
from gymbuddy.services.notification_service import PushDispatcher, get_push_dispatcher

router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.post("", response_model=ApiResponse[InvitationResponse], status_code=201)
def create_invitation(
    payload: InvitationCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    dispatcher: PushDispatcher = Depends(get_push_dispatcher),
):
    """Invite another user to a workout."""
    invitation, notification = InvitationService(db).create(user, payload)
    background_tasks.add_task(dispatcher.dispatch, notification)
    return ApiResponse(data=InvitationResponse.model_validate(invitation))


@router.get("", response_model=ApiResponse[List[InvitationResponse]])
def list_invitations(
    box: str = Query("received", pattern="^(received|sent)$"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """List received (default) or sent invitations."""
    invitations = InvitationService(db).list_for(user, box)
    return ApiResponse(data=[InvitationResponse.model_validate(i) for i in invitations])


@router.patch("/{invitation_id}", response_model=ApiResponse[InvitationResponse])
def update_invitation(
    invitation_id: int,
    payload: InvitationStatusUpdate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    dispatcher: PushDispatcher = Depends(get_push_dispatcher),
):
    """Accept, decline or cancel an invitation."""
    invitation, notification = InvitationService(db).update_status(invitation_id, user, payload.status)
    if notification:
        background_tasks.add_task(dispatcher.dispatch, notification)
    return ApiResponse(data=InvitationResponse.model_validate(invitation))
