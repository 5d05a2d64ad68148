"""Workout sessions router."""

from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gymbuddy.database import get_db
from gymbuddy.models import User
from gymbuddy.routers.auth import get_current_user
from gymbuddy.schemas import (
    ApiResponse,
    WorkoutSessionCreate,
    WorkoutSessionResponse,
    WorkoutSessionStatusUpdate,
)
from gymbuddy.services.workout_session_service import WorkoutSessionService

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("", response_model=ApiResponse[WorkoutSessionResponse], status_code=201)
def create_session(
    payload: WorkoutSessionCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Schedule a workout with a match."""
    session = WorkoutSessionService(db).create(user, payload)
    return ApiResponse(data=WorkoutSessionResponse.model_validate(session))


@router.get("", response_model=ApiResponse[List[WorkoutSessionResponse]])
def list_sessions(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    sessions = WorkoutSessionService(db).list_for(user)
    return ApiResponse(data=[WorkoutSessionResponse.model_validate(s) for s in sessions])


@router.patch("/{session_id}", response_model=ApiResponse[WorkoutSessionResponse])
def update_session(
    session_id: int,
    payload: WorkoutSessionStatusUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Mark a session completed or cancelled."""
    session = WorkoutSessionService(db).update_status(session_id, user, payload.status)
    return ApiResponse(data=WorkoutSessionResponse.model_validate(session))
