"""Swipe router: like, pass and the match list alias."""

from typing import List
from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from gymbuddy.database import get_db
from gymbuddy.models import User
from gymbuddy.routers.auth import get_current_user
from gymbuddy.schemas import ApiResponse, LikeResult, MatchSummary, PassResult, SwipeRequest
from gymbuddy.services.match_service import MatchService
from gymbuddy.services.notification_service import PushDispatcher, get_push_dispatcher
from gymbuddy.services.swipe_service import SwipeService

router = APIRouter(prefix="/swipe", tags=["swipe"])


@router.post("/like", response_model=ApiResponse[LikeResult])
def like(
    swipe: SwipeRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    dispatcher: PushDispatcher = Depends(get_push_dispatcher),
):
    """Like a user; a mutual like creates a match."""
    result, notification = SwipeService(db).like(user, swipe.to_user_id)
    if notification:
        background_tasks.add_task(dispatcher.dispatch, notification)
    return ApiResponse(data=result)


@router.post("/pass", response_model=ApiResponse[PassResult])
def pass_user(
    swipe: SwipeRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Skip a user."""
    SwipeService(db).pass_user(user, swipe.to_user_id)
    return ApiResponse(data=PassResult())


@router.get("/matches", response_model=ApiResponse[List[MatchSummary]])
def list_matches(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Alias of GET /matches."""
    return ApiResponse(data=MatchService(db).list_matches(user))
