"""Partner discovery router."""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from gymbuddy.database import get_db
from gymbuddy.models import User
from gymbuddy.routers.auth import get_current_user
from gymbuddy.schemas import ApiResponse, UserProfile
from gymbuddy.services.swipe_service import SwipeService

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/nearby", response_model=ApiResponse[List[UserProfile]])
def nearby_users(
    radius_km: Optional[float] = Query(None, ge=1, le=50),
    lat: Optional[float] = Query(None, ge=-90, le=90),
    lng: Optional[float] = Query(None, ge=-180, le=180),
    goals: Optional[str] = Query(None, description="Comma-separated goals, any of them matches"),
    level: Optional[str] = Query(None),
    same_gym_only: bool = Query(False),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """
    Workout partners around the caller that have not been swiped yet.
    
    `lat`/`lng` override the stored location, e.g. the device's current
    position.
    """
    goal_list = [g.strip() for g in goals.split(",") if g.strip()] if goals else None
    profiles = SwipeService(db).nearby(
        user,
        radius_km=radius_km,
        lat=lat,
        lng=lng,
        goals=goal_list,
        level=level,
        same_gym_only=same_gym_only,
    )
    return ApiResponse(data=profiles)
