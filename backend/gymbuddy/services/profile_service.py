"""Profile projection: distance, compatibility and verification scoring."""

import math
from typing import List, Optional

from gymbuddy.models import User
from gymbuddy.schemas import UserProfile


EARTH_RADIUS_KM = 6371
LEVELS = ["beginner", "intermediate", "advanced"]


def calculate_distance(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometers (haversine)."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_between(viewer: Optional[User], user: User) -> Optional[float]:
    """Distance rounded to 0.1 km, or None when either side has no location."""
    if viewer is None:
        return None
    if None in (viewer.lat, viewer.lng, user.lat, user.lng):
        return None
    return round(calculate_distance(viewer.lat, viewer.lng, user.lat, user.lng), 1)


def _overlap_ratio(first: List[str], second: List[str]) -> float:
    overlap = len([item for item in first if item in second])
    return overlap / max(len(first), len(second), 1)


def _availability_overlap(first: List[dict], second: List[dict]) -> int:
    overlap = 0
    for slot in first:
        other = next((s for s in second if s.get("day") == slot.get("day")), None)
        if other:
            overlap += len(
                [t for t in slot.get("timeSlots", []) if t in other.get("timeSlots", [])]
            )
    return overlap


def calculate_compatibility(user1: User, user2: User) -> int:
    """
    Score how well two users fit as workout partners, 0-100.
    
    Weights:
    - Same gym: 30
    - Goal overlap: 25
    - Level (same 15, adjacent 10): 15
    - Training style: 10
    - Interest tags overlap: 10
    - Availability overlap (2 per shared slot): 10
    """
    score = 0.0
    factors = 0
    
    if user1.gym_name and user2.gym_name and user1.gym_name.lower() == user2.gym_name.lower():
        score += 30
    factors += 30
    
    score += _overlap_ratio(user1.goals or [], user2.goals or []) * 25
    factors += 25
    
    if user1.level in LEVELS and user2.level in LEVELS:
        diff = abs(LEVELS.index(user1.level) - LEVELS.index(user2.level))
        if diff == 0:
            score += 15
        elif diff == 1:
            score += 10
    factors += 15
    
    if user1.training_style and user1.training_style == user2.training_style:
        score += 10
    factors += 10
    
    score += _overlap_ratio(user1.interest_tags or [], user2.interest_tags or []) * 10
    factors += 10
    
    shared_slots = _availability_overlap(user1.availability or [], user2.availability or [])
    score += min(shared_slots * 2, 10)
    factors += 10
    
    return round(score / factors * 100)


def calculate_verification_score(user: User) -> int:
    """Profile completeness score, capped at 100."""
    score = 0
    if user.name:
        score += 10
    if user.bio and len(user.bio) >= 20:
        score += 15
    if user.avatar_url:
        score += 15
    if user.age_range:
        score += 5
    if user.gym_name:
        score += 15
    if user.lat is not None and user.lng is not None:
        score += 10
    if user.goals:
        score += 10
    if user.level:
        score += 5
    if user.training_style:
        score += 5
    if user.availability:
        score += 5
    if user.interest_tags:
        score += 5
    return min(score, 100)


def to_user_profile(user: User, viewer: Optional[User] = None) -> UserProfile:
    """Public profile of `user` as seen by `viewer`."""
    return UserProfile(
        id=user.id,
        name=user.name,
        bio=user.bio,
        avatar_url=user.avatar_url,
        age_range=user.age_range,
        gym_name=user.gym_name,
        distance=distance_between(viewer, user),
        goals=user.goals or [],
        level=user.level,
        training_style=user.training_style,
        availability=user.availability or [],
        interest_tags=user.interest_tags or [],
        verification_score=user.verification_score or 0,
        compatibility_score=calculate_compatibility(viewer, user) if viewer else 0,
    )
