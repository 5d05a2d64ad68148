"""Swipe service: likes, passes, mutual matches and the nearby feed."""

import logging
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from gymbuddy.config import get_settings
from gymbuddy.errors import Forbidden, NotFound, ValidationFailed
from gymbuddy.models import Like, Match, Pass, User
from gymbuddy.schemas import LikeResult, UserProfile
from gymbuddy.services.match_service import MatchService
from gymbuddy.services.notification_service import PushNotification
from gymbuddy.services.profile_service import calculate_distance, to_user_profile


logger = logging.getLogger(__name__)

PREMIUM_LIKES_DISPLAY = 999


class SwipeService:
    """Service for discovering partners and swiping on them."""

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()
        self.match_service = MatchService(db)

    def _get_target(self, user: User, to_user_id: int) -> User:
        if to_user_id == user.id:
            raise ValidationFailed("You cannot swipe on yourself")
        target = self.db.query(User).filter(User.id == to_user_id, User.is_active == True).first()
        if not target:
            raise NotFound("User not found")
        return target

    def like(self, user: User, to_user_id: int) -> tuple:
        """
        Like another user.

        Returns (LikeResult, PushNotification or None). The notification is
        set only when this like completed a new match.
        """
        if not user.is_premium and (user.likes_remaining or 0) <= 0:
            raise Forbidden("You have no likes left today. Upgrade to Premium for unlimited likes!")

        target = self._get_target(user, to_user_id)

        existing = (
            self.db.query(Like)
            .filter(Like.from_user_id == user.id, Like.to_user_id == target.id)
            .first()
        )
        if existing:
            raise ValidationFailed("You already liked this person")

        self.db.add(Like(from_user_id=user.id, to_user_id=target.id))
        if not user.is_premium:
            user.likes_remaining = (user.likes_remaining or 0) - 1
        self.db.commit()

        mutual = (
            self.db.query(Like)
            .filter(Like.from_user_id == target.id, Like.to_user_id == user.id)
            .first()
        )

        match = None
        notification = None
        if mutual:
            match, created = self.match_service.get_or_create_match(user.id, target.id)
            if created:
                notification = PushNotification(
                    user_id=target.id,
                    title="New match!",
                    body=f"You and {user.name} are a match! Start a conversation.",
                    data={"type": "match", "matchId": match.id},
                )
            else:
                match = None

        result = LikeResult(
            is_match=match is not None,
            match=self.match_service.match_detail(match, user) if match else None,
            likes_remaining=PREMIUM_LIKES_DISPLAY if user.is_premium else user.likes_remaining,
        )
        return result, notification

    def pass_user(self, user: User, to_user_id: int) -> None:
        """Record a pass; passing twice is a no-op."""
        target = self._get_target(user, to_user_id)
        existing = (
            self.db.query(Pass)
            .filter(Pass.from_user_id == user.id, Pass.to_user_id == target.id)
            .first()
        )
        if existing:
            return
        self.db.add(Pass(from_user_id=user.id, to_user_id=target.id))
        self.db.commit()

    def _excluded_ids(self, user: User) -> set:
        excluded = {user.id}
        excluded.update(
            row[0] for row in self.db.query(Like.to_user_id).filter(Like.from_user_id == user.id)
        )
        excluded.update(
            row[0] for row in self.db.query(Pass.to_user_id).filter(Pass.from_user_id == user.id)
        )
        for match in self.db.query(Match).filter(
            or_(Match.user_a_id == user.id, Match.user_b_id == user.id)
        ):
            excluded.add(match.other_user_id(user.id))
        return excluded

    def nearby(
        self,
        user: User,
        radius_km: Optional[float] = None,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        goals: Optional[List[str]] = None,
        level: Optional[str] = None,
        same_gym_only: bool = False,
    ) -> List[UserProfile]:
        """
        Users within `radius_km` that have not been swiped or matched yet.

        The search starts at (`lat`, `lng`) when given, otherwise at the
        caller's stored location. `goals` keeps users sharing at least one
        goal, `level` keeps one exact level and `same_gym_only` keeps the
        caller's gym (ignored when the caller has none).

        Ordered by compatibility (best first), then distance.
        """
        if (lat is None) != (lng is None):
            raise ValidationFailed("lat and lng must be given together")
        if lat is None:
            lat, lng = user.lat, user.lng
        if lat is None or lng is None:
            raise ValidationFailed("Set your location to discover workout partners")

        radius = radius_km or user.preferred_radius_km or self.settings.default_radius_km
        excluded = self._excluded_ids(user)
        gym = user.gym_name.lower() if same_gym_only and user.gym_name else None

        candidates = (
            self.db.query(User)
            .filter(
                User.is_active == True,
                User.lat.isnot(None),
                User.lng.isnot(None),
                User.id.notin_(excluded),
            )
            .all()
        )

        profiles = []
        for candidate in candidates:
            distance = round(calculate_distance(lat, lng, candidate.lat, candidate.lng), 1)
            if distance > radius:
                continue
            if gym and (candidate.gym_name or "").lower() != gym:
                continue
            if goals and not set(goals) & set(candidate.goals or []):
                continue
            if level and candidate.level != level:
                continue
            profile = to_user_profile(candidate, user)
            profile.distance = distance
            profiles.append(profile)

        profiles.sort(key=lambda p: (-p.compatibility_score, p.distance))
        return profiles
