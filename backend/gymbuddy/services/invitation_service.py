"""Workout invitations between users."""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from gymbuddy.errors import Forbidden, NotFound, ValidationFailed
from gymbuddy.models import Invitation, InvitationStatus, INVITATION_TRANSITIONS, User
from gymbuddy.schemas import InvitationCreate
from gymbuddy.services.notification_service import PushNotification


logger = logging.getLogger(__name__)


class InvitationService:
    """Create invitations and move them through their status table."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, sender: User, data: InvitationCreate) -> tuple:
        """Returns (invitation, notification for the recipient)."""
        if data.to_user_id == sender.id:
            raise ValidationFailed("You cannot invite yourself")
        recipient = self.db.query(User).filter(User.id == data.to_user_id).first()
        if not recipient:
            raise NotFound("User not found")

        invitation = Invitation(
            from_user_id=sender.id,
            to_user_id=recipient.id,
            workout_type=data.workout_type,
            proposed_time=data.proposed_time,
            location=data.location,
            note=data.note,
            status=InvitationStatus.PENDING,
        )
        self.db.add(invitation)
        self.db.commit()
        self.db.refresh(invitation)

        notification = PushNotification(
            user_id=recipient.id,
            title="New workout invitation",
            body=f"{sender.name} invited you for {data.workout_type} at {data.location}",
            data={"type": "invitation", "invitationId": invitation.id},
        )
        return invitation, notification

    def list_for(self, user: User, box: str = "received") -> List[Invitation]:
        query = self.db.query(Invitation)
        if box == "sent":
            query = query.filter(Invitation.from_user_id == user.id)
        else:
            query = query.filter(Invitation.to_user_id == user.id)
        return query.order_by(Invitation.created_at.desc(), Invitation.id.desc()).all()

    def update_status(self, invitation_id: int, user: User, status: InvitationStatus) -> tuple:
        """
        Apply a status change allowed by INVITATION_TRANSITIONS.

        Returns (invitation, notification or None). Accept and decline are
        announced to the sender; cancellation is silent.
        """
        invitation = self.db.query(Invitation).filter(Invitation.id == invitation_id).first()
        if not invitation:
            raise NotFound("Invitation not found")

        if user.id == invitation.to_user_id:
            role = "recipient"
        elif user.id == invitation.from_user_id:
            role = "sender"
        else:
            raise Forbidden()

        allowed_role = INVITATION_TRANSITIONS.get((invitation.status, status))
        if allowed_role is None:
            raise ValidationFailed(
                f"Invitation cannot change from {invitation.status.value} to {status.value}"
            )
        if allowed_role != role:
            raise Forbidden()

        invitation.status = status
        self.db.commit()
        self.db.refresh(invitation)
        logger.info("Invitation %s is now %s", invitation.id, status.value)

        notification: Optional[PushNotification] = None
        if status in (InvitationStatus.ACCEPTED, InvitationStatus.DECLINED):
            notification = PushNotification(
                user_id=invitation.from_user_id,
                title=f"Invitation {status.value}",
                body=f"{user.name} {status.value} your {invitation.workout_type} invitation",
                data={"type": "invitation", "invitationId": invitation.id},
            )
        return invitation, notification
