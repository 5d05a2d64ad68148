"""Workout invitation model with a closed status set."""

import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Enum
from sqlalchemy.orm import relationship
from datetime import datetime

from gymbuddy.database import Base


class InvitationStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"
    CANCELLED = "cancelled"


# (current status, requested status) -> party allowed to make the change
INVITATION_TRANSITIONS = {
    (InvitationStatus.PENDING, InvitationStatus.ACCEPTED): "recipient",
    (InvitationStatus.PENDING, InvitationStatus.DECLINED): "recipient",
    (InvitationStatus.PENDING, InvitationStatus.CANCELLED): "sender",
}


class Invitation(Base):
    """A one-directional proposal to work out together."""
    
    __tablename__ = "invitations"
    
    id = Column(Integer, primary_key=True, index=True)
    from_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    to_user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    
    # Proposal
    workout_type = Column(String(30), nullable=False)
    proposed_time = Column(DateTime, nullable=False)
    location = Column(String(200), nullable=False)
    note = Column(Text, nullable=True)
    
    status = Column(
        Enum(InvitationStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        default=InvitationStatus.PENDING,
        nullable=False,
        index=True,
    )
    
    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    from_user = relationship("User", foreign_keys=[from_user_id])
    to_user = relationship("User", foreign_keys=[to_user_id])
    
    def __repr__(self):
        return f"<Invitation {self.id}: {self.from_user_id} -> {self.to_user_id} ({self.status})>"
