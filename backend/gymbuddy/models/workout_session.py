"""Scheduled workout between the two users of a match."""

import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from sqlalchemy.orm import relationship
from datetime import datetime

from gymbuddy.database import Base


class WorkoutSessionStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


WORKOUT_SESSION_TRANSITIONS = {
    (WorkoutSessionStatus.SCHEDULED, WorkoutSessionStatus.COMPLETED),
    (WorkoutSessionStatus.SCHEDULED, WorkoutSessionStatus.CANCELLED),
}


class WorkoutSession(Base):
    __tablename__ = "workout_sessions"
    
    id = Column(Integer, primary_key=True, index=True)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False, index=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    
    scheduled_time = Column(DateTime, nullable=False, index=True)
    location = Column(String(200), nullable=False)
    workout_type = Column(String(30), nullable=False)
    
    status = Column(
        Enum(WorkoutSessionStatus, native_enum=False, values_callable=lambda e: [m.value for m in e]),
        default=WorkoutSessionStatus.SCHEDULED,
        nullable=False,
    )
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    match = relationship("Match")
