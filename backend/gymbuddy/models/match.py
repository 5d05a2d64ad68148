"""Match model: a confirmed pairing of two users."""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from gymbuddy.database import Base


class Match(Base):
    """
    An unordered pair of users that may chat.
    
    The pair is stored sorted (user_a_id < user_b_id) so each pair has
    exactly one row. Both references are fixed once the row exists.
    """
    
    __tablename__ = "matches"
    __table_args__ = (
        UniqueConstraint("user_a_id", "user_b_id", name="uq_matches_pair"),
        CheckConstraint("user_a_id < user_b_id", name="ck_matches_ordered_pair"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    user_a_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    user_b_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    
    # Relationships
    user_a = relationship("User", foreign_keys=[user_a_id])
    user_b = relationship("User", foreign_keys=[user_b_id])
    
    def __repr__(self):
        return f"<Match {self.id}: {self.user_a_id} <-> {self.user_b_id}>"
    
    @staticmethod
    def ordered_pair(first_id: int, second_id: int) -> tuple:
        """Return the (user_a_id, user_b_id) storage order for two users."""
        return (first_id, second_id) if first_id < second_id else (second_id, first_id)
    
    def has_participant(self, user_id: int) -> bool:
        return user_id in (self.user_a_id, self.user_b_id)
    
    def other_user_id(self, user_id: int) -> int:
        """Return the counterparty of a participant."""
        return self.user_b_id if user_id == self.user_a_id else self.user_a_id
