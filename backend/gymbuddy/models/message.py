"""Chat message model."""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Text, Index
from sqlalchemy.orm import relationship
from datetime import datetime

from gymbuddy.database import Base


class Message(Base):
    """A message sent by one participant of a match. Never updated."""
    
    __tablename__ = "messages"
    __table_args__ = (
        Index("ix_messages_match_order", "match_id", "created_at", "id"),
    )
    
    id = Column(Integer, primary_key=True, index=True)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    
    # Relationships
    match = relationship("Match")
    
    def __repr__(self):
        preview = self.text[:50] + "..." if len(self.text) > 50 else self.text
        return f"<Message {self.sender_id}: {preview}>"
