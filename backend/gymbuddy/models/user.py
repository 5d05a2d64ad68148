"""User model for authentication and workout profile."""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, JSON, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from gymbuddy.database import Base


class User(Base):
    """User account with workout-partner profile."""
    
    __tablename__ = "users"
    
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(50), nullable=False)
    hashed_password = Column(String(255), nullable=True)
    
    # Profile
    bio = Column(Text, nullable=True)
    avatar_url = Column(String(512), nullable=True)
    age_range = Column(String(20), nullable=True)  # 18-24, 25-34, ...
    gym_name = Column(String(100), nullable=True)
    
    # Location
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    preferred_radius_km = Column(Float, nullable=True)
    
    # Workout preferences
    goals = Column(JSON, default=list)  # ["muscle_building", "conditioning"]
    level = Column(String(20), nullable=True)  # beginner, intermediate, advanced
    training_style = Column(String(30), nullable=True)  # push_pull_legs, full_body, ...
    availability = Column(JSON, default=list)  # [{"day": "monday", "timeSlots": ["morning"]}]
    interest_tags = Column(JSON, default=list)
    
    # Swipe economy
    verification_score = Column(Integer, default=0)
    likes_remaining = Column(Integer, default=25)
    is_premium = Column(Boolean, default=False)
    
    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    is_active = Column(Boolean, default=True)
    
    # Relationships
    push_tokens = relationship("PushToken", back_populates="user")
    
    def __repr__(self):
        return f"<User {self.id}: {self.name}>"
