#!/usr/bin/env python3
"""
Seed script with demo users around Amsterdam.

Creates a handful of users with workout profiles, one mutual match and a
first message so the chat screens have something to show.

Run with: python backend/scripts/seed_demo_data.py
"""

from gymbuddy.database import Base, SessionLocal, engine
from gymbuddy.models import Like, Message, User
from gymbuddy.services.auth_service import AuthService
from gymbuddy.services.match_service import MatchService
from gymbuddy.services.profile_service import calculate_verification_score

DEMO_PASSWORD = "password123"

DEMO_USERS = [
    {
        "email": "sanne@example.com",
        "name": "Sanne",
        "bio": "Early bird lifter, looking for a squat partner.",
        "gym_name": "Basic-Fit Amsterdam Centrum",
        "lat": 52.3702,
        "lng": 4.8952,
        "goals": ["muscle_building", "powerlifting"],
        "level": "intermediate",
        "training_style": "upper_lower",
        "availability": [{"day": "monday", "timeSlots": ["morning"]}],
        "interest_tags": ["heavy_lifting"],
    },
    {
        "email": "daan@example.com",
        "name": "Daan",
        "bio": "Powerlifter, happy to spot and be spotted.",
        "gym_name": "Basic-Fit Amsterdam Centrum",
        "lat": 52.3731,
        "lng": 4.8922,
        "goals": ["powerlifting"],
        "level": "advanced",
        "training_style": "upper_lower",
        "availability": [{"day": "monday", "timeSlots": ["morning", "evening"]}],
        "interest_tags": ["heavy_lifting"],
    },
    {
        "email": "lotte@example.com",
        "name": "Lotte",
        "bio": "HIIT and running, always up for a Vondelpark session.",
        "gym_name": "SportCity Oost",
        "lat": 52.3600,
        "lng": 4.9300,
        "goals": ["conditioning", "weight_loss"],
        "level": "beginner",
        "training_style": "full_body",
        "availability": [{"day": "saturday", "timeSlots": ["afternoon"]}],
        "interest_tags": ["running"],
    },
]


def seed():
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        auth_service = AuthService(db)
        users = []
        for data in DEMO_USERS:
            user = auth_service.get_user_by_email(data["email"])
            if user:
                print(f"User {data['email']} already exists, skipping")
                users.append(user)
                continue
            print(f"Creating user {data['email']}...")
            user = auth_service.create_user(data["email"], DEMO_PASSWORD, data["name"])
            for key, value in data.items():
                if key not in ("email", "name"):
                    setattr(user, key, value)
            user.verification_score = calculate_verification_score(user)
            db.commit()
            users.append(user)

        first, second = users[0], users[1]
        for liker, liked in ((first, second), (second, first)):
            exists = (
                db.query(Like)
                .filter(Like.from_user_id == liker.id, Like.to_user_id == liked.id)
                .first()
            )
            if not exists:
                db.add(Like(from_user_id=liker.id, to_user_id=liked.id))
        db.commit()

        match_service = MatchService(db)
        match, created = match_service.get_or_create_match(first.id, second.id)
        if created:
            db.add(Message(match_id=match.id, sender_id=first.id, text="Hey! Monday morning squats?"))
            db.commit()
            print(f"Created match {match.id} between {first.name} and {second.name}")

        print("Seeding completed successfully!")
    finally:
        db.close()


if __name__ == "__main__":
    seed()
