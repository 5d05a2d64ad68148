"""GymBuddy workout-partner matchmaking API."""

__version__ = "1.0.0"
