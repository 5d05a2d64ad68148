"""Client-side helpers for talking to the GymBuddy API."""

from gymbuddy.client.chat_client import ChatConnectionManager

__all__ = ["ChatConnectionManager"]
