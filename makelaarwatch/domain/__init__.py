"""Domain layer: entities shared by the sync engine and the leaderboard."""

from .models import Agent, Listing

__all__ = ["Agent", "Listing"]
