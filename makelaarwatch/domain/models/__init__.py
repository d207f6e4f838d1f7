"""Domain models package.

This package contains domain model classes for Makelaarwatch.
"""

from .agent import Agent
from .listing import Listing

__all__ = ["Agent", "Listing"]
