"""Application orchestration layer.

Coordinates configuration for the interfaces and services.
"""

from . import config

__all__ = ["config"]
