"""CLI interface facades for Makelaarwatch.

This package is the canonical home for all Click commands.
"""

from .__main__ import cli
from .leaderboard import leaderboard
from .run import run
from .runs import runs
from .sync import sync

__all__ = ["cli", "leaderboard", "run", "runs", "sync"]
