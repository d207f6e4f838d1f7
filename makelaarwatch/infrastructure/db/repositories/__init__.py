from .agents import AgentRepository
from .listings import ListingRepository
from .sync_runs import SyncRunRepository

__all__ = [
    "AgentRepository",
    "ListingRepository",
    "SyncRunRepository",
]
