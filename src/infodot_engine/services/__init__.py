"""Business logic services for the InfoDot interaction engine."""

from .acceptance import AcceptanceCoordinator, AcceptanceResult
from .broadcast import BroadcastEvent, EventBroadcaster, build_broadcaster
from .cache import CacheCoordinator, build_cache
from .comments import CommentStore
from .engine import InteractionEngine
from .interactions import InteractionStore, ToggleResult
from .search import SearchResolver, build_search_index

__all__ = [
    "AcceptanceCoordinator", "AcceptanceResult",
    "BroadcastEvent", "EventBroadcaster", "build_broadcaster",
    "CacheCoordinator", "build_cache",
    "CommentStore",
    "InteractionEngine",
    "InteractionStore", "ToggleResult",
    "SearchResolver", "build_search_index",
]
