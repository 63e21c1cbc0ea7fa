"""Core application components."""

from legacy_planner.core.config import settings
from legacy_planner.core.database import Base, get_db, engine

__all__ = ["settings", "Base", "get_db", "engine"]
