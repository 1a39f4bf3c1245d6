"""Core app configuration and database."""

from panel.core.config import get_settings, settings
from panel.core.database import get_db

__all__ = ["get_settings", "settings", "get_db"]
