"""SQLAlchemy ORM models."""

from panel.models.account import Account
from panel.models.base import Base
from panel.models.profile import Profile
from panel.models.session import UserSession

__all__ = ["Account", "Base", "Profile", "UserSession"]
