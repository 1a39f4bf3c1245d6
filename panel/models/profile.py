"""ORM model for the per-account profile (avatar, names, phone, bio)."""

import uuid

from sqlalchemy import Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship

from panel.models.base import Base


def _new_profile_id() -> str:
    return str(uuid.uuid4())


class Profile(Base):
    """
    One profile per account, created with it at registration.

    Optional fields are stored as NULL when cleared, never as ''.
    name mirrors the owner's username and is re-synced on rename.
    """

    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=_new_profile_id)
    avatar = Column(Text, nullable=True)
    first_name = Column(String(255), nullable=True)
    last_name = Column(String(255), nullable=True)
    phone = Column(String(64), nullable=True)
    bio = Column(Text, nullable=True)
    user_id = Column(
        String(32),
        ForeignKey("accounts.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    name = Column(String(255), nullable=False, index=True)

    account = relationship("Account", back_populates="profile")
