"""ORM model for panel accounts (login identity and role)."""

from sqlalchemy import Boolean, Column, DateTime, String, func
from sqlalchemy.orm import relationship

from panel.models.base import Base
from panel.schemas.auth import Role


class Account(Base):
    """
    Account used for login and role-based access control.

    role: 'USER', 'REDACTEUR' or 'ADMIN'. Only the bootstrap account starts
    as ADMIN and active.
    """

    __tablename__ = "accounts"

    id = Column(String(32), primary_key=True)
    username = Column(String(255), nullable=False, unique=True, index=True)
    email = Column(String(320), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(32), nullable=False, default=Role.USER.value)
    active = Column(Boolean, nullable=False, default=False)
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    profile = relationship(
        "Profile",
        back_populates="account",
        uselist=False,
        passive_deletes=True,
    )
