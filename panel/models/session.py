"""ORM model for login sessions."""

from sqlalchemy import Column, DateTime, ForeignKey, String

from panel.models.base import Base


class UserSession(Base):
    """Server-side session; the cookie only carries a signed reference to id."""

    __tablename__ = "sessions"

    id = Column(String(64), primary_key=True)
    user_id = Column(
        String(32),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
