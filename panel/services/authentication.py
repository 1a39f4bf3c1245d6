"""Login, server-side sessions and viewer resolution."""

import logging
from datetime import UTC, datetime, timedelta

from panel.core.security import generate_session_id, verify_password
from panel.models import Account, UserSession
from panel.schemas.auth import CurrentUser
from panel.services.store import AccountStore

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def authenticate(
    store: AccountStore,
    username: str,
    password: str,
    require_active: bool = False,
) -> Account | None:
    """
    Return the account for valid credentials, else None.

    Unknown usernames and wrong passwords are not told apart.
    """
    normalized = (username or "").strip().lower()
    if not normalized or not password:
        return None
    account = store.find_account_by_username(normalized)
    if account is None:
        return None
    if not verify_password(password, account.password_hash):
        return None
    if require_active and not account.active:
        logger.info("Login refused for inactive account %s", account.id)
        return None
    return account


def open_session(store: AccountStore, account_id: str, lifetime: timedelta) -> UserSession:
    expires_at = datetime.now(UTC) + lifetime
    row = store.insert_session(generate_session_id(), account_id, expires_at)
    logger.info("Session opened for account %s", account_id)
    return row


def close_session(store: AccountStore, session_id: str) -> None:
    store.delete_session(session_id)


def resolve_viewer(
    store: AccountStore, session_id: str | None, now: datetime | None = None
) -> CurrentUser | None:
    """Viewer for a live session; expired sessions are removed and resolve to None."""
    if not session_id:
        return None
    now = now or datetime.now(UTC)
    row = store.find_session(session_id)
    if row is None:
        return None
    if _as_utc(row.expires_at) <= now:
        store.delete_session(session_id)
        return None
    account = store.find_account_by_id(row.user_id)
    if account is None:
        return None
    return CurrentUser.model_validate(account)
