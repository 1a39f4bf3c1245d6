"""Session cleanup: delete sessions past their expiry."""

import logging
from datetime import UTC, datetime

from panel.services.store import AccountStore

logger = logging.getLogger(__name__)


def purge_expired_sessions(store: AccountStore, now: datetime | None = None) -> int:
    """
    Delete sessions whose expires_at is in the past. Returns the number deleted.

    Idempotent: safe to run repeatedly.
    """
    cutoff = now or datetime.now(UTC)
    deleted = store.delete_expired_sessions(cutoff)
    if deleted > 0:
        logger.info(
            "Session cleanup: cutoff=%s, sessions_deleted=%s",
            cutoff.isoformat(),
            deleted,
        )
    return deleted
