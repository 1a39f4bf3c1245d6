"""
CLI entrypoint for the expired-session cleanup job. Run from cron, e.g.:

  python -m panel.sessions_cleanup

Or hourly: 0 * * * * cd /path/to/panel && .venv/bin/python -m panel.sessions_cleanup
"""

import logging
import sys

from panel.core.config import get_settings
from panel.core.database import SessionLocal
from panel.services.cleanup import purge_expired_sessions
from panel.services.errors import StoreUnavailableError
from panel.services.store import AccountStore

logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Delete sessions that expired before now."""
    db = SessionLocal()
    try:
        deleted = purge_expired_sessions(AccountStore(db))
        logger.info("Session cleanup completed: sessions_deleted=%s", deleted)
        return 0
    except StoreUnavailableError as e:
        logger.exception("Session cleanup failed: %s", e.message)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
