"""Entity store: request-scoped typed access to accounts, profiles and sessions."""

import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import Any, Literal

from sqlalchemy import text
from sqlalchemy.engine import Row
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.orm import Session

from panel.models import Account, Profile, UserSession
from panel.services.errors import ConflictError, StoreUnavailableError

logger = logging.getLogger(__name__)

ListingOrder = Literal["username", "updated"]

# Columns that partial updates may touch.
ACCOUNT_FIELDS = frozenset({"username", "email", "role", "active"})
PROFILE_FIELDS = frozenset({"avatar", "first_name", "last_name", "phone", "bio"})
UNIQUE_ACCOUNT_FIELDS = ("username", "email")

# Unique indexes on accounts, by the names the naming convention gives them.
UNIQUE_CONSTRAINT_FIELDS = {
    "ix_accounts_username": "username",
    "ix_accounts_email": "email",
    "uq_accounts_username": "username",
    "uq_accounts_email": "email",
}
# SQLite reports the column instead: "UNIQUE constraint failed: accounts.email".
_SQLITE_UNIQUE_COLUMN = re.compile(r"\baccounts\.(username|email)\b")
_QUOTED_NAME = re.compile(r'"([A-Za-z0-9_]+)"')


def _conflict_field(exc: IntegrityError) -> str | None:
    """Name the unique field behind an integrity error, from its constraint when possible."""
    diag = getattr(exc.orig, "diag", None)
    constraint = getattr(diag, "constraint_name", None)
    if constraint:
        return UNIQUE_CONSTRAINT_FIELDS.get(constraint)

    text = str(exc.orig) if exc.orig is not None else str(exc)
    # Only the first line: the DETAIL line echoes the offending value.
    first_line = text.splitlines()[0] if text else ""
    for name in _QUOTED_NAME.findall(first_line):
        if name in UNIQUE_CONSTRAINT_FIELDS:
            return UNIQUE_CONSTRAINT_FIELDS[name]
    match = _SQLITE_UNIQUE_COLUMN.search(first_line)
    return match.group(1) if match else None


class AccountStore:
    """
    CRUD over the persisted entities for one request. No caching.

    Constraint violations surface as ConflictError and connectivity
    failures as StoreUnavailableError; the session is rolled back first.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    @contextmanager
    def _translate_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except IntegrityError as e:
            self.db.rollback()
            field = _conflict_field(e)
            logger.info("Store %s hit a unique constraint (field=%s)", action, field)
            raise ConflictError(f"{field or 'value'} already in use", field=field) from e
        except DBAPIError as e:
            self.db.rollback()
            logger.error("Store %s failed: %s", action, e)
            raise StoreUnavailableError(str(e.orig) if e.orig is not None else str(e)) from e

    # Accounts

    def find_account_by_id(self, account_id: str) -> Account | None:
        with self._translate_errors("find_account_by_id"):
            return self.db.query(Account).filter(Account.id == account_id).first()

    def find_account_by_username(self, username: str) -> Account | None:
        with self._translate_errors("find_account_by_username"):
            return self.db.query(Account).filter(Account.username == username).first()

    def find_account_by_email(self, email: str) -> Account | None:
        with self._translate_errors("find_account_by_email"):
            return self.db.query(Account).filter(Account.email == email).first()

    def find_other_account_with(self, field: str, value: str, exclude_id: str) -> Account | None:
        """Return an account other than exclude_id that holds value in a unique field."""
        if field not in UNIQUE_ACCOUNT_FIELDS:
            raise ValueError(f"{field!r} is not a unique account field")
        column = getattr(Account, field)
        with self._translate_errors("find_other_account_with"):
            return (
                self.db.query(Account)
                .filter(column == value, Account.id != exclude_id)
                .first()
            )

    def count_accounts(self) -> int:
        with self._translate_errors("count_accounts"):
            return self.db.query(Account).count()

    def lock_accounts_for_insert(self) -> None:
        """
        Hold off other account inserts until this transaction commits.

        PostgreSQL only; SQLite already admits a single writer at a time.
        """
        if self.db.get_bind().dialect.name != "postgresql":
            return
        with self._translate_errors("lock_accounts_for_insert"):
            self.db.execute(text("LOCK TABLE accounts IN SHARE ROW EXCLUSIVE MODE"))

    def list_accounts(self, order: ListingOrder = "username") -> list[Row]:
        """Accounts left-joined with their profile's avatar and names."""
        if order == "updated":
            ordering = (Account.updated_at.desc(), Account.username.asc())
        else:
            ordering = (Account.username.asc(),)
        with self._translate_errors("list_accounts"):
            return (
                self.db.query(
                    Account.id,
                    Account.username,
                    Account.role,
                    Account.active,
                    Account.created_at,
                    Account.updated_at,
                    Profile.avatar,
                    Profile.first_name,
                    Profile.last_name,
                )
                .outerjoin(Profile, Profile.user_id == Account.id)
                .order_by(*ordering)
                .all()
            )

    def insert_account_and_profile(self, account: Account, profile_seed: dict[str, Any]) -> Profile:
        """Insert the account and its profile in one transaction: both rows or neither."""
        with self._translate_errors("insert_account_and_profile"):
            self.db.add(account)
            self.db.flush()
            profile = Profile(user_id=account.id, **profile_seed)
            self.db.add(profile)
            self.db.commit()
            return profile

    def update_account_field(self, account_id: str, field: str, value: Any) -> int:
        """
        Set one account column; returns the number of rows changed (0: no such account).

        A username change re-syncs the owner's Profile.name in the same transaction.
        """
        if field not in ACCOUNT_FIELDS:
            raise ValueError(f"{field!r} is not an updatable account field")
        with self._translate_errors("update_account_field"):
            updated = (
                self.db.query(Account)
                .filter(Account.id == account_id)
                .update(
                    {field: value, "updated_at": datetime.now(UTC)},
                    synchronize_session=False,
                )
            )
            if updated and field == "username":
                self.db.query(Profile).filter(Profile.user_id == account_id).update(
                    {"name": value}, synchronize_session=False
                )
            self.db.commit()
            return updated

    def delete_account(self, account_id: str) -> int:
        """Delete an account; its profile and sessions go with it by foreign-key cascade."""
        with self._translate_errors("delete_account"):
            deleted = (
                self.db.query(Account)
                .filter(Account.id == account_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            return deleted

    # Profiles

    def find_profile_by_id(self, profile_id: str) -> Profile | None:
        with self._translate_errors("find_profile_by_id"):
            return self.db.query(Profile).filter(Profile.id == profile_id).first()

    def find_profile_by_owner(self, user_id: str) -> Profile | None:
        with self._translate_errors("find_profile_by_owner"):
            return (
                self.db.query(Profile)
                .filter(Profile.user_id == user_id)
                .order_by(Profile.id.asc())
                .first()
            )

    def find_profile_by_name(self, name: str) -> Profile | None:
        with self._translate_errors("find_profile_by_name"):
            return self.db.query(Profile).filter(Profile.name == name).first()

    def update_profile_field(
        self,
        profile_id: str,
        field: str,
        value: str | None,
        owner_id: str | None = None,
    ) -> int:
        """
        Set one profile column; returns rows changed.

        With owner_id, the write only matches a profile owned by that account,
        so a mismatched owner changes nothing.
        """
        if field not in PROFILE_FIELDS:
            raise ValueError(f"{field!r} is not an updatable profile field")
        with self._translate_errors("update_profile_field"):
            query = self.db.query(Profile).filter(Profile.id == profile_id)
            if owner_id is not None:
                query = query.filter(Profile.user_id == owner_id)
            updated = query.update({field: value}, synchronize_session=False)
            self.db.commit()
            return updated

    # Sessions

    def insert_session(self, session_id: str, user_id: str, expires_at: datetime) -> UserSession:
        with self._translate_errors("insert_session"):
            row = UserSession(id=session_id, user_id=user_id, expires_at=expires_at)
            self.db.add(row)
            self.db.commit()
            return row

    def find_session(self, session_id: str) -> UserSession | None:
        with self._translate_errors("find_session"):
            return self.db.query(UserSession).filter(UserSession.id == session_id).first()

    def find_sessions_for(self, user_id: str) -> list[UserSession]:
        with self._translate_errors("find_sessions_for"):
            return self.db.query(UserSession).filter(UserSession.user_id == user_id).all()

    def delete_session(self, session_id: str) -> int:
        with self._translate_errors("delete_session"):
            deleted = (
                self.db.query(UserSession)
                .filter(UserSession.id == session_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            return deleted

    def delete_expired_sessions(self, now: datetime) -> int:
        with self._translate_errors("delete_expired_sessions"):
            deleted = (
                self.db.query(UserSession)
                .filter(UserSession.expires_at < now)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            return deleted
