"""Shared fixtures for tests that need a database: fresh schema per test."""

import unittest

from panel.core.database import SessionLocal, engine
from panel.models import Account, Base
from panel.schemas.auth import CurrentUser, Role
from panel.services.store import AccountStore


class DatabaseTestCase(unittest.TestCase):
    """Creates all tables before each test and drops them after."""

    def setUp(self) -> None:
        Base.metadata.create_all(engine)
        self.db = SessionLocal()
        self.store = AccountStore(self.db)

    def tearDown(self) -> None:
        self.db.close()
        Base.metadata.drop_all(engine)

    def make_account(
        self,
        username: str,
        role: Role = Role.USER,
        active: bool = False,
        email: str | None = None,
    ) -> Account:
        """Insert an account and its profile directly (no password hashing)."""
        account = Account(
            id=f"id_{username}",
            username=username,
            email=email or f"{username}@example.com",
            password_hash="not-a-real-hash",
            role=role.value,
            active=active,
        )
        self.store.insert_account_and_profile(account, {"name": username})
        return self.store.find_account_by_id(f"id_{username}")


def viewer_for(account: Account) -> CurrentUser:
    return CurrentUser.model_validate(account)
