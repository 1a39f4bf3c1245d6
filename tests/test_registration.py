"""Tests for panel.services.registration: bootstrap admin, uniqueness, atomic creation."""

import unittest
from unittest.mock import MagicMock, patch

from panel.core.security import verify_password
from panel.schemas.auth import RegisterRequest
from panel.services.errors import StoreUnavailableError
from panel.services.registration import CREATION_FAILED, REGISTERED, register

from support import DatabaseTestCase


def _payload(
    username: str = "alice",
    email: str | None = None,
    password: str = "Abcdefg1!",
    confirm: str | None = None,
) -> RegisterRequest:
    """Build a registration form for tests."""
    return RegisterRequest(
        username=username,
        email=email or f"{username.strip().lower()}@example.com",
        password=password,
        passwordConfirm=password if confirm is None else confirm,
    )


class TestBootstrapAdmin(DatabaseTestCase):
    def test_first_account_is_active_admin(self) -> None:
        outcome = register(self.store, _payload("founder"))
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.role, "ADMIN")
        self.assertTrue(outcome.active)
        stored = self.store.find_account_by_username("founder")
        self.assertEqual(stored.role, "ADMIN")
        self.assertTrue(stored.active)
        self.assertEqual(outcome.flash.message, REGISTERED)

    def test_later_accounts_are_inactive_users(self) -> None:
        register(self.store, _payload("founder"))
        for name in ("second", "third"):
            outcome = register(self.store, _payload(name))
            self.assertTrue(outcome.ok)
            self.assertEqual(outcome.role, "USER")
            self.assertFalse(outcome.active)
            stored = self.store.find_account_by_username(name)
            self.assertEqual(stored.role, "USER")
            self.assertFalse(stored.active)


class TestCreation(DatabaseTestCase):
    def test_profile_seeded_and_password_hashed(self) -> None:
        outcome = register(self.store, _payload(" Alice ", email="Alice@Example.com"))
        account = self.store.find_account_by_id(outcome.account_id)
        self.assertEqual(account.username, "alice")
        self.assertEqual(account.email, "alice@example.com")
        self.assertNotEqual(account.password_hash, "Abcdefg1!")
        self.assertTrue(verify_password("Abcdefg1!", account.password_hash))
        profile = self.store.find_profile_by_owner(account.id)
        self.assertEqual(profile.name, "alice")

    def test_ids_are_opaque_and_distinct(self) -> None:
        a = register(self.store, _payload("alice"))
        b = register(self.store, _payload("bob"))
        self.assertNotEqual(a.account_id, b.account_id)
        self.assertEqual(len(a.account_id), 24)
        self.assertNotIn("alice", a.account_id)

    def test_validation_errors_do_not_touch_store(self) -> None:
        store = MagicMock()
        outcome = register(store, _payload(password="abcdefg1"))
        self.assertEqual(outcome.error, "validation")
        self.assertIn("password", outcome.field_errors)
        self.assertEqual(store.method_calls, [])

    def test_confirmation_mismatch(self) -> None:
        outcome = register(self.store, _payload(confirm="Abcdefg1?"))
        self.assertEqual(outcome.field_errors, {"passwordConfirm": ["Passwords don't match"]})
        self.assertEqual(self.store.count_accounts(), 0)


class TestUniqueness(DatabaseTestCase):
    def test_username_taken_case_insensitive(self) -> None:
        register(self.store, _payload("alice"))
        outcome = register(self.store, _payload("ALICE", email="other@example.com"))
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.field_errors, {"username": ["Username already exists!"]})

    def test_email_taken(self) -> None:
        register(self.store, _payload("alice"))
        outcome = register(self.store, _payload("bob", email="ALICE@example.com"))
        self.assertEqual(outcome.field_errors, {"email": ["Email already in use!"]})

    def test_username_reported_before_email(self) -> None:
        register(self.store, _payload("alice"))
        outcome = register(self.store, _payload("alice"))
        self.assertEqual(set(outcome.field_errors), {"username"})

    def test_concurrent_duplicate_is_a_conflict(self) -> None:
        """Both requests pass the pre-check; the unique constraint decides the loser."""
        self.assertTrue(register(self.store, _payload("alice")).ok)
        with patch.object(self.store, "find_account_by_username", return_value=None), patch.object(
            self.store, "find_account_by_email", return_value=None
        ):
            outcome = register(self.store, _payload("alice", email="second@example.com"))
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.error, "conflict")
        self.assertEqual(outcome.field_errors, {"username": ["Username already exists!"]})
        self.assertEqual(self.store.count_accounts(), 1)


class TestStoreFailure(unittest.TestCase):
    def test_insert_failure_reports_creation_error(self) -> None:
        store = MagicMock()
        store.find_account_by_username.return_value = None
        store.find_account_by_email.return_value = None
        store.count_accounts.return_value = 3
        store.insert_account_and_profile.side_effect = StoreUnavailableError("disk full")
        outcome = register(store, _payload(), hasher=lambda pw: "hashed")
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.error, "unavailable")
        self.assertEqual(outcome.flash.type, "error")
        self.assertTrue(outcome.flash.message.startswith(CREATION_FAILED))
        self.assertEqual(outcome.field_errors, {})

    def test_first_account_check_runs_under_table_lock(self) -> None:
        store = MagicMock()
        store.find_account_by_username.return_value = None
        store.find_account_by_email.return_value = None
        store.count_accounts.return_value = 0
        outcome = register(store, _payload(), hasher=lambda pw: "hashed")
        self.assertTrue(outcome.ok)
        calls = [name for name, _args, _kwargs in store.mock_calls]
        self.assertLess(calls.index("lock_accounts_for_insert"), calls.index("count_accounts"))
        self.assertLess(calls.index("count_accounts"), calls.index("insert_account_and_profile"))


if __name__ == "__main__":
    unittest.main()
