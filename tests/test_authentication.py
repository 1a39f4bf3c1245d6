"""Tests for login, sessions, viewer resolution and expired-session cleanup."""

import unittest
from datetime import UTC, datetime, timedelta

import jwt

from panel.core.config import settings
from panel.core.security import (
    create_flash_token,
    create_session_token,
    decode_flash_token,
    decode_session_token,
    hash_password,
    verify_password,
)
from panel.schemas.auth import RegisterRequest, Role
from panel.services.authentication import (
    authenticate,
    close_session,
    open_session,
    resolve_viewer,
)
from panel.services.cleanup import purge_expired_sessions
from panel.services.registration import register

from support import DatabaseTestCase

PASSWORD = "Abcdefg1!"


class AuthTestCase(DatabaseTestCase):
    def setUp(self) -> None:
        super().setUp()
        for name in ("admin", "alice"):
            register(
                self.store,
                RegisterRequest(
                    username=name,
                    email=f"{name}@example.com",
                    password=PASSWORD,
                    passwordConfirm=PASSWORD,
                ),
            )
        self.alice_id = self.store.find_account_by_username("alice").id


class TestAuthenticate(AuthTestCase):
    def test_valid_credentials_normalize_username(self) -> None:
        account = authenticate(self.store, "  ALICE ", PASSWORD)
        self.assertIsNotNone(account)
        self.assertEqual(account.username, "alice")

    def test_wrong_password_and_unknown_user_look_the_same(self) -> None:
        self.assertIsNone(authenticate(self.store, "alice", "Wrong-pass1"))
        self.assertIsNone(authenticate(self.store, "nobody", PASSWORD))
        self.assertIsNone(authenticate(self.store, "", ""))

    def test_require_active(self) -> None:
        # alice registered second, so she is inactive.
        self.assertIsNone(authenticate(self.store, "alice", PASSWORD, require_active=True))
        self.assertIsNotNone(authenticate(self.store, "admin", PASSWORD, require_active=True))


class TestSessions(AuthTestCase):
    def test_open_and_resolve(self) -> None:
        row = open_session(self.store, self.alice_id, timedelta(hours=1))
        viewer = resolve_viewer(self.store, row.id)
        self.assertIsNotNone(viewer)
        self.assertEqual(viewer.id, self.alice_id)
        self.assertEqual(viewer.role, Role.USER)
        self.assertFalse(viewer.active)

    def test_expired_session_is_removed(self) -> None:
        row = open_session(self.store, self.alice_id, timedelta(minutes=5))
        session_id = row.id
        later = datetime.now(UTC) + timedelta(minutes=10)
        self.assertIsNone(resolve_viewer(self.store, session_id, now=later))
        self.assertIsNone(self.store.find_session(session_id))

    def test_close_session(self) -> None:
        session_id = open_session(self.store, self.alice_id, timedelta(hours=1)).id
        close_session(self.store, session_id)
        self.assertIsNone(resolve_viewer(self.store, session_id))

    def test_unknown_or_missing_session(self) -> None:
        self.assertIsNone(resolve_viewer(self.store, None))
        self.assertIsNone(resolve_viewer(self.store, "does-not-exist"))

    def test_viewer_reflects_current_role(self) -> None:
        session_id = open_session(self.store, self.alice_id, timedelta(hours=1)).id
        self.store.update_account_field(self.alice_id, "role", "ADMIN")
        self.assertEqual(resolve_viewer(self.store, session_id).role, Role.ADMIN)


class TestPurgeExpiredSessions(AuthTestCase):
    def test_purges_only_expired(self) -> None:
        now = datetime.now(UTC)
        self.store.insert_session("old", self.alice_id, now - timedelta(hours=2))
        self.store.insert_session("fresh", self.alice_id, now + timedelta(hours=2))
        self.assertEqual(purge_expired_sessions(self.store, now), 1)
        self.assertEqual(purge_expired_sessions(self.store, now), 0)
        self.assertIsNotNone(self.store.find_session("fresh"))


class TestSignedTokens(unittest.TestCase):
    def test_session_token_round_trip(self) -> None:
        token = create_session_token("abc123", datetime.now(UTC) + timedelta(minutes=5))
        self.assertEqual(decode_session_token(token), "abc123")

    def test_expired_session_token(self) -> None:
        token = create_session_token("abc123", datetime.now(UTC) - timedelta(minutes=5))
        with self.assertRaises(jwt.ExpiredSignatureError):
            decode_session_token(token)

    def test_flash_token_signed_with_another_key(self) -> None:
        token = create_flash_token("success", "Saved.")
        self.assertEqual(decode_flash_token(token)["message"], "Saved.")
        forged = jwt.encode(
            {"type": "success", "message": "Forged."},
            "another-secret-0123456789abcdefghijkl",
            algorithm="HS256",
        )
        with self.assertRaises(jwt.PyJWTError):
            decode_flash_token(forged)


class TestPasswordHashing(unittest.TestCase):
    def test_argon2id_with_configured_cost(self) -> None:
        hashed = hash_password("Abcdefg1!")
        self.assertTrue(hashed.startswith("$argon2id$"))
        self.assertIn(f"m={settings.ARGON2_MEMORY_COST},t={settings.ARGON2_TIME_COST}", hashed)
        self.assertTrue(verify_password("Abcdefg1!", hashed))
        self.assertFalse(verify_password("Abcdefg1?", hashed))

    def test_unreadable_hash_does_not_verify(self) -> None:
        self.assertFalse(verify_password("Abcdefg1!", "not-a-real-hash"))


if __name__ == "__main__":
    unittest.main()
