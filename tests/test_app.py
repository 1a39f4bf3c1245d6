"""End-to-end tests of the web surface with FastAPI's TestClient on in-memory SQLite."""

import unittest

from fastapi.testclient import TestClient

from panel.core.config import settings
from panel.core.database import engine
from panel.main import app
from panel.models import Base

PASSWORD = "Abcdefg1!"


class AppTestCase(unittest.TestCase):
    """Fresh schema per test; one TestClient (cookie jar) per simulated browser."""

    def setUp(self) -> None:
        Base.metadata.create_all(engine)

    def tearDown(self) -> None:
        Base.metadata.drop_all(engine)

    def browser(self) -> TestClient:
        return TestClient(app, follow_redirects=False)

    def register(self, client: TestClient, username: str, **overrides: str):
        form = {
            "username": username,
            "email": f"{username}@example.com",
            "password": PASSWORD,
            "passwordConfirm": PASSWORD,
        }
        form.update(overrides)
        return client.post("/register", data=form)

    def login(self, client: TestClient, username: str, password: str = PASSWORD):
        return client.post("/login", data={"username": username, "password": password})

    def signed_in(self, username: str) -> TestClient:
        client = self.browser()
        response = self.login(client, username)
        self.assertEqual(response.status_code, 303, response.text)
        return client

    def seed(self, *usernames: str) -> None:
        """Register accounts in order; the first becomes the admin."""
        client = self.browser()
        for username in usernames:
            self.assertEqual(self.register(client, username).status_code, 303)


class TestAnonymous(AppTestCase):
    def test_protected_pages_redirect_to_login(self) -> None:
        client = self.browser()
        for path in ("/users", "/users/alice", "/users/alice/profile"):
            response = client.get(path)
            self.assertEqual(response.status_code, 302)
            self.assertEqual(response.headers["location"], "/login")

    def test_mutations_redirect_to_login(self) -> None:
        response = self.browser().post("/users/alice/username", data={"id": "x", "username": "y"})
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.headers["location"], "/login")

    def test_health(self) -> None:
        response = self.browser().get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["database"], "connected")


class TestRegisterAndLogin(AppTestCase):
    def test_register_redirects_to_login_with_flash(self) -> None:
        client = self.browser()
        response = self.register(client, "founder")
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/login")

        page = client.get("/login")
        self.assertEqual(page.json()["flash"]["type"], "success")
        # One-shot: gone on the next render.
        self.assertIsNone(client.get("/login").json()["flash"])

    def test_register_validation_errors(self) -> None:
        response = self.register(self.browser(), "x", passwordConfirm="different")
        self.assertEqual(response.status_code, 400)
        errors = response.json()["field_errors"]
        self.assertIn("username", errors)
        self.assertIn("passwordConfirm", errors)

    def test_register_duplicate_username(self) -> None:
        self.seed("alice")
        response = self.register(self.browser(), "ALICE", email="other@example.com")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["field_errors"], {"username": ["Username already exists!"]})

    def test_login_and_logout(self) -> None:
        self.seed("alice")
        client = self.signed_in("alice")
        self.assertIn(settings.SESSION_COOKIE_NAME, client.cookies)
        self.assertEqual(client.get("/users").status_code, 200)

        response = client.post("/logout")
        self.assertEqual(response.status_code, 303)
        self.assertEqual(client.get("/users").status_code, 302)

    def test_bad_credentials(self) -> None:
        self.seed("alice")
        response = self.login(self.browser(), "alice", "Wrong-pass1")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["flash"]["message"], "Invalid username or password.")

    def test_register_while_signed_in_redirects_home(self) -> None:
        self.seed("alice")
        client = self.signed_in("alice")
        response = self.register(client, "bob")
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.headers["location"], "/")


class TestUsersPages(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.seed("admin", "carol", "alice")
        self.admin = self.signed_in("admin")
        self.alice_id = self.admin.get("/users/alice").json()["id"]

    def test_listing_orders(self) -> None:
        body = self.admin.get("/users").json()
        self.assertEqual(body["order"], "username")
        self.assertEqual([u["username"] for u in body["users"]], ["admin", "alice", "carol"])

        self.admin.post("/users/carol/email", data={
            "id": self.admin.get("/users/carol").json()["id"],
            "email": "carol2@example.com",
        })
        body = self.admin.get("/users?order=updated").json()
        self.assertEqual(body["users"][0]["username"], "carol")

    def test_unknown_user_goes_to_listing(self) -> None:
        response = self.admin.get("/users/ghost")
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.headers["location"], "/users")

    def test_admin_activates_user(self) -> None:
        response = self.admin.post(
            "/users/alice/active", data={"id": self.alice_id, "active": "true"}
        )
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/users/alice")
        page = self.admin.get("/users/alice").json()
        self.assertTrue(page["active"])
        self.assertEqual(page["flash"], {"type": "success", "message": "Active status updated."})

    def test_admin_cannot_demote_self(self) -> None:
        admin_id = self.admin.get("/users/admin").json()["id"]
        response = self.admin.post("/users/admin/role", data={"id": admin_id, "role": "USER"})
        self.assertEqual(response.status_code, 303)
        page = self.admin.get("/users/admin").json()
        self.assertEqual(page["role"], "ADMIN")
        self.assertEqual(page["flash"], {"type": "error", "message": "Not authorized."})

    def test_user_cannot_change_role(self) -> None:
        alice = self.signed_in("alice")
        alice.post("/users/alice/role", data={"id": self.alice_id, "role": "ADMIN"})
        self.assertEqual(self.admin.get("/users/alice").json()["role"], "USER")

    def test_rename_redirects_to_new_page(self) -> None:
        alice = self.signed_in("alice")
        response = alice.post(
            "/users/alice/username", data={"id": self.alice_id, "username": "Alicia"}
        )
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/users/alicia")
        self.assertEqual(alice.get("/users/alicia/profile").json()["name"], "alicia")

    def test_rename_conflict(self) -> None:
        alice = self.signed_in("alice")
        response = alice.post(
            "/users/alice/username", data={"id": self.alice_id, "username": "carol"}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["field_errors"], {"username": ["Username already exists!"]})

    def test_delete_returns_to_listing(self) -> None:
        response = self.admin.post("/users/alice/delete", data={"id": self.alice_id})
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/users")
        usernames = [u["username"] for u in self.admin.get("/users").json()["users"]]
        self.assertNotIn("alice", usernames)


class TestProfilePages(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.seed("admin", "alice", "bob")
        self.alice = self.signed_in("alice")
        self.profile_id = self.alice.get("/users/alice/profile").json()["id"]

    def test_owner_sets_and_clears_bio(self) -> None:
        response = self.alice.post(
            "/users/alice/profile/bio", data={"id": self.profile_id, "bio": " Hello "}
        )
        self.assertEqual(response.status_code, 303)
        self.assertEqual(response.headers["location"], "/users/alice/profile")
        self.assertEqual(self.alice.get("/users/alice/profile").json()["bio"], "Hello")

        self.alice.post("/users/alice/profile/bio", data={"id": self.profile_id, "bio": ""})
        page = self.alice.get("/users/alice/profile").json()
        self.assertEqual(page["bio"], "")
        self.assertEqual(page["flash"]["message"], "Bio updated.")

    def test_admin_views_but_cannot_edit(self) -> None:
        admin = self.signed_in("admin")
        page = admin.get("/users/alice/profile")
        self.assertEqual(page.status_code, 200)
        self.assertFalse(page.json()["can_edit"])

        admin.post(
            "/users/alice/profile/firstName", data={"id": self.profile_id, "firstName": "X"}
        )
        page = admin.get("/users/alice/profile").json()
        self.assertEqual(page["first_name"], "")
        self.assertEqual(page["flash"], {"type": "error", "message": "Not authorized."})

    def test_other_user_cannot_view(self) -> None:
        bob = self.signed_in("bob")
        response = bob.get("/users/alice/profile")
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.headers["location"], "/users")

    def test_unknown_field_is_rejected(self) -> None:
        response = self.alice.post(
            "/users/alice/profile/password", data={"id": self.profile_id, "password": "x"}
        )
        self.assertEqual(response.status_code, 422)


if __name__ == "__main__":
    unittest.main()
