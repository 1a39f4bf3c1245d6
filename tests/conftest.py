"""Point the app at an in-memory SQLite database before any panel module is imported."""

import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ["ARGON2_TIME_COST"] = "1"
os.environ["ARGON2_MEMORY_COST"] = "1024"
os.environ["SESSION_SECRET"] = "test-session-secret-0123456789abcdef"
os.environ.setdefault("APP_ENV", "dev")
os.environ.setdefault("REQUIRE_ACTIVE_LOGIN", "false")
