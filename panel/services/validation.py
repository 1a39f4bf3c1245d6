"""
Field validation: purely syntactic rules keyed by form field name.

Each rule normalizes its raw input (trim, lowercase where relevant) and
returns a FieldResult holding either the typed value or per-field messages.
Nothing here reads the store.
"""

import re
from collections.abc import Callable
from typing import Any, NamedTuple

from panel.schemas.auth import RegisterRequest, Role
from panel.schemas.outcome import FieldResult

USERNAME_MIN_LEN = 2
USERNAME_MAX_LEN = 255
EMAIL_MAX_LEN = 320
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

_USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
# local@domain.tld with dot-separated atoms on both sides.
_EMAIL_PATTERN = re.compile(
    r"^[\w+-]+(?:\.[\w+-]+)*@[\da-z]+(?:[.-][\da-z]+)*\.[a-z]{2,}$",
    re.IGNORECASE,
)

# (pattern, message) pairs; every failing rule is reported.
_PASSWORD_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter"),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter"),
    (re.compile(r"[0-9]"), "Password must contain at least one number"),
    (re.compile(r"[^A-Za-z0-9]"), "Password must contain at least one special character"),
)

_TRUE_VALUES = frozenset({"true", "on", "1", "yes"})
_FALSE_VALUES = frozenset({"false", "off", "0", "no"})


def _as_text(raw: Any) -> str | None:
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw
    return None


def validate_username(raw: Any) -> FieldResult:
    text = _as_text(raw)
    if text is None:
        return FieldResult.fail("username", "Username is required")
    value = text.strip().lower()
    errors: list[str] = []
    if len(value) < USERNAME_MIN_LEN:
        errors.append(f"Username must be at least {USERNAME_MIN_LEN} characters long")
    elif len(value) > USERNAME_MAX_LEN:
        errors.append(f"Username must be at most {USERNAME_MAX_LEN} characters long")
    if value and not _USERNAME_PATTERN.match(value):
        errors.append("Username may only contain letters, numbers and underscores")
    if errors:
        return FieldResult.fail("username", *errors)
    return FieldResult.ok(value)


def validate_email(raw: Any) -> FieldResult:
    text = _as_text(raw)
    if text is None:
        return FieldResult.fail("email", "Email is required")
    value = text.strip().lower()
    if len(value) > EMAIL_MAX_LEN or not _EMAIL_PATTERN.match(value):
        return FieldResult.fail("email", "Invalid email")
    return FieldResult.ok(value)


def validate_password(password: Any, password_confirm: Any) -> FieldResult:
    """Strength rules on password, plus the confirmation check whatever their outcome."""
    pw = _as_text(password) or ""
    confirm = _as_text(password_confirm) or ""
    errors: dict[str, list[str]] = {}

    pw_errors: list[str] = []
    if len(pw) < PASSWORD_MIN_LEN:
        pw_errors.append(f"Password must be at least {PASSWORD_MIN_LEN} characters long")
    if len(pw) > PASSWORD_MAX_LEN:
        pw_errors.append(f"Password must be at most {PASSWORD_MAX_LEN} characters long")
    for pattern, message in _PASSWORD_RULES:
        if not pattern.search(pw):
            pw_errors.append(message)
    if pw_errors:
        errors["password"] = pw_errors
    if confirm != pw:
        errors["passwordConfirm"] = ["Passwords don't match"]

    if errors:
        return FieldResult(valid=False, errors=errors)
    return FieldResult.ok(pw)


def optional_text(field: str, max_len: int | None = None) -> Callable[[Any], FieldResult]:
    """Rule for optional text: trimmed; empty or absent means cleared (None)."""

    def check(raw: Any) -> FieldResult:
        if raw is None:
            return FieldResult.ok(None)
        if not isinstance(raw, str):
            return FieldResult.fail(field, "Must be text")
        value = raw.strip()
        if not value:
            return FieldResult.ok(None)
        if max_len is not None and len(value) > max_len:
            return FieldResult.fail(field, f"Must be at most {max_len} characters long")
        return FieldResult.ok(value)

    return check


def validate_active(raw: Any) -> FieldResult:
    if isinstance(raw, bool):
        return FieldResult.ok(raw)
    text = (_as_text(raw) or "").strip().lower()
    if text in _TRUE_VALUES:
        return FieldResult.ok(True)
    if text in _FALSE_VALUES:
        return FieldResult.ok(False)
    return FieldResult.fail("active", "Active must be true or false")


def validate_role(raw: Any) -> FieldResult:
    if isinstance(raw, Role):
        return FieldResult.ok(raw)
    text = (_as_text(raw) or "").strip().upper()
    try:
        return FieldResult.ok(Role(text))
    except ValueError:
        allowed = ", ".join(r.value for r in Role)
        return FieldResult.fail("role", f"Role must be one of {allowed}")


class FieldRule(NamedTuple):
    """How one mutable field is stored, named in notifications, and checked."""

    column: str
    label: str
    check: Callable[[Any], FieldResult]


ACCOUNT_FIELD_RULES: dict[str, FieldRule] = {
    "username": FieldRule("username", "Username", validate_username),
    "email": FieldRule("email", "Email", validate_email),
    "active": FieldRule("active", "Active status", validate_active),
    "role": FieldRule("role", "Role", validate_role),
}

PROFILE_FIELD_RULES: dict[str, FieldRule] = {
    "avatar": FieldRule("avatar", "Avatar", optional_text("avatar")),
    "firstName": FieldRule("first_name", "First name", optional_text("firstName", 255)),
    "lastName": FieldRule("last_name", "Last name", optional_text("lastName", 255)),
    "phone": FieldRule("phone", "Phone", optional_text("phone", 64)),
    "bio": FieldRule("bio", "Bio", optional_text("bio")),
}


def validate_field(field: str, raw: Any) -> FieldResult:
    """Dispatch raw input to the rule registered for field."""
    rule = ACCOUNT_FIELD_RULES.get(field) or PROFILE_FIELD_RULES.get(field)
    if rule is None:
        return FieldResult.fail(field, "Unknown field")
    return rule.check(raw)


def validate_registration(payload: RegisterRequest) -> FieldResult:
    """
    Validate the whole registration form.

    On success value is a dict with normalized username and email and the
    password as submitted.
    """
    errors: dict[str, list[str]] = {}
    username = validate_username(payload.username)
    email = validate_email(payload.email)
    password = validate_password(payload.password, payload.password_confirm)
    for result in (username, email, password):
        errors.update(result.errors)
    if errors:
        return FieldResult(valid=False, errors=errors)
    return FieldResult.ok(
        {
            "username": username.value,
            "email": email.value,
            "password": password.value,
        }
    )
