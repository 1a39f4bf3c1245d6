"""
Partial updates: one field of one account or profile per request.

Every operation runs validate -> authorize -> uniqueness check (username,
email) -> persist -> notify, and returns a MutationOutcome carrying the
flash to show next. Store failures are caught here and never escape.
"""

import logging
from collections.abc import Callable
from typing import Any

from panel.schemas.auth import CurrentUser, Role
from panel.schemas.outcome import FieldResult, Flash, MutationOutcome
from panel.services.errors import ConflictError, StoreUnavailableError
from panel.services.policy import (
    can_change_role_or_active,
    can_delete_account,
    can_edit_account_identity,
    can_edit_profile_field,
)
from panel.services.store import UNIQUE_ACCOUNT_FIELDS, AccountStore
from panel.services.validation import ACCOUNT_FIELD_RULES, PROFILE_FIELD_RULES

logger = logging.getLogger(__name__)

NOT_AUTHORIZED = "Not authorized."
USER_NOT_FOUND = "User not found."
PROFILE_NOT_FOUND = "Profile not found."

CONFLICT_MESSAGES = {
    "username": "Username already exists!",
    "email": "Email already in use!",
}

Policy = Callable[[CurrentUser | None, str], bool]


def _viewer_label(viewer: CurrentUser | None) -> str:
    return viewer.id if viewer is not None else "anonymous"


def _invalid(result: FieldResult) -> MutationOutcome:
    return MutationOutcome(ok=False, error="validation", field_errors=result.errors)


def _missing_id() -> MutationOutcome:
    return MutationOutcome(ok=False, error="validation", field_errors={"id": ["Id is required"]})


def _unauthorized(viewer: CurrentUser | None, action: str, target_id: str) -> MutationOutcome:
    # Generic message: the viewer is not told which field was refused.
    logger.warning(
        "Refused %s on %s for viewer %s", action, target_id, _viewer_label(viewer)
    )
    return MutationOutcome(
        ok=False,
        error="unauthorized",
        flash=Flash(type="error", message=NOT_AUTHORIZED),
    )


def _conflict(field: str) -> MutationOutcome:
    message = CONFLICT_MESSAGES.get(field, "Already in use!")
    return MutationOutcome(ok=False, error="conflict", field_errors={field: [message]})


def _not_found(message: str) -> MutationOutcome:
    return MutationOutcome(
        ok=False,
        error="not_found",
        flash=Flash(type="warning", message=message),
        next_view="listing",
    )


def _unavailable(exc: StoreUnavailableError) -> MutationOutcome:
    return MutationOutcome(
        ok=False,
        error="unavailable",
        flash=Flash(type="error", message=exc.message),
    )


def _update_account_field(
    store: AccountStore,
    viewer: CurrentUser | None,
    field: str,
    target_id: str,
    raw: Any,
    allowed: Policy,
) -> MutationOutcome:
    rule = ACCOUNT_FIELD_RULES[field]
    result = rule.check(raw)
    if not result.valid:
        return _invalid(result)
    if not target_id:
        return _missing_id()
    if not allowed(viewer, target_id):
        return _unauthorized(viewer, f"set-{field}", target_id)

    value = result.value.value if isinstance(result.value, Role) else result.value
    try:
        if field in UNIQUE_ACCOUNT_FIELDS:
            holder = store.find_other_account_with(field, value, exclude_id=target_id)
            if holder is not None:
                logger.info("%s %r already held by %s", field, value, holder.id)
                return _conflict(field)
        updated = store.update_account_field(target_id, rule.column, value)
    except ConflictError as e:
        # Lost a race with a concurrent write; the unique constraint decided.
        return _conflict(e.field or field)
    except StoreUnavailableError as e:
        return _unavailable(e)

    if not updated:
        return _not_found(USER_NOT_FOUND)
    logger.info("Account %s: %s updated by %s", target_id, field, _viewer_label(viewer))
    return MutationOutcome(
        ok=True,
        value=value,
        flash=Flash(type="success", message=f"{rule.label} updated."),
        next_view="detail",
    )


def set_username(
    store: AccountStore, viewer: CurrentUser | None, target_id: str, raw: Any
) -> MutationOutcome:
    """Rename an account (self or admin); Profile.name follows."""
    return _update_account_field(
        store, viewer, "username", target_id, raw, can_edit_account_identity
    )


def set_email(
    store: AccountStore, viewer: CurrentUser | None, target_id: str, raw: Any
) -> MutationOutcome:
    return _update_account_field(
        store, viewer, "email", target_id, raw, can_edit_account_identity
    )


def set_active(
    store: AccountStore, viewer: CurrentUser | None, target_id: str, raw: Any
) -> MutationOutcome:
    return _update_account_field(
        store, viewer, "active", target_id, raw, can_change_role_or_active
    )


def set_role(
    store: AccountStore, viewer: CurrentUser | None, target_id: str, raw: Any
) -> MutationOutcome:
    return _update_account_field(
        store, viewer, "role", target_id, raw, can_change_role_or_active
    )


def delete_account(
    store: AccountStore, viewer: CurrentUser | None, target_id: str
) -> MutationOutcome:
    """Delete an account (admin, not self). The caller goes back to the listing."""
    if not target_id:
        return _missing_id()
    if not can_delete_account(viewer, target_id):
        return _unauthorized(viewer, "delete-account", target_id)
    try:
        deleted = store.delete_account(target_id)
    except StoreUnavailableError as e:
        return _unavailable(e)
    if not deleted:
        return _not_found(USER_NOT_FOUND)
    logger.info("Account %s deleted by %s", target_id, _viewer_label(viewer))
    return MutationOutcome(
        ok=True,
        flash=Flash(type="success", message="User deleted."),
        next_view="listing",
    )


def set_profile_field(
    store: AccountStore,
    viewer: CurrentUser | None,
    field: str,
    profile_id: str,
    raw: Any,
) -> MutationOutcome:
    """
    Set or clear one profile field. Only the owner may do this.

    The write re-asserts ownership, so a profile that changed hands between
    the read and the write is left untouched.
    """
    rule = PROFILE_FIELD_RULES.get(field)
    if rule is None:
        return _invalid(FieldResult.fail(field, "Unknown field"))
    result = rule.check(raw)
    if not result.valid:
        return _invalid(result)
    if not profile_id:
        return _missing_id()
    if viewer is None:
        return _unauthorized(viewer, f"set-{field}", profile_id)

    try:
        profile = store.find_profile_by_id(profile_id)
        if profile is None:
            return _not_found(PROFILE_NOT_FOUND)
        if not can_edit_profile_field(viewer, profile.user_id):
            return _unauthorized(viewer, f"set-{field}", profile_id)
        updated = store.update_profile_field(
            profile_id, rule.column, result.value, owner_id=viewer.id
        )
    except StoreUnavailableError as e:
        return _unavailable(e)

    if not updated:
        return _unauthorized(viewer, f"set-{field}", profile_id)
    logger.info("Profile %s: %s updated by %s", profile_id, field, viewer.id)
    return MutationOutcome(
        ok=True,
        value=result.value,
        flash=Flash(type="success", message=f"{rule.label} updated."),
        next_view="detail",
    )
