"""Registration workflow: validate, check uniqueness, bootstrap the first admin, insert."""

import logging
from collections.abc import Callable

from panel.core.security import generate_account_id, hash_password
from panel.models import Account
from panel.schemas.auth import RegisterRequest, Role
from panel.schemas.outcome import Flash, RegistrationOutcome
from panel.services.errors import ConflictError, StoreUnavailableError
from panel.services.store import AccountStore
from panel.services.updates import CONFLICT_MESSAGES
from panel.services.validation import validate_registration

logger = logging.getLogger(__name__)

CREATION_FAILED = "An error has occurred while creating the user."
REGISTERED = "You are now registered and can log in."


def _taken(field: str) -> RegistrationOutcome:
    return RegistrationOutcome(
        ok=False,
        error="conflict",
        field_errors={field: [CONFLICT_MESSAGES[field]]},
    )


def register(
    store: AccountStore,
    payload: RegisterRequest,
    hasher: Callable[[str], str] = hash_password,
    id_factory: Callable[[], str] = generate_account_id,
) -> RegistrationOutcome:
    """
    Create an account and its profile from a registration form.

    The first account in an empty store becomes an active ADMIN; every later
    one gets the USER / inactive defaults. Username is checked before email
    and the first hit is reported. A duplicate that slips past the checks
    (concurrent registration) is still reported as a conflict.
    """
    result = validate_registration(payload)
    if not result.valid:
        return RegistrationOutcome(ok=False, error="validation", field_errors=result.errors)
    username = result.value["username"]
    email = result.value["email"]

    try:
        if store.find_account_by_username(username) is not None:
            return _taken("username")
        if store.find_account_by_email(email) is not None:
            return _taken("email")

        account_id = id_factory()
        password_hash = hasher(result.value["password"])

        # The count and the insert share one transaction, under the table lock,
        # so two registrations into an empty store cannot both become the admin.
        store.lock_accounts_for_insert()
        is_first = store.count_accounts() == 0
        role = Role.ADMIN.value if is_first else Role.USER.value
        account = Account(
            id=account_id,
            username=username,
            email=email,
            password_hash=password_hash,
            role=role,
            active=is_first,
        )
        store.insert_account_and_profile(account, {"name": username})
    except ConflictError as e:
        if e.field in CONFLICT_MESSAGES:
            return _taken(e.field)
        logger.error("Registration of %r hit an unattributed conflict: %s", username, e.message)
        return _creation_failed(e.message)
    except StoreUnavailableError as e:
        logger.error("Registration of %r failed: %s", username, e.message)
        return _creation_failed(e.message)

    if is_first:
        logger.info("Bootstrap admin created: %s (%s)", account_id, username)
    logger.info("Registered account %s with role %s", account_id, role)
    return RegistrationOutcome(
        ok=True,
        flash=Flash(type="success", message=REGISTERED),
        account_id=account_id,
        role=role,
        active=is_first,
    )


def _creation_failed(detail: str) -> RegistrationOutcome:
    return RegistrationOutcome(
        ok=False,
        error="unavailable",
        field_errors={},
        flash=Flash(type="error", message=f"{CREATION_FAILED} {detail}".strip()),
    )
