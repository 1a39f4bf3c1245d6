"""Users listing, account detail, and account-level partial updates."""

import logging
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Request, Response, status

from panel.api.auth import get_store, require_viewer
from panel.api.flash import (
    LISTING_URL,
    detail_url,
    outcome_response,
    pop_flash,
    redirect_with_flash,
)
from panel.core.config import settings
from panel.schemas.auth import CurrentUser
from panel.schemas.outcome import Flash
from panel.schemas.users import UserDetailResponse, UserListItem, UsersListResponse
from panel.services.policy import can_change_role_or_active, can_edit_account_identity
from panel.services.store import AccountStore
from panel.services.updates import (
    USER_NOT_FOUND,
    delete_account,
    set_active,
    set_email,
    set_role,
    set_username,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Form field name -> partial update for that account field.
ACCOUNT_ACTIONS = {
    "username": set_username,
    "email": set_email,
    "active": set_active,
    "role": set_role,
}


@router.get("", response_model=UsersListResponse)
def list_users(
    request: Request,
    response: Response,
    _viewer: Annotated[CurrentUser, Depends(require_viewer)],
    store: Annotated[AccountStore, Depends(get_store)],
    order: Literal["username", "updated"] | None = None,
) -> UsersListResponse:
    """List accounts with their avatar and names, by username or most recently updated."""
    order = order or settings.USERS_ORDER
    rows = store.list_accounts(order)
    return UsersListResponse(
        users=[UserListItem.model_validate(row) for row in rows],
        order=order,
        flash=pop_flash(request, response),
    )


@router.get("/{username}", response_model=UserDetailResponse)
def get_user(
    username: str,
    request: Request,
    response: Response,
    viewer: Annotated[CurrentUser, Depends(require_viewer)],
    store: Annotated[AccountStore, Depends(get_store)],
):
    """Account detail joined with its profile; unknown users go back to the listing."""
    account = store.find_account_by_username(username.strip().lower())
    if account is None:
        return redirect_with_flash(
            LISTING_URL,
            Flash(type="warning", message=USER_NOT_FOUND),
            status_code=status.HTTP_302_FOUND,
        )
    profile = store.find_profile_by_owner(account.id)
    if profile is None:
        logger.error("Account %s has no profile", account.id)
        return redirect_with_flash(LISTING_URL, status_code=status.HTTP_302_FOUND)
    return UserDetailResponse(
        id=account.id,
        username=account.username,
        email=account.email,
        role=account.role,
        active=account.active,
        created_at=account.created_at,
        updated_at=account.updated_at,
        profile_id=profile.id,
        avatar=profile.avatar or "",
        first_name=profile.first_name or "",
        last_name=profile.last_name or "",
        can_edit_identity=can_edit_account_identity(viewer, account.id),
        can_change_role_or_active=can_change_role_or_active(viewer, account.id),
        flash=pop_flash(request, response),
    )


@router.post("/{username}/delete")
async def post_delete(
    username: str,
    request: Request,
    viewer: Annotated[CurrentUser, Depends(require_viewer)],
    store: Annotated[AccountStore, Depends(get_store)],
) -> Response:
    """Delete the account whose id is posted; admins only, never themselves."""
    form = await request.form()
    outcome = delete_account(store, viewer, str(form.get("id") or ""))
    return outcome_response(outcome, detail_url(username))


@router.post("/{username}/{field}")
async def post_account_field(
    username: str,
    field: Literal["username", "email", "active", "role"],
    request: Request,
    viewer: Annotated[CurrentUser, Depends(require_viewer)],
    store: Annotated[AccountStore, Depends(get_store)],
) -> Response:
    """
    Update one account field. The form carries the target `id` and the new
    value under the field's own name.
    """
    form = await request.form()
    raw = form.get(field)
    if field == "active" and raw is None:
        # An unchecked checkbox is simply absent from the form.
        raw = "false"
    outcome = ACCOUNT_ACTIONS[field](store, viewer, str(form.get("id") or ""), raw)
    detail = detail_url(username)
    if outcome.ok and field == "username":
        detail = detail_url(outcome.value)
    return outcome_response(outcome, detail)
