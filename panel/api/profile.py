"""Profile view and per-field profile edits (owner only)."""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Request, Response, status

from panel.api.auth import get_store, require_viewer
from panel.api.flash import LISTING_URL, outcome_response, pop_flash, redirect_with_flash
from panel.schemas.auth import CurrentUser
from panel.schemas.outcome import Flash
from panel.schemas.users import ProfileResponse
from panel.services.policy import can_edit_profile_field, can_view_profile
from panel.services.store import AccountStore
from panel.services.updates import NOT_AUTHORIZED, USER_NOT_FOUND, set_profile_field

router = APIRouter()

ProfileField = Literal["avatar", "firstName", "lastName", "phone", "bio"]


def _profile_url(username: str) -> str:
    return f"/users/{username}/profile"


@router.get("/{username}/profile", response_model=ProfileResponse)
def get_profile(
    username: str,
    request: Request,
    response: Response,
    viewer: Annotated[CurrentUser, Depends(require_viewer)],
    store: Annotated[AccountStore, Depends(get_store)],
):
    """Profile of an account, visible to its owner and to admins."""
    account = store.find_account_by_username(username.strip().lower())
    if account is None:
        return redirect_with_flash(
            LISTING_URL,
            Flash(type="warning", message=USER_NOT_FOUND),
            status_code=status.HTTP_302_FOUND,
        )
    if not can_view_profile(viewer, account.id):
        return redirect_with_flash(
            LISTING_URL,
            Flash(type="error", message=NOT_AUTHORIZED),
            status_code=status.HTTP_302_FOUND,
        )
    # Resolved through the owner id, not the denormalized name.
    profile = store.find_profile_by_owner(account.id)
    if profile is None:
        return redirect_with_flash(LISTING_URL, status_code=status.HTTP_302_FOUND)
    return ProfileResponse(
        id=profile.id,
        user_id=profile.user_id,
        name=profile.name,
        avatar=profile.avatar or "",
        first_name=profile.first_name or "",
        last_name=profile.last_name or "",
        phone=profile.phone or "",
        bio=profile.bio or "",
        can_edit=can_edit_profile_field(viewer, account.id),
        flash=pop_flash(request, response),
    )


@router.post("/{username}/profile/{field}")
async def post_profile_field(
    username: str,
    field: ProfileField,
    request: Request,
    viewer: Annotated[CurrentUser, Depends(require_viewer)],
    store: Annotated[AccountStore, Depends(get_store)],
) -> Response:
    """
    Set one profile field; an empty value clears it. The form carries the
    profile `id` and the value under the field's own name.
    """
    form = await request.form()
    outcome = set_profile_field(
        store, viewer, field, str(form.get("id") or ""), form.get(field)
    )
    return outcome_response(outcome, _profile_url(username))
