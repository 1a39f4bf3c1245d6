"""Response documents for the users listing, detail and profile views."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from panel.schemas.outcome import Flash


class UserListItem(BaseModel):
    """Account row joined with its profile's avatar and names (no credentials)."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    role: str
    active: bool
    created_at: datetime
    updated_at: datetime
    avatar: str | None = None
    first_name: str | None = None
    last_name: str | None = None


class UsersListResponse(BaseModel):
    """Response for GET /users."""

    users: list[UserListItem]
    order: str
    flash: Flash | None = None


class UserDetailResponse(BaseModel):
    """Response for GET /users/{username}."""

    id: str
    username: str
    email: str
    role: str
    active: bool
    created_at: datetime
    updated_at: datetime
    profile_id: str
    avatar: str = ""
    first_name: str = ""
    last_name: str = ""
    can_edit_identity: bool = False
    can_change_role_or_active: bool = False
    flash: Flash | None = None


class ProfileResponse(BaseModel):
    """Response for GET /users/{username}/profile; cleared fields render as ''."""

    id: str
    user_id: str
    name: str
    avatar: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    bio: str = ""
    can_edit: bool = False
    flash: Flash | None = None


class ErrorResponse(BaseModel):
    """Body returned with 4xx/5xx answers to form posts."""

    error: str | None = None
    field_errors: dict[str, list[str]] = Field(default_factory=dict)
    flash: Flash | None = None
