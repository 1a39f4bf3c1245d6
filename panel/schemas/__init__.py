"""Pydantic request/response schemas and result values."""

from panel.schemas.auth import CurrentUser, LoginRequest, RegisterRequest, Role
from panel.schemas.health import HealthResponse
from panel.schemas.outcome import (
    FieldResult,
    Flash,
    MutationOutcome,
    RegistrationOutcome,
)
from panel.schemas.users import (
    ErrorResponse,
    ProfileResponse,
    UserDetailResponse,
    UserListItem,
    UsersListResponse,
)

__all__ = [
    "CurrentUser",
    "ErrorResponse",
    "FieldResult",
    "Flash",
    "HealthResponse",
    "LoginRequest",
    "MutationOutcome",
    "ProfileResponse",
    "RegisterRequest",
    "RegistrationOutcome",
    "Role",
    "UserDetailResponse",
    "UserListItem",
    "UsersListResponse",
]
