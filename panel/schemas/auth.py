"""Roles, the authenticated viewer, and auth form payloads."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Account roles, lowest to highest privilege."""

    USER = "USER"
    REDACTEUR = "REDACTEUR"
    ADMIN = "ADMIN"


class CurrentUser(BaseModel):
    """Authenticated viewer (id, username, role, active) resolved per request."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    username: str
    role: Role
    active: bool = False


class LoginRequest(BaseModel):
    """Credentials for login; username is normalized before lookup."""

    username: str = Field(default="", max_length=255, description="Username")
    password: str = Field(default="", max_length=128, description="Password")


class RegisterRequest(BaseModel):
    """Raw registration form; validated field by field by the registration workflow."""

    model_config = ConfigDict(populate_by_name=True)

    username: str = ""
    email: str = ""
    password: str = ""
    password_confirm: str = Field(default="", alias="passwordConfirm")
