"""Result values returned by validation, partial updates and registration."""

from typing import Any, Literal

from pydantic import BaseModel, Field

FlashType = Literal["success", "warning", "error"]

ErrorKind = Literal["validation", "conflict", "unauthorized", "not_found", "unavailable"]


class Flash(BaseModel):
    """One-shot notification shown on the next rendered page."""

    type: FlashType
    message: str


class FieldResult(BaseModel):
    """Outcome of validating one field: a typed value, or per-field messages."""

    valid: bool
    value: Any = None
    errors: dict[str, list[str]] = Field(default_factory=dict)

    @classmethod
    def ok(cls, value: Any) -> "FieldResult":
        return cls(valid=True, value=value)

    @classmethod
    def fail(cls, field: str, *messages: str) -> "FieldResult":
        return cls(valid=False, errors={field: list(messages)})


class MutationOutcome(BaseModel):
    """
    What a partial update did, for the web layer to turn into a response.

    next_view tells the caller where to send the viewer: back to the
    detail page, or to the listing when the target is gone.
    """

    ok: bool
    error: ErrorKind | None = None
    field_errors: dict[str, list[str]] = Field(default_factory=dict)
    flash: Flash | None = None
    value: Any = None
    next_view: Literal["detail", "listing"] | None = None


class RegistrationOutcome(BaseModel):
    """Result of the registration workflow."""

    ok: bool
    error: ErrorKind | None = None
    field_errors: dict[str, list[str]] = Field(default_factory=dict)
    flash: Flash | None = None
    account_id: str | None = None
    role: str | None = None
    active: bool | None = None
