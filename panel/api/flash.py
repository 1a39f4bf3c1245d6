"""One-shot flash notifications carried in a signed cookie, and outcome -> response mapping."""

from urllib.parse import quote

import jwt
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse, RedirectResponse

from panel.core.config import settings
from panel.core.security import create_flash_token, decode_flash_token
from panel.schemas.outcome import Flash, MutationOutcome
from panel.schemas.users import ErrorResponse

LISTING_URL = "/users"


def detail_url(username: str) -> str:
    return f"/users/{quote(username)}"


def set_flash(response: Response, flash: Flash) -> None:
    response.set_cookie(
        settings.FLASH_COOKIE_NAME,
        create_flash_token(flash.type, flash.message),
        max_age=settings.FLASH_EXPIRE_SECONDS,
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
        path="/",
    )


def pop_flash(request: Request, response: Response) -> Flash | None:
    """Read the pending flash, if any, and clear it so it shows only once."""
    token = request.cookies.get(settings.FLASH_COOKIE_NAME)
    if not token:
        return None
    response.delete_cookie(settings.FLASH_COOKIE_NAME, path="/")
    try:
        payload = decode_flash_token(token)
        return Flash(type=payload.get("type"), message=payload.get("message"))
    except (jwt.PyJWTError, ValueError):
        # Tampered, stale or malformed: drop it.
        return None


def redirect_with_flash(
    url: str,
    flash: Flash | None = None,
    status_code: int = status.HTTP_303_SEE_OTHER,
) -> RedirectResponse:
    response = RedirectResponse(url=url, status_code=status_code)
    if flash is not None:
        set_flash(response, flash)
    return response


def error_response(
    status_code: int,
    field_errors: dict[str, list[str]] | None = None,
    flash: Flash | None = None,
    error: str | None = None,
) -> JSONResponse:
    body = ErrorResponse(error=error, field_errors=field_errors or {}, flash=flash)
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


def outcome_response(outcome: MutationOutcome, detail: str) -> Response:
    """
    Field errors re-render the form (400). Everything else redirects with the
    flash: to the detail page, or to the listing when the target is gone.
    """
    if outcome.field_errors:
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            field_errors=outcome.field_errors,
            flash=outcome.flash,
            error=outcome.error,
        )
    url = LISTING_URL if outcome.next_view == "listing" else detail
    return redirect_with_flash(url, outcome.flash)
