"""Registration, login/logout, and auth dependencies (get_store, get_viewer, require_viewer)."""

import logging
from datetime import timedelta
from typing import Annotated

import jwt
from fastapi import APIRouter, Depends, Form, Request, Response, status
from sqlalchemy.orm import Session

from panel.api.flash import LISTING_URL, error_response, pop_flash, redirect_with_flash
from panel.core.config import settings
from panel.core.database import get_db
from panel.core.security import create_session_token, decode_session_token
from panel.schemas.auth import CurrentUser, LoginRequest, RegisterRequest
from panel.schemas.outcome import Flash
from panel.schemas.users import ErrorResponse
from panel.services.authentication import (
    authenticate,
    close_session,
    open_session,
    resolve_viewer,
)
from panel.services.errors import LoginRequired
from panel.services.registration import register
from panel.services.store import AccountStore

logger = logging.getLogger(__name__)

router = APIRouter()

LOGIN_URL = "/login"
INVALID_CREDENTIALS = "Invalid username or password."


def get_store(db: Annotated[Session, Depends(get_db)]) -> AccountStore:
    """Dependency: entity store bound to the request's DB session."""
    return AccountStore(db)


def _session_id_from(request: Request) -> str | None:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        return None
    try:
        return decode_session_token(token)
    except jwt.PyJWTError:
        return None


def get_viewer(
    request: Request,
    store: Annotated[AccountStore, Depends(get_store)],
) -> CurrentUser | None:
    """Dependency: the authenticated viewer, or None for anonymous requests."""
    return resolve_viewer(store, _session_id_from(request))


def require_viewer(
    viewer: Annotated[CurrentUser | None, Depends(get_viewer)],
) -> CurrentUser:
    """Dependency: require a viewer. Anonymous requests are sent to the login page."""
    if viewer is None:
        raise LoginRequired()
    return viewer


@router.get("/register", response_model=ErrorResponse)
def register_page(
    request: Request,
    response: Response,
    viewer: Annotated[CurrentUser | None, Depends(get_viewer)],
):
    if viewer is not None:
        return redirect_with_flash("/", status_code=status.HTTP_302_FOUND)
    return ErrorResponse(flash=pop_flash(request, response))


@router.post("/register")
def post_register(
    username: Annotated[str, Form()] = "",
    email: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
    password_confirm: Annotated[str, Form(alias="passwordConfirm")] = "",
    viewer: CurrentUser | None = Depends(get_viewer),
    store: AccountStore = Depends(get_store),
) -> Response:
    """
    Create an account and its profile. The first account ever becomes an
    active admin. On success, redirects to the login page with a notification.
    """
    if viewer is not None:
        return redirect_with_flash("/", status_code=status.HTTP_302_FOUND)
    payload = RegisterRequest(
        username=username,
        email=email,
        password=password,
        password_confirm=password_confirm,
    )
    outcome = register(store, payload)
    if outcome.ok:
        return redirect_with_flash(LOGIN_URL, outcome.flash)
    if outcome.field_errors:
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            field_errors=outcome.field_errors,
            error=outcome.error,
        )
    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        flash=outcome.flash,
        error=outcome.error,
    )


@router.get("/login", response_model=ErrorResponse)
def login_page(
    request: Request,
    response: Response,
    viewer: Annotated[CurrentUser | None, Depends(get_viewer)],
):
    if viewer is not None:
        return redirect_with_flash(LISTING_URL, status_code=status.HTTP_302_FOUND)
    return ErrorResponse(flash=pop_flash(request, response))


@router.post("/login")
def login(
    username: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
    store: AccountStore = Depends(get_store),
) -> Response:
    """
    Authenticate with username and password; sets the session cookie and
    redirects to the users listing.
    """
    body = LoginRequest(username=username[:255], password=password[:128])
    account = authenticate(
        store,
        body.username,
        body.password,
        require_active=settings.REQUIRE_ACTIVE_LOGIN,
    )
    if account is None:
        return error_response(
            status.HTTP_400_BAD_REQUEST,
            flash=Flash(type="error", message=INVALID_CREDENTIALS),
            error="unauthorized",
        )
    session = open_session(
        store, account.id, timedelta(minutes=settings.SESSION_EXPIRE_MINUTES)
    )
    response = redirect_with_flash(LISTING_URL)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        create_session_token(session.id, session.expires_at),
        max_age=settings.SESSION_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.COOKIE_SECURE,
        path="/",
    )
    return response


@router.post("/logout")
def logout(
    request: Request,
    store: Annotated[AccountStore, Depends(get_store)],
) -> Response:
    session_id = _session_id_from(request)
    if session_id:
        close_session(store, session_id)
    response = redirect_with_flash(
        LOGIN_URL, Flash(type="success", message="You have been logged out.")
    )
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return response
