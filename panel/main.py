"""FastAPI application entrypoint. No business logic; only wiring, logging and error handlers."""

import logging

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from panel.api import router
from panel.api.flash import error_response
from panel.core.config import settings
from panel.schemas.outcome import Flash
from panel.services.errors import LoginRequired, StoreUnavailableError

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Panel",
    version="0.1.0",
    docs_url="/docs" if settings.APP_ENV == "dev" else None,
    redoc_url=None,
)

app.include_router(router)


@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired) -> RedirectResponse:
    """Anonymous requests to protected pages go to the login page."""
    return RedirectResponse(url="/login", status_code=status.HTTP_302_FOUND)


@app.exception_handler(StoreUnavailableError)
async def store_unavailable_handler(
    request: Request, exc: StoreUnavailableError
) -> JSONResponse:
    """Database failures while rendering a page; writes report theirs as flashes."""
    logger.error("Store unavailable on %s %s: %s", request.method, request.url.path, exc.message)
    return error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        flash=Flash(type="error", message="The service is temporarily unavailable."),
        error="unavailable",
    )


@app.get("/")
def root() -> RedirectResponse:
    """Landing page is the users listing (which itself requires login)."""
    return RedirectResponse(url="/users", status_code=status.HTTP_302_FOUND)
