"""Panel routes."""

from fastapi import APIRouter

from panel.api import auth, health, profile, users

router = APIRouter()
router.include_router(health.router, prefix="/health", tags=["health"])
router.include_router(auth.router, tags=["auth"])
# Profile routes go first: /users/{username}/profile must not be read as an account field.
router.include_router(profile.router, prefix="/users", tags=["profile"])
router.include_router(users.router, prefix="/users", tags=["users"])
