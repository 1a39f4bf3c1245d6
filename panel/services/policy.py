"""
Authorization policy: pure decisions over (viewer, target) pairs.

No I/O. An anonymous viewer (None) fails every check. A failed check is a
False, never an exception; callers decide what the viewer sees.
"""

from panel.schemas.auth import CurrentUser, Role


def is_admin(viewer: CurrentUser | None) -> bool:
    return viewer is not None and viewer.role == Role.ADMIN


def is_self(viewer_id: str | None, target_id: str | None) -> bool:
    return viewer_id is not None and target_id is not None and viewer_id == target_id


def _viewer_id(viewer: CurrentUser | None) -> str | None:
    return viewer.id if viewer is not None else None


def can_view_profile(viewer: CurrentUser | None, owner_id: str) -> bool:
    return is_admin(viewer) or is_self(_viewer_id(viewer), owner_id)


def can_edit_profile_field(viewer: CurrentUser | None, owner_id: str) -> bool:
    """Only the owner edits profile fields; admins may view but not edit."""
    return is_self(_viewer_id(viewer), owner_id)


def can_edit_account_identity(viewer: CurrentUser | None, target_id: str) -> bool:
    """Username and email: the account itself or an admin."""
    return is_admin(viewer) or is_self(_viewer_id(viewer), target_id)


def can_change_role_or_active(viewer: CurrentUser | None, target_id: str) -> bool:
    """Admins only, and never on themselves (no self-demotion or self-deactivation)."""
    return is_admin(viewer) and not is_self(_viewer_id(viewer), target_id)


def can_delete_account(viewer: CurrentUser | None, target_id: str) -> bool:
    return can_change_role_or_active(viewer, target_id)
