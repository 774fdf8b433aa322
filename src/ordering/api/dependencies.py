"""Request-scoped dependencies: the authenticated principal."""

from fastapi import Depends, Header

from shared.errors import AdminRequired, Unauthenticated
from shared.principal import Principal

_TRUTHY = {"1", "true", "yes", "on"}


def current_principal(
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
    x_user_verified: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> Principal:
    """Build the caller from the headers set by the upstream auth layer."""
    if not x_user_id:
        raise Unauthenticated()
    return Principal(
        user_id=x_user_id,
        email=x_user_email,
        is_verified=(x_user_verified or "").strip().lower() in _TRUTHY,
        is_admin=(x_user_role or "").strip().lower() == "admin",
    )


def admin_principal(principal: Principal = Depends(current_principal)) -> Principal:
    if not principal.is_admin:
        raise AdminRequired()
    return principal
