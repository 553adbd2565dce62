from collections.abc import Callable

from fastapi import Depends, HTTPException, status

from app.core.config import settings
from app.core.security_current import get_current_user
from app.models.user import User

ALL_PERMISSIONS = "all"


def require_roles(*allowed_roles: str) -> Callable[[User], User]:
    """
    Gate a route on the caller's role. Users holding the ``all`` permission pass
    every gate.
    """
    normalized_allowed = {role.strip() for role in allowed_roles if role.strip()}
    if not normalized_allowed:
        raise ValueError("At least one allowed role is required")

    def dependency(user: User = Depends(get_current_user)) -> User:
        permissions = {str(item).strip().lower() for item in (user.permissions or [])}
        if ALL_PERMISSIONS in permissions:
            return user
        if (user.role or "").strip() not in normalized_allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role for this action",
            )
        return user

    return dependency


def require_admin() -> Callable[[User], User]:
    return require_roles(settings.admin_role)
