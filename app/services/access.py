from app.models import UserRole
from app.services.errors import Forbidden, Unauthorized


def role_of(user) -> UserRole:
    raw = getattr(user, "role", None)
    try:
        return UserRole(getattr(raw, "value", raw))
    except ValueError:
        raise Forbidden("Unknown role")


def ensure_role(user, *roles: UserRole, message: str | None = None) -> UserRole:
    if user is None:
        raise Unauthorized()
    role = role_of(user)
    if role not in roles:
        allowed = "/".join(r.value for r in roles)
        raise Forbidden(message or f"{allowed.capitalize()} access required")
    return role


def ensure_admin(user) -> None:
    ensure_role(user, UserRole.ADMIN, message="Admin access required")
