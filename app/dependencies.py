import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import decode_token
from app.models import User, UserRole
from app.services.access import ensure_admin, ensure_role
from app.services.errors import Unauthorized

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    if credentials is None or not credentials.credentials:
        raise Unauthorized()
    try:
        payload = decode_token(credentials.credentials)
    except jwt.InvalidTokenError:
        raise Unauthorized("Invalid token")
    if payload.get("type") != "access":
        raise Unauthorized("Invalid token")

    try:
        user_id = int(payload.get("sub"))
    except (TypeError, ValueError):
        raise Unauthorized("Invalid token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise Unauthorized("User not found or inactive")
    return user


def require_admin(user: User = Depends(get_current_user)) -> User:
    ensure_admin(user)
    return user


def require_investor(user: User = Depends(get_current_user)) -> User:
    ensure_role(user, UserRole.INVESTOR)
    return user


def require_lender(user: User = Depends(get_current_user)) -> User:
    ensure_role(user, UserRole.LENDER)
    return user
