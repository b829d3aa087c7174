import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from jwt import InvalidTokenError
from sqlalchemy.orm import Session
from app.core.security import hash_password, verify_password, create_access_token, create_refresh_token, decode_token
from app.core.database import get_db
from app.middlewares.rate_limit import limiter
from app.models import User, UserRole, VerificationStatus
from app.schemas.auth import RegisterRequest, LoginRequest, TokenPair, RefreshRequest, OnboardingRequest
from app.schemas.user import UserOut
from app.dependencies import get_current_user
from app.services.wallet import ensure_wallet

router = APIRouter()
logger = logging.getLogger(__name__)


def _token_pair(user: User) -> TokenPair:
    role = user.role.value if hasattr(user.role, "value") else str(user.role)
    return TokenPair(
        access_token=create_access_token(str(user.id), role),
        refresh_token=create_refresh_token(str(user.id), role),
    )


@router.post("/register", response_model=UserOut)
@limiter.limit("10/minute")
def register(request: Request, payload: RegisterRequest, db: Session = Depends(get_db)):
    email = payload.email.lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise HTTPException(status_code=400, detail="Email already registered")

    # Role is provisional until onboarding picks investor or lender.
    user = User(
        email=email,
        full_name=payload.full_name.strip(),
        hashed_password=hash_password(payload.password),
        role=UserRole.INVESTOR,
        verification_status=VerificationStatus.PENDING,
        onboarding_completed=False,
    )
    db.add(user)
    db.flush()
    ensure_wallet(db, user.id)
    db.commit()
    db.refresh(user)
    logger.info("Registered user id=%s", user.id)
    return user


@router.post("/login", response_model=TokenPair)
@limiter.limit("10/minute")
def login(request: Request, payload: LoginRequest, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == payload.email.lower()).first()
    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=403, detail="User is inactive")
    return _token_pair(user)


@router.post("/refresh", response_model=TokenPair)
@limiter.limit("30/minute")
def refresh(request: Request, payload: RefreshRequest, db: Session = Depends(get_db)):
    try:
        decoded = decode_token(payload.refresh_token)
    except InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid refresh token")
    if decoded.get("type") != "refresh":
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    try:
        user_id = int(decoded.get("sub"))
    except (TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid refresh token")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return _token_pair(user)


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user


@router.post("/onboarding", response_model=UserOut)
def complete_onboarding(payload: OnboardingRequest, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    if user.onboarding_completed:
        raise HTTPException(status_code=409, detail="Onboarding already completed")
    if user.role == UserRole.ADMIN:
        raise HTTPException(status_code=400, detail="Admins do not onboard")

    user.role = UserRole(payload.role)
    user.company_name = (payload.company_name or "").strip() or None
    user.phone = (payload.phone or "").strip() or None
    user.onboarding_completed = True
    db.commit()
    db.refresh(user)
    logger.info("User %s onboarded as %s", user.id, user.role.value)
    return user
