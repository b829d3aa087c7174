"""Seed a local database with one admin, investor and lender plus an approved deal."""
from decimal import Decimal

from app.core.database import SessionLocal
from app.core.security import hash_password
from app.models import Deal, DealStatus, User, UserRole, VerificationStatus
from app.services.wallet import ensure_wallet, set_balance

DEMO_PASSWORD = "demo-password"

DEMO_USERS = [
    {"email": "admin@example.com", "full_name": "Demo Admin", "role": UserRole.ADMIN, "balance": Decimal("0")},
    {"email": "investor@example.com", "full_name": "Demo Investor", "role": UserRole.INVESTOR, "balance": Decimal("250000")},
    {"email": "lender@example.com", "full_name": "Demo Lender", "role": UserRole.LENDER, "balance": Decimal("20000")},
]


def _get_or_create_user(db, entry) -> User:
    user = db.query(User).filter(User.email == entry["email"]).first()
    if user:
        return user
    user = User(
        email=entry["email"],
        full_name=entry["full_name"],
        hashed_password=hash_password(DEMO_PASSWORD),
        role=entry["role"],
        verification_status=VerificationStatus.VERIFIED,
        onboarding_completed=True,
    )
    db.add(user)
    db.flush()
    wallet = ensure_wallet(db, user.id)
    set_balance(db, wallet, entry["balance"])
    return user


def main():
    db = SessionLocal()
    try:
        users = {entry["role"]: _get_or_create_user(db, entry) for entry in DEMO_USERS}
        lender = users[UserRole.LENDER]
        if not db.query(Deal).filter(Deal.lender_id == lender.id).first():
            db.add(
                Deal(
                    lender_id=lender.id,
                    title="Bridge loan, 12 Harbour Street",
                    loan_amount=Decimal("100000"),
                    interest_rate=Decimal("12"),
                    term_months=12,
                    ltv=Decimal("65"),
                    property_type="residential",
                    property_location="Harbour Street",
                    status=DealStatus.APPROVED,
                )
            )
        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    main()
