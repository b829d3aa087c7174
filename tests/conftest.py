import os
from decimal import Decimal


def _set_test_env() -> None:
    defaults = {
        "APP_NAME": "Capital Marketplace Test",
        "ENVIRONMENT": "test",
        "SECRET_KEY": "test-secret",
        "ACCESS_TOKEN_EXPIRE_MINUTES": "30",
        "REFRESH_TOKEN_EXPIRE_DAYS": "7",
        "PASSWORD_BCRYPT_ROUNDS": "4",
        "AUTO_CREATE_TABLES": "false",
        "DATABASE_URL": "sqlite+pysqlite:///:memory:",
        "PAYSTACK_SECRET_KEY": "sk_test_xxx",
        "PAYSTACK_WEBHOOK_SECRET": "whsec_test_xxx",
        "PAYSTACK_BASE_URL": "https://paystack.test",
        "MIN_DEPOSIT_AMOUNT": "100",
        "FRONTEND_BASE_URL": "http://localhost:3000",
        "BOOTSTRAP_ADMIN_EMAILS": "",
        "CORS_ORIGINS": "http://localhost:5173,http://localhost:3000",
    }
    for key, value in defaults.items():
        os.environ.setdefault(key, value)


_set_test_env()

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.database import Base, get_db  # noqa: E402
from app.core.security import create_access_token  # noqa: E402
from app.models import Deal, DealStatus, User, UserRole, VerificationStatus, Wallet  # noqa: E402


@pytest.fixture
def db_session():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client(db_session):
    from app.main import app
    from app.middlewares.rate_limit import limiter

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    limiter.enabled = False
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        limiter.enabled = True
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db_session):
    counter = {"n": 0}

    def _make(role: UserRole = UserRole.INVESTOR, balance="0", **fields) -> User:
        counter["n"] += 1
        user = User(
            email=fields.pop("email", f"{role.value}{counter['n']}@example.com"),
            full_name=fields.pop("full_name", f"{role.value.title()} {counter['n']}"),
            hashed_password="not-a-real-hash",
            role=role,
            verification_status=fields.pop("verification_status", VerificationStatus.VERIFIED),
            onboarding_completed=fields.pop("onboarding_completed", True),
            **fields,
        )
        db_session.add(user)
        db_session.flush()
        db_session.add(Wallet(user_id=user.id, balance=Decimal(str(balance)), is_locked=False))
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def make_deal(db_session):
    def _make(lender: User, loan_amount="100000", status: DealStatus = DealStatus.APPROVED, **fields) -> Deal:
        deal = Deal(
            lender_id=lender.id,
            title=fields.pop("title", "Bridge loan on Harbour Street"),
            loan_amount=Decimal(str(loan_amount)),
            interest_rate=Decimal(str(fields.pop("interest_rate", "12"))),
            term_months=fields.pop("term_months", 12),
            ltv=Decimal(str(fields.pop("ltv", "65"))),
            property_type=fields.pop("property_type", "residential"),
            property_location=fields.pop("property_location", "12 Harbour Street"),
            status=status,
            **fields,
        )
        db_session.add(deal)
        db_session.commit()
        db_session.refresh(deal)
        return deal

    return _make


def auth_headers(user: User) -> dict:
    token = create_access_token(str(user.id), user.role.value)
    return {"Authorization": f"Bearer {token}"}


def balance_of(db_session, user: User) -> Decimal:
    db_session.expire_all()
    wallet = db_session.query(Wallet).filter(Wallet.user_id == user.id).first()
    return Decimal(str(wallet.balance)).quantize(Decimal("0.01"))
