"""External Payment Bridge: credit wallets from confirmed gateway payments.

Deposits made through the hosted checkout never pass through the admin queue.
The gateway posts a signed ``charge.success`` event and the wallet is credited
exactly once per payment session; the session id doubles as the ledger row's
``external_reference``, whose unique index backs the idempotency check.
"""
import json
import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

import httpx
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.models import Transaction, TransactionStatus, TransactionType, User
from app.services.errors import InvalidAmount, InvalidMetadata, InvalidSignature, NotFound, PaymentGatewayError, StorageError
from app.services.ledger import append_transaction
from app.services.paystack import create_paystack_checkout, verify_paystack_signature
from app.services.wallet import as_money, credit_wallet, lock_wallets

settings = get_settings()
logger = logging.getLogger(__name__)

CONFIRMED_EVENT = "charge.success"
DEPOSIT_METADATA_TYPE = "wallet_deposit"


@dataclass(frozen=True)
class PaymentConfirmation:
    session_id: str
    user_id: int
    amount: Decimal


def _find_deposit(db: Session, session_id: str) -> Transaction | None:
    return (
        db.query(Transaction)
        .filter(
            Transaction.external_reference == session_id,
            Transaction.tx_type == TransactionType.DEPOSIT,
        )
        .first()
    )


def _metadata_amount(value) -> Decimal:
    try:
        amount = as_money(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidMetadata("Missing or invalid amount")
    # Quantizing a quiet NaN does not raise.
    if not amount.is_finite() or amount <= 0:
        raise InvalidMetadata("Missing or invalid amount")
    return amount


def parse_payment_event(payload: dict) -> PaymentConfirmation | None:
    """Extract the confirmation from a webhook payload; ``None`` for other events."""
    if not isinstance(payload, dict) or payload.get("event") != CONFIRMED_EVENT:
        return None

    data = payload.get("data") or {}
    if not isinstance(data, dict):
        raise InvalidMetadata("Payment data must be an object")
    metadata = data.get("metadata") or {}
    if not isinstance(metadata, dict):
        raise InvalidMetadata("Payment metadata must be an object")
    if metadata.get("type") not in (None, DEPOSIT_METADATA_TYPE):
        return None

    session_id = str(data.get("reference") or "").strip()
    if not session_id:
        raise InvalidMetadata("Missing payment reference")

    try:
        user_id = int(metadata.get("user_id"))
    except (TypeError, ValueError):
        raise InvalidMetadata("Missing or invalid user_id")

    return PaymentConfirmation(session_id=session_id, user_id=user_id, amount=_metadata_amount(metadata.get("amount")))


def verify_payment_event(body: bytes, signature: str | None) -> None:
    if not signature or not verify_paystack_signature(body, signature):
        logger.warning("Rejected payment webhook with a missing or invalid signature")
        raise InvalidSignature()


def on_payment_confirmed(db: Session, session_id: str, user_id: int, amount) -> Transaction:
    """Credit ``user_id`` once for ``session_id``; replays return the original row."""
    session_id = str(session_id or "").strip()
    if not session_id or user_id is None or amount is None:
        raise InvalidMetadata()
    amount = _metadata_amount(amount)

    existing = _find_deposit(db, session_id)
    if existing:
        logger.info("Payment session %s already credited (transaction %s)", session_id, existing.id)
        return existing

    if not db.query(User.id).filter(User.id == user_id).first():
        raise InvalidMetadata("Payment metadata references an unknown user")

    try:
        wallet = lock_wallets(db, [user_id])[user_id]
        credit_wallet(db, wallet, amount)
        row = append_transaction(
            db,
            user_id=user_id,
            tx_type=TransactionType.DEPOSIT,
            amount=amount,
            status=TransactionStatus.COMPLETED,
            reference_id=session_id,
            external_reference=session_id,
            description="Wallet deposit via Paystack",
        )
        db.commit()
    except IntegrityError:
        # Concurrent delivery of the same event won the unique external_reference.
        db.rollback()
        existing = _find_deposit(db, session_id)
        if existing:
            logger.info("Payment session %s credited concurrently; treating as replay", session_id)
            return existing
        logger.exception("Deposit for payment session %s failed", session_id)
        raise StorageError()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Deposit for payment session %s failed", session_id)
        raise StorageError() from exc

    db.refresh(row)
    logger.info("Deposit completed session=%s user_id=%s amount=%s", session_id, user_id, amount)
    return row


def handle_payment_webhook(db: Session, body: bytes, signature: str | None) -> Transaction | None:
    verify_payment_event(body, signature)
    try:
        payload = json.loads(body or b"{}")
    except ValueError:
        raise InvalidMetadata("Webhook body is not valid JSON")
    confirmation = parse_payment_event(payload)
    if confirmation is None:
        logger.info("Ignoring payment webhook event=%s", payload.get("event") if isinstance(payload, dict) else None)
        return None
    return on_payment_confirmed(db, confirmation.session_id, confirmation.user_id, confirmation.amount)


def create_deposit_checkout(user, amount, callback_url: str | None = None) -> str:
    """Start a hosted checkout for a wallet deposit and return its redirect URL."""
    if amount is None:
        raise InvalidAmount()
    amount = as_money(amount)
    minimum = as_money(settings.min_deposit_amount)
    if amount < minimum:
        raise InvalidAmount(f"Minimum deposit is {minimum}")
    if user is None:
        raise NotFound("User not found")

    metadata = {"user_id": str(user.id), "amount": str(amount), "type": DEPOSIT_METADATA_TYPE}
    try:
        response = create_paystack_checkout(
            email=user.email,
            amount_minor=int(amount * 100),
            callback_url=callback_url or settings.frontend_base_url,
            metadata=metadata,
        )
    except httpx.HTTPError as exc:
        logger.warning("Checkout initialization failed user_id=%s error=%s", user.id, exc)
        raise PaymentGatewayError() from exc

    url = (response.get("data") or {}).get("authorization_url")
    if not url:
        logger.warning("Checkout initialization returned no URL user_id=%s", user.id)
        raise PaymentGatewayError("Failed to create checkout session - no URL returned")
    return url
