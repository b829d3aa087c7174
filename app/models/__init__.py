from app.models.user import User, UserRole, VerificationStatus
from app.models.wallet import Wallet
from app.models.transaction import Transaction, TransactionStatus, TransactionType
from app.models.deal import Deal, DealStatus
from app.models.pending_transaction import PendingTransaction, PendingStatus, PendingType
from app.models.investment import Investment, InvestmentStatus
from app.models.notification import Notification

__all__ = [
    "User",
    "UserRole",
    "VerificationStatus",
    "Wallet",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "Deal",
    "DealStatus",
    "PendingTransaction",
    "PendingStatus",
    "PendingType",
    "Investment",
    "InvestmentStatus",
    "Notification",
]
