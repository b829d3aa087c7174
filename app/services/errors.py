"""Error taxonomy for the wallet ledger and fund-movement protocol.

Every error is an ``HTTPException`` so routes can let them propagate untouched;
``code`` is echoed in the ``X-Error-Code`` header for clients that branch on it.
"""
from fastapi import HTTPException


class LedgerError(HTTPException):
    status_code = 400
    code = "LEDGER_ERROR"
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(
            status_code=self.status_code,
            detail=self.message,
            headers={"X-Error-Code": self.code},
        )


class Unauthorized(LedgerError):
    status_code = 401
    code = "UNAUTHORIZED"
    default_message = "Not authenticated"


class Forbidden(LedgerError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Admin access required"


class NotFound(LedgerError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class InvalidState(LedgerError):
    status_code = 409
    code = "INVALID_STATE"
    default_message = "Request has already been decided"


class InsufficientBalance(LedgerError):
    status_code = 400
    code = "INSUFFICIENT_BALANCE"
    default_message = "Insufficient balance"


class NoInvestments(LedgerError):
    status_code = 409
    code = "NO_INVESTMENTS"
    default_message = "Deal has no completed investments to distribute to"


class InvalidAmount(LedgerError):
    status_code = 400
    code = "INVALID_AMOUNT"
    default_message = "Amount must be greater than zero"


class InvalidMetadata(LedgerError):
    status_code = 400
    code = "INVALID_METADATA"
    default_message = "Invalid metadata"


class InvalidSignature(LedgerError):
    status_code = 401
    code = "INVALID_SIGNATURE"
    default_message = "Invalid signature"


class WalletLocked(LedgerError):
    status_code = 423
    code = "WALLET_LOCKED"
    default_message = "Wallet is locked"


class PaymentGatewayError(LedgerError):
    status_code = 502
    code = "PAYMENT_GATEWAY_ERROR"
    default_message = "Payment initialization failed"


class StorageError(LedgerError):
    status_code = 503
    code = "STORAGE_ERROR"
    default_message = "Storage failure, no changes were applied"
