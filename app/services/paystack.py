import hashlib
import hmac
import httpx
from app.core.config import get_settings


settings = get_settings()


def create_paystack_checkout(email: str, amount_minor: int, callback_url: str, metadata: dict) -> dict:
    payload = {
        "email": email,
        "amount": amount_minor,
        "currency": settings.payment_currency,
        "callback_url": callback_url,
        "metadata": metadata,
    }
    headers = {"Authorization": f"Bearer {settings.paystack_secret_key}", "Content-Type": "application/json"}
    base_url = str(settings.paystack_base_url).rstrip("/")
    with httpx.Client(timeout=15) as client:
        response = client.post(f"{base_url}/transaction/initialize", json=payload, headers=headers)
        response.raise_for_status()
        return response.json()


def verify_paystack_signature(body: bytes, signature: str) -> bool:
    if not signature:
        return False
    secret = settings.paystack_webhook_secret or settings.paystack_secret_key
    computed = hmac.new(secret.encode(), body, hashlib.sha512).hexdigest()
    return hmac.compare_digest(computed, signature)
