from decimal import Decimal
from functools import lru_cache
import json
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors_origins(value: str) -> list[str]:
    if not value:
        return []

    parsed: list[str]
    raw = value.strip()
    if raw.startswith("["):
        try:
            items = json.loads(raw)
            parsed = [str(item).strip() for item in items if str(item).strip()]
        except (TypeError, ValueError):
            parsed = []
    else:
        parsed = [origin.strip() for origin in raw.split(",") if origin.strip()]

    # Preserve order and remove duplicates.
    return list(dict.fromkeys(parsed))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = "Capital Marketplace"
    environment: str = "development"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Security
    secret_key: str
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 7
    password_bcrypt_rounds: int = 12

    # Database
    database_url: str
    db_pool_size: int = 5
    db_max_overflow: int = 5
    db_pool_timeout: int = 15
    db_pool_recycle: int = 1200
    db_pool_pre_ping: bool = True

    # Paystack (wallet deposits through hosted checkout)
    paystack_secret_key: str
    paystack_webhook_secret: Optional[str] = None
    paystack_base_url: str = "https://api.paystack.co"
    payment_currency: str = "USD"
    min_deposit_amount: Decimal = Decimal("100")

    # Frontend URLs (checkout callback fallback)
    frontend_base_url: str = "http://localhost:3000"

    # CORS
    cors_origins: str = "http://localhost:3000"
    auto_create_tables: bool = False

    # Ops: bootstrap admin users (comma-separated emails). Useful when the platform
    # doesn't provide a shell/psql access on free plans.
    bootstrap_admin_emails: str = ""


@lru_cache
def get_settings() -> Settings:
    return Settings()
