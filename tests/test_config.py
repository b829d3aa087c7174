from decimal import Decimal

from app.core.config import Settings, get_settings, parse_cors_origins


def test_parse_cors_origins_csv():
    value = "http://localhost:5173, http://localhost:3000"
    assert parse_cors_origins(value) == [
        "http://localhost:5173",
        "http://localhost:3000",
    ]


def test_parse_cors_origins_json_list():
    value = '["http://localhost:5173", "https://marketplace.example.com"]'
    assert parse_cors_origins(value) == [
        "http://localhost:5173",
        "https://marketplace.example.com",
    ]


def test_parse_cors_origins_deduplicates():
    value = "http://localhost:5173,http://localhost:5173"
    assert parse_cors_origins(value) == ["http://localhost:5173"]


def test_parse_cors_origins_empty():
    assert parse_cors_origins("") == []


def test_settings_read_from_environment():
    settings = get_settings()
    assert settings.secret_key == "test-secret"
    assert settings.database_url.startswith("sqlite")
    assert settings.min_deposit_amount == Decimal("100")


def test_settings_override_min_deposit(monkeypatch):
    monkeypatch.setenv("MIN_DEPOSIT_AMOUNT", "250.50")
    assert Settings().min_deposit_amount == Decimal("250.50")
