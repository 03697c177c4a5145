import pytest
from pydantic import ValidationError

from app.config import Settings

REQUIRED = {
    "GEMINI_API_KEY": "AIzaSyExample",
    "DATABASE_URL": "sqlite://",
    "JWT_SECRET": "secret",
}


def test_defaults(monkeypatch):
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    config = Settings(_env_file=None, **REQUIRED)

    assert config.GENERATION_MODEL == "gemini-2.0-flash"
    assert config.GENERATION_API_URL.startswith("https://generativelanguage.googleapis.com/")
    assert config.JWT_EXPIRE_MINUTES == 60 * 24 * 7
    assert config.ENVIRONMENT == "production"
    assert config.debug is False


@pytest.mark.parametrize("key", ["", "sk-not-gemini", "   "])
def test_malformed_api_key_fails(key):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **{**REQUIRED, "GEMINI_API_KEY": key})


def test_missing_api_key_fails(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    values = {k: v for k, v in REQUIRED.items() if k != "GEMINI_API_KEY"}

    with pytest.raises(ValidationError):
        Settings(_env_file=None, **values)


def test_missing_database_url_fails(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    values = {k: v for k, v in REQUIRED.items() if k != "DATABASE_URL"}

    with pytest.raises(ValidationError):
        Settings(_env_file=None, **values)


@pytest.mark.parametrize(
    "environment, debug",
    [("development", True), ("Development", True), ("production", False), ("staging", False), ("", False)],
)
def test_debug_follows_environment(environment, debug):
    config = Settings(_env_file=None, **REQUIRED, ENVIRONMENT=environment)

    assert config.debug is debug
