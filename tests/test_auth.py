import jwt
import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.core.errors import InvalidInput, Unauthorized
from app.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from app.main import create_app
from app.services.auth_service import AuthService

SECRET = "unit-test-secret-with-enough-length"


def test_password_hashing():
    hashed = hash_password("secret123")

    assert hashed != "secret123"
    assert verify_password("secret123", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("secret123", "not-a-bcrypt-hash")


def test_token_round_trip():
    token = create_access_token(5, SECRET)

    assert decode_access_token(token, SECRET)["sub"] == "5"


def test_expired_token_is_rejected():
    token = create_access_token(5, SECRET, expires_minutes=-1)

    with pytest.raises(jwt.ExpiredSignatureError):
        decode_access_token(token, SECRET)


def test_token_signed_with_other_secret_is_rejected():
    token = jwt.encode({"sub": "5", "exp": 9999999999}, "other-secret", algorithm="HS256")

    with pytest.raises(jwt.InvalidSignatureError):
        decode_access_token(token, SECRET)


class TestAuthService:
    @pytest.fixture
    def service(self, database):
        return AuthService(database, jwt_secret=SECRET)

    def test_register_then_login(self, service):
        user, token = service.register("alice", "Alice@Mail.com", "secret123")

        assert user.email == "alice@mail.com"
        assert service.verify_token(token).id == user.id
        assert decode_access_token(token, SECRET)["sub"] == str(user.id)

        logged_in, login_token = service.login("alice@mail.com", "secret123")
        assert logged_in.id == user.id
        assert service.verify_token(login_token).username == "alice"

    def test_from_settings_uses_configured_secret(self, database):
        custom = settings.model_copy(update={"JWT_SECRET": "per-app-secret-with-enough-length"})
        service = AuthService.from_settings(database, custom)

        user, token = service.register("alice", "alice@mail.com", "secret123")

        assert decode_access_token(token, "per-app-secret-with-enough-length")["sub"] == str(user.id)
        with pytest.raises(Unauthorized):
            AuthService(database, jwt_secret=SECRET).verify_token(token)


    def test_duplicate_email_is_invalid_input(self, service):
        service.register("alice", "alice@mail.com", "secret123")

        with pytest.raises(InvalidInput) as exc_info:
            service.register("alice2", "alice@mail.com", "secret123")

        assert exc_info.value.errors[0]["field"] == "email"

    def test_duplicate_username_is_invalid_input(self, service):
        service.register("alice", "alice@mail.com", "secret123")

        with pytest.raises(InvalidInput) as exc_info:
            service.register("alice", "other@mail.com", "secret123")

        assert exc_info.value.errors[0]["field"] == "username"

    def test_wrong_password(self, service):
        service.register("alice", "alice@mail.com", "secret123")

        with pytest.raises(Unauthorized) as exc_info:
            service.login("alice@mail.com", "nope")

        assert exc_info.value.message == "Invalid credentials"

    @pytest.mark.parametrize("token", [None, "", "garbage"])
    def test_verify_token_rejects(self, service, token):
        with pytest.raises(Unauthorized):
            service.verify_token(token)

    def test_verify_token_for_unknown_user(self, service):
        with pytest.raises(Unauthorized):
            service.verify_token(service.issue_token(999))

    def test_verify_expired_token(self, service):
        user, _ = service.register("alice", "alice@mail.com", "secret123")

        with pytest.raises(Unauthorized):
            service.verify_token(service.issue_token(user.id, expires_minutes=-5))


def test_register_login_me_over_http(client):
    registered = client.post(
        "/api/auth/register",
        json={"username": "dave", "email": "dave@mail.com", "password": "secret123"},
    )
    assert registered.status_code == 201
    assert registered.json()["user"]["username"] == "dave"
    assert "hashedPassword" not in registered.json()["user"]

    login = client.post("/api/auth/login", json={"email": "dave@mail.com", "password": "secret123"})
    assert login.status_code == 200
    token = login.json()["token"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "dave@mail.com"


def test_register_validation_errors(client):
    response = client.post(
        "/api/auth/register",
        json={"username": "ed", "email": "not-an-email", "password": "123"},
    )

    assert response.status_code == 400
    fields = {error["field"] for error in response.json()["errors"]}
    assert fields == {"username", "email", "password"}


def test_login_with_bad_credentials(client):
    response = client.post("/api/auth/login", json={"email": "nobody@mail.com", "password": "x"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid credentials"


def test_me_requires_token(client):
    assert client.get("/api/auth/me").status_code == 401


def test_app_signs_tokens_with_its_own_settings(database, generator):
    custom = settings.model_copy(update={"JWT_SECRET": "app-specific-secret-with-enough-length"})
    app = create_app(app_settings=custom, database=database, generator=generator)

    with TestClient(app) as client:
        token = client.post(
            "/api/auth/register",
            json={"username": "frank", "email": "frank@mail.com", "password": "secret123"},
        ).json()["token"]
        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert me.status_code == 200
    assert decode_access_token(token, "app-specific-secret-with-enough-length")["sub"]
    with pytest.raises(jwt.InvalidSignatureError):
        decode_access_token(token, settings.JWT_SECRET)
