"""Shared fixtures: an app over in-memory SQLite with a fake generation API."""
import os

# required settings must exist before app.config is imported
os.environ["GEMINI_API_KEY"] = "AIzaSyTestKey0000000000000000000000000"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret-with-enough-length-for-hs256"
os.environ["ENVIRONMENT"] = "development"

from typing import List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient

from app.database import Database
from app.main import create_app
from app.models.chat import ChatKind
from app.services.generation_client import GenerationResult


class FakeGenerator:
    """Stands in for GenerationClient and records every call."""

    model = "gemini-test"

    def __init__(self):
        self.calls: List[Tuple[ChatKind, str]] = []
        self.error: Optional[Exception] = None

    def generate(self, kind: ChatKind, prompt: str) -> GenerationResult:
        self.calls.append((kind, prompt))
        if self.error is not None:
            raise self.error
        image_url = None
        if kind == ChatKind.IMAGE:
            image_url = "https://picsum.photos/512/512?random=1700000000000"
        return GenerationResult(
            response_text=f"Answer to: {prompt}",
            model_name=self.model,
            image_url=image_url,
            tokens=12,
        )


@pytest.fixture
def database():
    db = Database("sqlite://")
    db.connect()
    db.init_db()
    yield db
    db.dispose()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture
def app(database, generator):
    return create_app(database=database, generator=generator)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def register(client: TestClient, username: str) -> dict:
    response = client.post(
        "/api/auth/register",
        json={"username": username, "email": f"{username}@mail.com", "password": "secret123"},
    )
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def alice_headers(client):
    token = register(client, "alice")["token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def bob_headers(client):
    token = register(client, "bob")["token"]
    return {"Authorization": f"Bearer {token}"}
