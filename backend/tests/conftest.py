"""
Shared fixtures: fabricated settings, a recording LLM stub, and an app wired
with both. No test talks to a real model.
"""
import asyncio
import json

import pytest
from fastapi.testclient import TestClient

from app import create_app
from src.core.config import Settings
from src.services.storage import InMemoryStorage


ALLOWED_ORIGIN = "http://localhost:5173"


class StubLLM:
    """Records every call and returns a fixed reply (or fails)."""

    def __init__(self, text="", delay=0.0, error=None):
        self.text = text
        self.delay = delay
        self.error = error
        self.calls = []

    async def generate_text(self, system_prompt, user_prompt, **kwargs):
        self.calls.append({"system": system_prompt, "user": user_prompt})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return {"text": self.text, "usage": {}, "model": "stub"}


def qa_reply(n, fenced=False):
    payload = {
        "questions": [
            {"question": f"Question {i}?", "answer": f"Answer {i}."} for i in range(1, n + 1)
        ]
    }
    text = json.dumps(payload)
    return f"```json\n{text}\n```" if fenced else text


@pytest.fixture
def settings(tmp_path):
    return Settings(
        jwt_secret="test-secret",
        allowed_origins=(ALLOWED_ORIGIN, "https://interview-prep.example.com"),
        ai_timeout_seconds=1.0,
        uploads_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def llm():
    return StubLLM(text=qa_reply(5))


@pytest.fixture
def app(settings, storage, llm):
    return create_app(settings, storage=storage, llm_client=llm)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def user(client):
    resp = client.post(
        "/api/auth/register",
        json={"name": "Ada", "email": "ada@example.com", "password": "s3cret-pass"},
    )
    assert resp.status_code == 201
    return resp.json()


@pytest.fixture
def auth_headers(user):
    return {"Authorization": f"Bearer {user['token']}"}
