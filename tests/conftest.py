"""Shared fixtures: isolated databases, a signed-in caller and a fake Gemini endpoint."""

import json

import pytest
import requests
from fastapi.testclient import TestClient

from auth import AuthUser, get_current_user, upsert_user


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        return self.payload


def gemini_payload(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}, "finishReason": "STOP"}]}


@pytest.fixture
def env(tmp_path, monkeypatch):
    """Point every setting at a throwaway directory and disable external services."""
    monkeypatch.setenv("BASE_DIR", str(tmp_path))
    monkeypatch.setenv("GEMINI_API_KEY", "test-key")
    for name in (
        "DOCUMENTS_DATABASE_URL",
        "USERS_DATABASE_URL",
        "SUPABASE_URL",
        "SUPABASE_KEY",
        "SUPABASE_SERVICE_KEY",
        "APP_URL",
        "MAX_UPLOAD_MB",
    ):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


@pytest.fixture
def current_user():
    """Mutable holder so a test can switch the caller mid-test."""
    return {"user": AuthUser(id="user-1", email="jane@example.com")}


@pytest.fixture
def client(env, current_user):
    from app import app

    def signed_in():
        upsert_user(current_user["user"])
        return current_user["user"]

    app.dependency_overrides[get_current_user] = signed_in
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(env):
    from app import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def fake_gemini(monkeypatch):
    """Replace the Gemini HTTP call; set `reply` (dict or str) or `status` before use."""
    state = {"reply": {"tailoredContent": "", "suggestedChanges": [], "matchScore": 50}, "status": 200, "calls": []}

    def fake_post(url, headers=None, json=None, timeout=None):
        state["calls"].append({"url": url, "headers": headers, "json": json, "timeout": timeout})
        reply = state["reply"]
        text = reply if isinstance(reply, str) else _dumps(reply)
        return FakeResponse(gemini_payload(text), status_code=state["status"])

    monkeypatch.setattr("tailoring.llm_gemini.requests.post", fake_post)
    return state


def _dumps(obj):
    return json.dumps(obj)


RESUME_TEXT = """Jane Doe
jane.doe@example.com | +1 650-253-0000

SUMMARY
Software developer building web services.

EXPERIENCE
Software Developer | Tech Corp | 2020-2023
Built internal billing tools in Perl for finance
Developed REST services in Python and Flask
Collaborated with cross-functional teams

SKILLS
Python, Flask, Git, SQL
"""


@pytest.fixture
def resume_text():
    return RESUME_TEXT


@pytest.fixture
def job_payload():
    return {
        "title": "Backend Engineer",
        "company": "Acme Corp.",
        "location": "Remote",
        "description": "Build Python services on Kubernetes with Docker.",
        "requirements": ["Python", "Kubernetes"],
        "preferences": ["Kafka"],
        "salary": {"min": 120000, "max": 150000, "currency": "USD"},
    }
