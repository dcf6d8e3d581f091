"""Tests for prompt construction and the end-to-end tailoring pipeline."""

import json

import pytest

from tailoring.pipeline import tailor_resume
from tailoring.prompts import SYSTEM_PROMPT, build_prompt

JOB = {
    "title": "Python Engineer",
    "company": "Acme",
    "location": "Berlin",
    "description": "Docker and Kubernetes.",
    "requirements": ["Python", "Kubernetes"],
    "preferences": [],
}


def fake_generate(reply, calls=None):
    def generate(system_prompt, user_prompt, api_key, model=None, timeout=None):
        if calls is not None:
            calls.append({"system": system_prompt, "user": user_prompt, "api_key": api_key, "model": model})
        return reply if isinstance(reply, str) else json.dumps(reply)
    return generate


def test_build_prompt_renders_job():
    system, user = build_prompt("  Jane Doe\nPython  ", JOB)
    assert system == SYSTEM_PROMPT
    assert "Title: Python Engineer" in user
    assert "Company: Acme" in user
    assert "- Python\n- Kubernetes" in user
    assert "Preferences:\nNone" in user
    assert user.rstrip().endswith("required JSON schema.")
    assert "Jane Doe\nPython\n" in user


def test_build_prompt_defaults_missing_fields():
    _, user = build_prompt("resume", {"description": "x"})
    assert "Title: Not specified" in user
    assert "Location: Not specified" in user


def test_tailor_resume_scores_tailored_content():
    calls = []
    reply = {
        "tailoredContent": "Jane Doe\nPython engineer shipping Docker services",
        "suggestedChanges": [{"type": "add", "section": "Skills", "description": "Add Docker Compose"}],
        "matchScore": 91,
    }
    result = tailor_resume("Jane Doe\nPython", JOB, "key", model="m", generate=fake_generate(reply, calls))

    assert result.content == "Jane Doe\nPython engineer shipping Docker services"
    assert result.matched_keywords == ["python", "engineer", "docker"]
    assert result.missing_keywords == ["kubernetes"]
    assert result.match_score == 75
    assert result.model_score == 91.0
    assert result.suggested_changes[0] == {
        "type": "addition", "section": "Skills", "description": "Add Docker Compose",
    }
    assert any("Kubernetes" in c["description"] for c in result.suggested_changes)
    assert calls[0]["api_key"] == "key"
    assert calls[0]["model"] == "m"
    assert "Kubernetes" in calls[0]["user"]


def test_tailor_resume_falls_back_to_original_text():
    result = tailor_resume("Jane Doe\nPython", JOB, "key", generate=fake_generate({"tailoredContent": ""}))
    assert result.content == "Jane Doe\nPython"
    assert result.model_score is None


def test_tailor_resume_accepts_plain_text_reply():
    result = tailor_resume("old", JOB, "key", generate=fake_generate("Python Engineer with Docker and Kubernetes"))
    assert result.content == "Python Engineer with Docker and Kubernetes"
    assert result.match_score == 100


def test_tailor_resume_rejects_empty_resume():
    with pytest.raises(ValueError):
        tailor_resume("   ", JOB, "key", generate=fake_generate({}))
