"""Tests for the Gemini client and response parsing."""

import json

import pytest
import requests

from conftest import FakeResponse, gemini_payload
from tailoring import llm_gemini
from tailoring.llm_gemini import TailoringError, llm_tailor_gemini, parse_tailoring_response


def test_request_shape(monkeypatch):
    calls = []

    def fake_post(url, headers=None, json=None, timeout=None):
        calls.append((url, headers, json, timeout))
        return FakeResponse(gemini_payload('{"tailoredContent": "ok"}'))

    monkeypatch.setattr(llm_gemini.requests, "post", fake_post)
    raw = llm_tailor_gemini("system text", "user text", "secret", model="gemini-test", timeout=5)

    assert raw == '{"tailoredContent": "ok"}'
    url, headers, payload, timeout = calls[0]
    assert url.endswith("/models/gemini-test:generateContent")
    assert headers["x-goog-api-key"] == "secret"
    assert payload["systemInstruction"]["parts"][0]["text"] == "system text"
    assert payload["contents"][0]["parts"][0]["text"] == "user text"
    assert payload["generationConfig"]["responseMimeType"] == "application/json"
    assert timeout == 5


def test_missing_key_raises():
    with pytest.raises(TailoringError, match="not configured"):
        llm_tailor_gemini("s", "u", None)


def test_http_error_raises(monkeypatch):
    monkeypatch.setattr(llm_gemini.requests, "post", lambda *a, **k: FakeResponse({}, status_code=500))
    with pytest.raises(TailoringError, match="try again later"):
        llm_tailor_gemini("s", "u", "key")


def test_transport_error_raises(monkeypatch):
    def boom(*args, **kwargs):
        raise requests.exceptions.ConnectionError("unreachable")

    monkeypatch.setattr(llm_gemini.requests, "post", boom)
    with pytest.raises(TailoringError):
        llm_tailor_gemini("s", "u", "key")


def test_blocked_prompt_raises(monkeypatch):
    blocked = {"candidates": [], "promptFeedback": {"blockReason": "SAFETY"}}
    monkeypatch.setattr(llm_gemini.requests, "post", lambda *a, **k: FakeResponse(blocked))
    with pytest.raises(TailoringError, match="SAFETY"):
        llm_tailor_gemini("s", "u", "key")


def test_multi_part_text_is_joined(monkeypatch):
    body = {"candidates": [{"content": {"parts": [{"text": '{"a": '}, {"text": "1}"}]}}]}
    monkeypatch.setattr(llm_gemini.requests, "post", lambda *a, **k: FakeResponse(body))
    assert llm_tailor_gemini("s", "u", "key") == '{"a": 1}'


def test_parse_fenced_json_clamps_score():
    raw = '```json\n{"tailoredContent": "Tailored", "matchScore": 120}\n```'
    parsed = parse_tailoring_response(raw)
    assert parsed["content"] == "Tailored"
    assert parsed["match_score"] == 100.0
    assert parsed["suggested_changes"] == []


def test_parse_json_inside_prose():
    raw = 'Here you go: {"tailoredResume": "Y", "suggestedChanges": [{"type": "addition"}]} Thanks!'
    parsed = parse_tailoring_response(raw)
    assert parsed["content"] == "Y"
    assert parsed["suggested_changes"] == [{"type": "addition"}]


def test_parse_plain_text():
    parsed = parse_tailoring_response("JANE DOE\nBackend engineer")
    assert parsed == {"content": "JANE DOE\nBackend engineer", "suggested_changes": [], "match_score": None}


@pytest.mark.parametrize("value, expected", [("88%", 88.0), ("high", None), (True, None), (-5, 0.0)])
def test_parse_score_coercion(value, expected):
    parsed = parse_tailoring_response(json.dumps({"content": "x", "matchScore": value}))
    assert parsed["match_score"] == expected
