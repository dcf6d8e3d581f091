import json
import logging
import re
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
DEFAULT_MODEL = "gemini-1.5-flash"

CONTENT_KEYS = ("tailoredContent", "tailoredResume", "content")


class TailoringError(RuntimeError):
    """Raised when the model call fails or returns nothing usable."""


def llm_tailor_gemini(
    system_prompt: str,
    user_prompt: str,
    api_key: Optional[str],
    model: str = DEFAULT_MODEL,
    timeout: float = 60,
) -> str:
    """Send a tailoring prompt to Gemini and return the raw text of the first candidate."""
    if not api_key:
        raise TailoringError("Gemini API key is not configured.")

    url = GEMINI_URL.format(model=model)
    headers = {
        "Content-Type": "application/json",
        "x-goog-api-key": api_key,
    }
    payload = {
        "systemInstruction": {"parts": [{"text": system_prompt}]},
        "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
        "generationConfig": {
            "temperature": 0.4,
            "responseMimeType": "application/json",
        },
    }

    try:
        response = requests.post(url, headers=headers, json=payload, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        logger.error("Gemini API error: %s", e)
        raise TailoringError("Failed to tailor resume. Please try again later.") from e
    except ValueError as e:
        logger.error("Gemini returned a non-JSON body: %s", e)
        raise TailoringError("Failed to tailor resume. Please try again later.") from e

    candidates = data.get("candidates") or []
    if not candidates:
        reason = (data.get("promptFeedback") or {}).get("blockReason", "no candidates")
        logger.error("Gemini returned no candidates (%s)", reason)
        raise TailoringError(f"The AI model returned no result ({reason}).")

    parts = (candidates[0].get("content") or {}).get("parts") or []
    text = "".join(p.get("text", "") for p in parts)
    if not text.strip():
        finish = candidates[0].get("finishReason", "empty response")
        logger.error("Gemini candidate had no text (%s)", finish)
        raise TailoringError(f"The AI model returned no result ({finish}).")
    return text


def _strip_fences(raw: str) -> str:
    raw = raw.strip()
    m = re.match(r"^```(?:json)?\s*(.*?)\s*```$", raw, re.DOTALL | re.IGNORECASE)
    return m.group(1) if m else raw


def _load_json_object(raw: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        # model wrapped the JSON in prose
        m = re.search(r"\{.*\}", raw, re.DOTALL)
        if not m:
            return None
        try:
            parsed = json.loads(m.group(0))
        except json.JSONDecodeError:
            return None
    return parsed if isinstance(parsed, dict) else None


def _coerce_score(value) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        score = float(str(value).strip().rstrip("%"))
    except ValueError:
        return None
    if score != score:  # NaN
        return None
    return max(0.0, min(100.0, score))


def parse_tailoring_response(raw: str) -> Dict[str, Any]:
    """
    Normalize the model output into {content, suggested_changes, match_score}.
    Output that is not JSON is taken as the tailored resume text itself.
    """
    cleaned = _strip_fences(raw or "")
    parsed = _load_json_object(cleaned)

    if parsed is None:
        logger.warning("Model output was not JSON; using it as plain text")
        return {"content": cleaned, "suggested_changes": [], "match_score": None}

    content = ""
    for key in CONTENT_KEYS:
        value = parsed.get(key)
        if isinstance(value, str) and value.strip():
            content = value.strip()
            break

    changes = parsed.get("suggestedChanges") or parsed.get("suggested_changes") or []
    if not isinstance(changes, list):
        changes = []

    return {
        "content": content,
        "suggested_changes": changes,
        "match_score": _coerce_score(parsed.get("matchScore", parsed.get("match_score"))),
    }
