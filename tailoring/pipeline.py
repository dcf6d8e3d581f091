import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from .llm_gemini import DEFAULT_MODEL, llm_tailor_gemini, parse_tailoring_response
from .prompts import build_prompt
from .scorer import extract_keywords, keyword_overlap, match_score
from .suggestions import derive_suggested_changes

logger = logging.getLogger(__name__)


@dataclass
class TailoringResult:
    content: str
    match_score: int
    model_score: Optional[float] = None
    suggested_changes: List[Dict[str, str]] = field(default_factory=list)
    matched_keywords: List[str] = field(default_factory=list)
    missing_keywords: List[str] = field(default_factory=list)


def tailor_resume(
    resume_text: str,
    job: Dict,
    api_key: Optional[str],
    model: str = DEFAULT_MODEL,
    timeout: float = 60,
    generate: Callable[..., str] = llm_tailor_gemini,
) -> TailoringResult:
    """
    Tailor a resume to a job description.

    Args:
        resume_text: Current resume content
        job: Job description fields (title, company, description, requirements, preferences, location)
        api_key: Gemini API key
        model: Gemini model name
        timeout: Request timeout in seconds
        generate: Model call, (system_prompt, user_prompt, api_key, model, timeout) -> raw text

    Returns:
        TailoringResult with the tailored text, heuristic score and suggested changes

    Raises:
        ValueError: if the resume has no content
        TailoringError: if the model call fails
    """
    if not resume_text or not resume_text.strip():
        raise ValueError("Resume has no content to tailor.")

    system_prompt, user_prompt = build_prompt(resume_text, job)
    logger.info("Tailoring resume (%d chars) for '%s'", len(resume_text), job.get("title"))

    raw = generate(system_prompt, user_prompt, api_key, model=model, timeout=timeout)
    parsed = parse_tailoring_response(raw)

    content = parsed["content"] or resume_text.strip()
    keywords = extract_keywords(job)
    matched, missing = keyword_overlap(content, keywords)
    score = match_score(content, keywords)

    changes = derive_suggested_changes(
        resume_text, content, job, missing, model_changes=parsed["suggested_changes"]
    )
    logger.info(
        "Tailoring done: score=%d (model=%s), %d/%d keywords, %d suggestions",
        score, parsed["match_score"], len(matched), len(keywords), len(changes),
    )

    return TailoringResult(
        content=content,
        match_score=score,
        model_score=parsed["match_score"],
        suggested_changes=changes,
        matched_keywords=matched,
        missing_keywords=missing,
    )
