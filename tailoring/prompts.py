from typing import Dict, List, Tuple

SYSTEM_PROMPT = """You are an expert resume writer and technical recruiter.

Your goal: rewrite a candidate's resume so it targets a specific job description.

RULES:
1. Stay truthful. Never invent employers, titles, dates, degrees, or skills the candidate does not show.
2. Keep the candidate's name and contact details unchanged at the top.
3. Reorder, rephrase, and emphasize existing experience to mirror the job's requirements and vocabulary.
4. Use plain text with clear section headings (SUMMARY, SKILLS, EXPERIENCE, EDUCATION). No markdown.
5. Prefer measurable, outcome-based bullet points.

OUTPUT FORMAT (STRICT JSON):
{
  "tailoredContent": "The full tailored resume as plain text",
  "suggestedChanges": [
    {"type": "addition" | "removal" | "modification", "section": "Section name", "description": "What to change and why"}
  ],
  "matchScore": <integer 0-100, how well the tailored resume fits the job>
}

Guidelines:
- 3-8 suggested changes, each specific and actionable.
- Output ONLY valid JSON. No markdown fences, no commentary."""


USER_TEMPLATE = """JOB DESCRIPTION:
Title: {title}
Company: {company}
Location: {location}

{description}

Requirements:
{requirements}

Preferences:
{preferences}

CANDIDATE RESUME:
{resume}

Tailor the resume to this job and respond strictly in the required JSON schema."""


def _bullets(items: List[str]) -> str:
    items = [str(i).strip() for i in items or [] if str(i).strip()]
    return "\n".join(f"- {i}" for i in items) if items else "None"


def build_prompt(resume_text: str, job: Dict) -> Tuple[str, str]:
    """Return the (system, user) prompt pair for one resume/job combination."""
    user = USER_TEMPLATE.format(
        title=job.get("title") or "Not specified",
        company=job.get("company") or "Not specified",
        location=job.get("location") or "Not specified",
        description=(job.get("description") or "").strip(),
        requirements=_bullets(job.get("requirements")),
        preferences=_bullets(job.get("preferences")),
        resume=resume_text.strip(),
    )
    return SYSTEM_PROMPT, user
