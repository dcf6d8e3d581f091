import logging
import re
from typing import Dict, List, Optional

import phonenumbers

logger = logging.getLogger(__name__)

SKILLS = [
    # languages
    "python", "java", "javascript", "typescript", "c++", "c#", "go", "rust",
    "ruby", "php", "swift", "kotlin", "scala", "sql", "bash",
    # frameworks
    "react", "angular", "vue", "next.js", "node.js", "express", "django",
    "flask", "fastapi", "spring", "graphql", "tensorflow", "pytorch",
    "scikit-learn",
    # cloud / devops
    "aws", "azure", "gcp", "docker", "kubernetes", "terraform", "jenkins",
    "github actions", "ci/cd",
    # data
    "postgresql", "mysql", "mongodb", "redis", "elasticsearch", "spark",
    "kafka", "airflow", "snowflake",
    # practices
    "git", "agile", "scrum", "rest api", "microservices", "machine learning",
    "data analysis", "team leadership",
]

EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
PHONE_RE = re.compile(r"(\+?\d[\d\s().-]{8,}\d)")


def _skill_pattern(skill: str) -> re.Pattern:
    # \b does not work around symbols such as "c++" or "c#"
    return re.compile(rf"(?<![\w+#]){re.escape(skill)}(?![\w+#])", re.IGNORECASE)


SKILL_PATTERNS = [(s, _skill_pattern(s)) for s in SKILLS]


def extract_name(text: str) -> Optional[str]:
    for line in text.strip().split("\n")[:5]:
        line = line.strip()
        if not line or re.search(r"resume|curriculum|vitae|@|\d", line, re.IGNORECASE):
            continue
        candidate = re.sub(r"[^A-Za-z\s.'-]", "", line).strip()
        if 2 <= len(candidate.split()) <= 4:
            return candidate.title()
    return None


def extract_phone(text: str, region: str = "US") -> Optional[str]:
    try:
        for match in phonenumbers.PhoneNumberMatcher(text, region):
            return phonenumbers.format_number(
                match.number, phonenumbers.PhoneNumberFormat.INTERNATIONAL
            )
    except Exception as e:
        logger.warning("Phone number extraction error: %s", e)

    m = PHONE_RE.search(text)
    return re.sub(r"[\s().-]", "", m.group(0)) if m else None


def extract_contact_info(text: str, region: str = "US") -> Dict[str, Optional[str]]:
    email = EMAIL_RE.search(text)
    return {
        "name": extract_name(text),
        "email": email.group(0) if email else None,
        "phone": extract_phone(text, region),
    }


def extract_skills(text: str) -> List[str]:
    return [skill for skill, pattern in SKILL_PATTERNS if pattern.search(text)]
