import re
from typing import Dict, List

TECH_KEYWORDS = [
    "python", "java", "javascript", "typescript", "react", "node.js", "sql",
    "aws", "gcp", "azure", "docker", "kubernetes", "graphql", "airflow",
    "spark", "kafka", "postgresql", "mongodb", "terraform", "ci/cd",
]

# a heading starts a line and ends with a colon, a dash or the line break
HEADING_TAIL = r"[ \t]*(?:[:\-–][ \t]*|(?=\n))"

NEXT_HEADING = (
    r"(?:Responsibilities|What You'll Do|Preferred|Nice[-\s]?to[-\s]?have|Good to have|"
    r"Bonus|Benefits|What We Offer|About Us|Requirements|Required|Minimum Qualifications|"
    r"Basic Qualifications|Qualifications)\b(?:[ \t]+[\w'&/-]+){0,2}[ \t]*(?::|(?=\n)|\Z)"
)
SECTION_END = r"(?=\n[ \t]*" + NEXT_HEADING + r"|\Z)"

REQUIREMENTS_RE = re.compile(
    r"(?:^|\n)[ \t]*(?:Requirements|Required Qualifications|Minimum Qualifications|"
    r"Basic Qualifications|Qualifications|What You'll Need|Skills Required)"
    + HEADING_TAIL + r"(.+?)" + SECTION_END,
    re.IGNORECASE | re.DOTALL,
)
PREFERENCES_RE = re.compile(
    r"(?:^|\n)[ \t]*(?:Preferred(?:[ \t]+(?:Qualifications|Skills))?|Nice[-\s]?to[-\s]?have|"
    r"Good to have|Bonus(?:[ \t]+Points)?)"
    + HEADING_TAIL + r"(.+?)" + SECTION_END,
    re.IGNORECASE | re.DOTALL,
)


def _split_items(block: str) -> List[str]:
    items = []
    for part in re.split(r"[\n,;•●▪]", block):
        item = part.strip(" -–*:.\t")
        if 2 < len(item) <= 80:
            items.append(item)
    return list(dict.fromkeys(items))


def extract_jd_details(text: str) -> Dict[str, List[str]]:
    """
    Pull requirement and preference lists out of a free-form job description.
    Falls back to a technology keyword scan when no requirements section exists.
    """
    text = (text or "").replace("\r\n", "\n")

    preferences: List[str] = []
    scan = text
    m = PREFERENCES_RE.search(text)
    if m:
        preferences = _split_items(m.group(1))
        # nice-to-haves are not requirements
        scan = text[:m.start()] + text[m.end():]

    requirements: List[str] = []
    m = REQUIREMENTS_RE.search(text)
    if m:
        requirements = _split_items(m.group(1))
    if not requirements:
        lower = scan.lower()
        requirements = [
            k for k in TECH_KEYWORDS
            if re.search(rf"(?<![\w.]){re.escape(k)}(?![\w])", lower)
        ]

    return {
        "requirements": requirements,
        "preferences": preferences,
    }
