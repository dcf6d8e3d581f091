import re
from typing import Dict, Iterable, List, Tuple

STOPWORDS = frozenset("""
a about above after again against all also am an and any are as at be because
been before being below between both but by can could did do does doing down
during each etc few for from further had has have having he her here hers him
his how i if in into is it its itself just me more most my no nor not of off on
once only or other our ours out over own per same she should so some such than
that the their theirs them then there these they this those through to too
under until up very via was we were what when where which while who whom why
will with within without would you your yours
ability able across candidate candidates company etc experience including
join looking must need needed plus preferred position required requirement
requirements responsibilities role seeking skills strong team using work
working years year
""".split())

TOKEN_RE = re.compile(r"[a-z0-9][a-z0-9+#.\-]*")


def tokenize(text: str) -> List[str]:
    """Lowercase word tokens; '+', '#', '.' and '-' may appear inside a token."""
    return [t.rstrip(".-") for t in TOKEN_RE.findall((text or "").lower()) if t.rstrip(".-")]


def _keep(token: str) -> bool:
    return len(token) >= 3 and token not in STOPWORDS and not token.isdigit()


def extract_keywords(job: Dict) -> List[str]:
    """
    Ordered, de-duplicated keywords for a job: title, description,
    requirements and preferences with stopwords and noise removed.
    Short skills listed verbatim as a requirement or preference (e.g. 'go', 'c#') are kept.
    """
    listed = [str(x) for x in (job.get("requirements") or []) + (job.get("preferences") or [])]
    text = " ".join([job.get("title") or "", job.get("description") or ""] + listed)

    keywords = [t for t in tokenize(text) if _keep(t)]
    for item in listed:
        item = item.strip().lower()
        if item and len(item) < 3 and item not in STOPWORDS and not item.isdigit():
            keywords.append(item)
    return list(dict.fromkeys(keywords))


def keyword_overlap(content: str, keywords: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Split keywords into (matched, missing) by case-insensitive substring match."""
    haystack = (content or "").lower()
    matched, missing = [], []
    for kw in keywords:
        (matched if kw.lower() in haystack else missing).append(kw)
    return matched, missing


def match_score(content: str, keywords: Iterable[str]) -> int:
    keywords = list(keywords)
    if not keywords:
        return 0
    matched, _ = keyword_overlap(content, keywords)
    return round(100 * len(matched) / len(keywords))
