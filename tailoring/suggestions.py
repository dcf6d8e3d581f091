from typing import Dict, List, Optional

CHANGE_TYPES = ("addition", "removal", "modification")

TYPE_ALIASES = {
    "add": "addition",
    "added": "addition",
    "addition": "addition",
    "insert": "addition",
    "remove": "removal",
    "removed": "removal",
    "removal": "removal",
    "delete": "removal",
    "deletion": "removal",
    "modify": "modification",
    "modified": "modification",
    "modification": "modification",
    "update": "modification",
    "change": "modification",
    "edit": "modification",
    "rewrite": "modification",
    "rephrase": "modification",
}

MAX_SUGGESTIONS = 15
MAX_REMOVALS = 3
MAX_KEYWORDS = 5


def normalize_change(change) -> Optional[Dict[str, str]]:
    if not isinstance(change, dict):
        return None
    kind = TYPE_ALIASES.get(str(change.get("type", "")).strip().lower())
    description = str(change.get("description") or "").strip()
    if not kind or not description:
        return None
    section = str(change.get("section") or "").strip() or "General"
    return {"type": kind, "section": section, "description": description}


def _absent(phrase: str, text: str) -> bool:
    return phrase.strip().lower() not in text


def _dropped_lines(original: str, tailored: str) -> List[str]:
    kept = {line.strip().lower() for line in tailored.splitlines() if line.strip()}
    dropped = []
    for line in original.splitlines():
        line = line.strip()
        # headings and one-word lines are noise
        if len(line.split()) < 3 or line.lower() in kept:
            continue
        dropped.append(line)
    return list(dict.fromkeys(dropped))


def heuristic_changes(
    original: str, tailored: str, job: Dict, missing_keywords: List[str]
) -> List[Dict[str, str]]:
    """Suggestions derived from what the tailored text still lacks relative to the job."""
    text = (tailored or "").lower()
    changes = []

    requirements = [str(r).strip() for r in job.get("requirements") or [] if str(r).strip()]
    preferences = [str(p).strip() for p in job.get("preferences") or [] if str(p).strip()]

    for req in requirements:
        if _absent(req, text):
            changes.append({
                "type": "addition",
                "section": "Skills",
                "description": f"Highlight your experience with {req}; it is a stated requirement.",
            })

    for pref in preferences:
        if _absent(pref, text):
            changes.append({
                "type": "addition",
                "section": "Skills",
                "description": f"Mention {pref} if you have used it; the employer lists it as a preference.",
            })

    title = (job.get("title") or "").strip()
    if title and _absent(title, text):
        changes.append({
            "type": "modification",
            "section": "Summary",
            "description": f"Align your summary with the {title} role.",
        })

    for line in _dropped_lines(original or "", tailored or "")[:MAX_REMOVALS]:
        snippet = line if len(line) <= 80 else line[:77] + "..."
        changes.append({
            "type": "removal",
            "section": "Experience",
            "description": f"Removed less relevant content: \"{snippet}\"",
        })

    covered = " ".join(requirements + preferences + [title]).lower()
    leftover = [kw for kw in missing_keywords if kw.lower() not in covered][:MAX_KEYWORDS]
    if leftover:
        changes.append({
            "type": "addition",
            "section": "Keywords",
            "description": "Work these job keywords into your resume where accurate: "
            + ", ".join(leftover) + ".",
        })

    return changes


def derive_suggested_changes(
    original: str,
    tailored: str,
    job: Dict,
    missing_keywords: List[str],
    model_changes: Optional[List] = None,
) -> List[Dict[str, str]]:
    """
    Merge the model's own suggestions (first) with heuristic ones,
    dropping malformed entries and duplicates.
    """
    merged, seen = [], set()
    candidates = [normalize_change(c) for c in model_changes or []]
    candidates += heuristic_changes(original, tailored, job, missing_keywords)

    for change in candidates:
        if change is None:
            continue
        key = (change["type"], change["section"].lower(), change["description"].lower())
        if key in seen:
            continue
        seen.add(key)
        merged.append(change)
        if len(merged) >= MAX_SUGGESTIONS:
            break
    return merged
