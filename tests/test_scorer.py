"""Tests for the keyword match-score heuristic."""

from tailoring.scorer import extract_keywords, keyword_overlap, match_score, tokenize


def test_tokenize_keeps_tech_symbols():
    assert tokenize("Node.js, C# and C++ (CI/CD).") == ["node.js", "c#", "and", "c++", "ci", "cd"]


def test_extract_keywords_strips_stopwords_and_dedupes():
    job = {
        "title": "Senior Frontend Developer",
        "description": "Build great user experiences with React.",
        "requirements": ["React", "TypeScript", "5+ years experience"],
        "preferences": ["Go"],
    }
    assert extract_keywords(job) == [
        "senior", "frontend", "developer", "build", "great", "user",
        "experiences", "react", "typescript", "go",
    ]


def test_extract_keywords_empty_job():
    assert extract_keywords({}) == []


def test_keyword_overlap_is_substring_match():
    matched, missing = keyword_overlap("Wrote JavaScript daily", ["java", "rust"])
    assert matched == ["java"]
    assert missing == ["rust"]


def test_match_score_rounds_percentage():
    assert match_score("python and docker", ["python", "docker", "kubernetes"]) == 67
    assert match_score("PYTHON", ["python"]) == 100


def test_match_score_without_keywords_is_zero():
    assert match_score("anything", []) == 0
