"""Tests for suggested-change normalization and derivation."""

from tailoring.suggestions import (
    MAX_SUGGESTIONS,
    derive_suggested_changes,
    heuristic_changes,
    normalize_change,
)

ORIGINAL = """Jane Doe
Built internal tools in Perl for billing
Led a team of five engineers
SKILLS
Python"""

TAILORED = """Jane Doe
SUMMARY
Python developer ready for Backend Engineer work
Led a team of five engineers
SKILLS
Python, Docker"""

JOB = {
    "title": "Backend Engineer",
    "requirements": ["Python", "Kubernetes"],
    "preferences": ["Kafka"],
}


def test_normalize_change_maps_synonyms():
    assert normalize_change({"type": "Add", "section": "Skills", "description": "Add Docker"}) == {
        "type": "addition", "section": "Skills", "description": "Add Docker",
    }
    assert normalize_change({"type": "remove", "description": "Drop hobbies"})["section"] == "General"
    assert normalize_change({"type": "update", "description": "Reword"})["type"] == "modification"


def test_normalize_change_rejects_malformed():
    assert normalize_change({"type": "bogus", "description": "x"}) is None
    assert normalize_change({"type": "modify", "description": "  "}) is None
    assert normalize_change("add docker") is None


def test_heuristic_changes():
    changes = heuristic_changes(ORIGINAL, TAILORED, JOB, ["kubernetes", "grpc"])
    assert [(c["type"], c["section"]) for c in changes] == [
        ("addition", "Skills"),
        ("addition", "Skills"),
        ("removal", "Experience"),
        ("addition", "Keywords"),
    ]
    assert "Kubernetes" in changes[0]["description"]
    assert "Kafka" in changes[1]["description"]
    assert "Perl" in changes[2]["description"]
    assert changes[3]["description"].endswith("grpc.")


def test_missing_title_suggests_summary_change():
    changes = heuristic_changes("", "Python", {"title": "Data Engineer"}, [])
    assert changes == [{
        "type": "modification",
        "section": "Summary",
        "description": "Align your summary with the Data Engineer role.",
    }]


def test_model_changes_come_first_and_duplicates_drop():
    model = [
        {"type": "modify", "section": "Summary", "description": "Lead with backend work"},
        {"type": "addition", "section": "skills",
         "description": "Highlight your experience with Kubernetes; it is a stated requirement."},
        {"type": "nonsense", "description": "ignored"},
    ]
    changes = derive_suggested_changes(ORIGINAL, TAILORED, JOB, [], model_changes=model)
    assert changes[0]["description"] == "Lead with backend work"
    assert changes[1]["section"] == "skills"
    descriptions = [c["description"] for c in changes]
    assert descriptions.count("Highlight your experience with Kubernetes; it is a stated requirement.") == 1
    assert "ignored" not in descriptions


def test_suggestions_are_capped():
    job = {"title": "", "requirements": [f"skill{i}" for i in range(30)]}
    changes = derive_suggested_changes("", "nothing relevant", job, [])
    assert len(changes) == MAX_SUGGESTIONS
    assert all(c["type"] in ("addition", "removal", "modification") for c in changes)
