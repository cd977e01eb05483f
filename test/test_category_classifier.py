import pytest

from classification.category_classifier import CategoryClassifier


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Review my BUDGET", "finance"),
        ("doctor checkup", "health"),
        ("job interview prep", "career"),
        ("study for the exam", "learning"),
        ("dinner with friends", "general"),
        # fixed priority, not best match
        ("tax meeting about my career and work and job", "finance"),
        ("wellness training", "health"),
        ("business course", "career"),
        ("morning workout", "general"),
    ],
)
def test_classify(text, expected):
    assert CategoryClassifier().classify(text) == expected


def test_matches_lists_hits():
    hits = CategoryClassifier().matches("tax doctor")
    assert hits["finance"] == ["tax"]
    assert hits["health"] == ["doctor"]
    assert hits["learning"] == []


def test_custom_keywords():
    classifier = CategoryClassifier([("family", ("mom", "dad"))])
    assert classifier.classify("call mom") == "family"
    assert classifier.classify("call bank") == "general"
