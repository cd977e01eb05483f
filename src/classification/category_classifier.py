from __future__ import annotations

import logging
from typing import Dict, Sequence, Tuple

logger = logging.getLogger(__name__)

# Order is priority: the first category with any keyword hit wins.
CATEGORY_KEYWORDS: Tuple[Tuple[str, Sequence[str]], ...] = (
    (
        "finance",
        ("finance", "money", "budget", "mortgage", "loan", "invest", "tax", "taxes",
         "banking", "financial", "payment"),
    ),
    (
        "health",
        ("health", "doctor", "medical", "wellness", "checkup", "medicine", "therapy"),
    ),
    (
        "career",
        ("career", "job", "work", "interview", "resume", "professional", "business", "meeting"),
    ),
    (
        "learning",
        ("learn", "study", "class", "course", "education", "school", "research",
         "practice", "training"),
    ),
)

DEFAULT_CATEGORY = "general"


class CategoryClassifier:
    """Keyword-based category inference over the whole sentence."""

    def __init__(self, keywords: Sequence[Tuple[str, Sequence[str]]] = CATEGORY_KEYWORDS):
        self.keywords = tuple(keywords)

    def matches(self, text: str) -> Dict[str, list]:
        """All keyword hits per category, for inspection."""
        lower = text.lower()
        return {
            category: [k for k in words if k in lower]
            for category, words in self.keywords
        }

    def classify(self, text: str) -> str:
        lower = text.lower()
        for category, words in self.keywords:
            if any(k in lower for k in words):
                return category
        return DEFAULT_CATEGORY
