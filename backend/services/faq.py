"""
FAQ Clustering
==============
Collapse near-duplicate student questions into representative FAQ entries.

Clustering is greedy and single-pass: each unassigned question seeds a
cluster and absorbs every later unassigned question whose normalized
text scores at or above the similarity threshold. Membership therefore
depends on input order and on the first-seen seed; this is the
documented behavior and not a global optimum. Worst case is O(n^2)
comparisons, bounded by the per-request fetch limits.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from backend.config import settings
from backend.core.similarity import FuzzyTextMatcher
from backend.schemas.events import ChatMessageEvent

# Multiple-choice answer selections: "A", "b)", "C.", "LETRA D".
QUIZ_ANSWER_PATTERN = re.compile(r"^(LETRA\s)?[A-E][).]*$")

_TRAILING_PUNCTUATION = "?.!"
_REPEATED_SPACES = re.compile(r" {2,}")

MAX_VARIATIONS = 10

# Checked in order; the first category with a matching term wins.
CATEGORY_KEYWORDS = (
    ("How-To", ("how", "como")),
    ("Definition", ("what", "que é", "qué es")),
    ("Explanation", ("why", "por que", "por qué")),
    ("Timing", ("when", "quando", "cuándo")),
    ("Example", ("example", "exemplo", "ejemplo")),
)
DEFAULT_CATEGORY = "General"


def normalize_question(question: str) -> str:
    """Lowercase, trim, drop trailing ?.! and collapse repeated spaces."""
    text = question.lower().strip().rstrip(_TRAILING_PUNCTUATION)
    return _REPEATED_SPACES.sub(" ", text)


def is_quiz_answer(question: str) -> bool:
    """True for multiple-choice answer noise rather than a real question."""
    trimmed = question.strip().upper()
    if not trimmed:
        return False
    if len(trimmed) == 1 and trimmed.isalpha():
        return True
    if len(trimmed) == 2 and trimmed[0].isalpha() and trimmed[1] in ".)":
        return True
    return QUIZ_ANSWER_PATTERN.match(trimmed) is not None


def categorize_question(question: str) -> str:
    lowered = question.lower()
    for category, terms in CATEGORY_KEYWORDS:
        if any(term in lowered for term in terms):
            return category
    return DEFAULT_CATEGORY


@dataclass
class QuestionCluster:
    """A seed question and the near-duplicates it absorbed."""

    representative_question: str
    representative_answer: str
    first_timestamp: int
    last_timestamp: int
    count: int = 1
    variations: list[str] = field(default_factory=list)

    @property
    def category(self) -> str:
        return categorize_question(self.representative_question)

    @property
    def first_asked_at(self) -> datetime:
        return datetime.fromtimestamp(self.first_timestamp / 1000, tz=timezone.utc)

    @property
    def last_asked_at(self) -> datetime:
        return datetime.fromtimestamp(self.last_timestamp / 1000, tz=timezone.utc)

    def absorb(self, event: ChatMessageEvent) -> None:
        self.count += 1
        if len(self.variations) < MAX_VARIATIONS:
            self.variations.append(event.question)
        self.first_timestamp = min(self.first_timestamp, event.timestamp)
        self.last_timestamp = max(self.last_timestamp, event.timestamp)
        # Longer answers tend to be the more complete ones
        if len(event.response) > len(self.representative_answer):
            self.representative_answer = event.response


class FAQClusterer:
    """Greedy fuzzy clustering of student questions."""

    def __init__(
        self,
        similarity_threshold: Optional[int] = None,
        min_occurrences: Optional[int] = None,
        matcher: Optional[FuzzyTextMatcher] = None,
    ):
        self.similarity_threshold = (
            settings.faq_similarity_threshold if similarity_threshold is None else similarity_threshold
        )
        self.min_occurrences = settings.faq_min_occurrences if min_occurrences is None else min_occurrences
        self.matcher = matcher or FuzzyTextMatcher()

    def cluster(self, events: Sequence[ChatMessageEvent]) -> list[QuestionCluster]:
        """
        Cluster events by question similarity.

        Quiz answers and blank questions are dropped before clustering.
        Every remaining event lands in exactly one cluster; clusters
        smaller than min_occurrences are then discarded.

        Returns:
            Clusters in seed order
        """
        candidates = [e for e in events if e.question.strip() and not is_quiz_answer(e.question)]
        normalized = [normalize_question(e.question) for e in candidates]
        assigned = [False] * len(candidates)

        clusters = []
        for i, seed in enumerate(candidates):
            if assigned[i]:
                continue
            assigned[i] = True
            cluster = QuestionCluster(
                representative_question=seed.question,
                representative_answer=seed.response,
                first_timestamp=seed.timestamp,
                last_timestamp=seed.timestamp,
                variations=[seed.question],
            )

            for j in range(i + 1, len(candidates)):
                if assigned[j]:
                    continue
                if self.matcher.is_match(normalized[i], normalized[j], self.similarity_threshold):
                    assigned[j] = True
                    cluster.absorb(candidates[j])

            if cluster.count >= self.min_occurrences:
                clusters.append(cluster)

        return clusters

    def top_clusters(self, events: Sequence[ChatMessageEvent], limit: int) -> list[QuestionCluster]:
        """Largest clusters first; equal sizes keep seed order."""
        clusters = self.cluster(events)
        return sorted(clusters, key=lambda c: c.count, reverse=True)[:max(limit, 0)]
