"""
Fuzzy Text Matching
===================
Approximate string similarity used to deduplicate student questions.
"""

from difflib import SequenceMatcher


class FuzzyTextMatcher:
    """
    0-100 similarity ratio between two strings.

    Uses difflib's matching-blocks ratio (2*M/T) scaled to a percentage
    and rounded to an integer. Identical strings score 100, two empty
    strings score 100, and an empty string against a non-empty one 0.
    """

    def ratio(self, first: str, second: str) -> int:
        if first == second:
            return 100
        if not first or not second:
            return 0
        matcher = SequenceMatcher(None, first, second, autojunk=False)
        return round(matcher.ratio() * 100)

    def is_match(self, first: str, second: str, threshold: int) -> bool:
        return self.ratio(first, second) >= threshold
