"""
Core Business Logic
====================
Cost model, fuzzy text matching and summary statistics.
"""

from backend.core.pricing import CostModel, YamlPricingSource
from backend.core.similarity import FuzzyTextMatcher
from backend.core.statistics import growth_percentage, mean, median, percentile

__all__ = [
    "CostModel",
    "YamlPricingSource",
    "FuzzyTextMatcher",
    "growth_percentage",
    "mean",
    "median",
    "percentile",
]
