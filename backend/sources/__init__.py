"""
Data Sources
============
Read interfaces and SQL-backed implementations for the chat event log
and platform reference data.
"""

from backend.sources.base import (
    EventStore,
    HierarchySource,
    PricingSource,
    TranscriptionSource,
)
from backend.sources.events import SqlEventStore
from backend.sources.reference import (
    SqlHierarchySource,
    SqlPricingSource,
    SqlTranscriptionSource,
)

__all__ = [
    "EventStore",
    "HierarchySource",
    "PricingSource",
    "TranscriptionSource",
    "SqlEventStore",
    "SqlHierarchySource",
    "SqlPricingSource",
    "SqlTranscriptionSource",
]
