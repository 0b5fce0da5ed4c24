"""
Analytics Services
==================
Scope resolution, event fetching, reducers and the analytics facade.
"""

from backend.services.analytics import AnalyticsService
from backend.services.engagement import ConversationEngagementAnalyzer
from backend.services.faq import FAQClusterer
from backend.services.fetch import EventFetchOrchestrator
from backend.services.quality import ResponseQualityGrader
from backend.services.scope import AuthorizationScopeResolver, HierarchySnapshot

__all__ = [
    "AnalyticsService",
    "AuthorizationScopeResolver",
    "ConversationEngagementAnalyzer",
    "EventFetchOrchestrator",
    "FAQClusterer",
    "HierarchySnapshot",
    "ResponseQualityGrader",
]
