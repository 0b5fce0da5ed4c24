"""
Conversation Engagement
=======================
Conversation length, completion and duration profile.
"""

from collections.abc import Sequence

from backend.core.statistics import mean, median
from backend.schemas.analytics import ConversationInsights, ConversationMetrics
from backend.schemas.events import ChatMessageEvent
from backend.services.aggregation import group_by

# A conversation of at least this many messages counts as completed.
COMPLETION_MIN_MESSAGES = 3

HIGH_ENGAGEMENT_RATE = 80.0
MEDIUM_ENGAGEMENT_RATE = 50.0

# Share of single-message conversations above which it becomes an action item.
SINGLE_MESSAGE_ALERT_RATE = 30.0


def length_bucket(length: int) -> str:
    """single (1), short (2-5), medium (6-15) or long (16+)."""
    if length <= 1:
        return "single"
    if length <= 5:
        return "short"
    if length <= 15:
        return "medium"
    return "long"


def engagement_quality(completion_rate: float) -> str:
    if completion_rate >= HIGH_ENGAGEMENT_RATE:
        return "high"
    if completion_rate >= MEDIUM_ENGAGEMENT_RATE:
        return "medium"
    return "low"


class ConversationEngagementAnalyzer:
    """Classify conversations by length and derive completion metrics."""

    def analyze(self, events: Sequence[ChatMessageEvent]) -> ConversationMetrics:
        conversations = group_by(events, lambda e: e.conversation_id)
        if not conversations:
            return ConversationMetrics()

        lengths = sorted(len(c) for c in conversations.values())
        buckets = {"single": 0, "short": 0, "medium": 0, "long": 0}
        for length in lengths:
            buckets[length_bucket(length)] += 1

        total = len(lengths)
        completed = sum(1 for length in lengths if length >= COMPLETION_MIN_MESSAGES)
        completion_rate = completed * 100.0 / total

        durations = [
            (max(e.timestamp for e in c) - min(e.timestamp for e in c)) / 1000
            for c in conversations.values()
        ]

        return ConversationMetrics(
            total_conversations=total,
            average_messages_per_conversation=mean(lengths),
            median_messages_per_conversation=median(lengths),
            single_message_conversations=buckets["single"],
            short_conversations=buckets["short"],
            medium_conversations=buckets["medium"],
            long_conversations=buckets["long"],
            conversation_completion_rate=completion_rate,
            average_conversation_duration_seconds=mean(durations),
            conversation_distribution={
                "1-message": buckets["single"],
                "2-5 messages": buckets["short"],
                "6-15 messages": buckets["medium"],
                "16+ messages": buckets["long"],
            },
            insights=ConversationInsights(
                engagement_quality=engagement_quality(completion_rate),
                dropoff_rate=100 - completion_rate,
                recommended_actions=self._recommendations(buckets["single"], total, completion_rate),
            ),
        )

    def _recommendations(self, single_messages: int, total: int, completion_rate: float) -> list[str]:
        actions = []

        if total and single_messages * 100.0 / total > SINGLE_MESSAGE_ALERT_RATE:
            actions.append("Focus on reducing single-message conversations")

        if completion_rate < MEDIUM_ENGAGEMENT_RATE:
            actions.append("Improve engagement to increase conversation completion rate")
        else:
            actions.append("Average conversation length is healthy")

        return actions
