# bookverse/scoring/sentiment.py
"""
Page-level reader sentiment.

Every comment carries the label the AI classifier gave it at creation time.
The labels of all comments on one page (or one book) are reduced to a single
mood shown next to the page:

    Positive = +2, Neutral = 0, Negative = -2, AnalysisError = excluded

    average >  1.0         -> Positive
    average < -1.0         -> Negative
    |average| <= 0.5       -> Neutral
    0.5 < |average| <= 1.0 -> Mixed
"""

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Optional

from bookverse.models.comment import Comment, Sentiment


class PageSentiment(Enum):
    POSITIVE = "Positive"
    NEGATIVE = "Negative"
    NEUTRAL = "Neutral"
    MIXED = "Mixed"


POSITIVE_THRESHOLD = 1.0
NEUTRAL_BAND = 0.5


def sentiment_weight(sentiment: Sentiment) -> Optional[int]:
    """Numeric weight of a label; None means the comment is left out."""
    if sentiment is Sentiment.POSITIVE:
        return 2
    if sentiment is Sentiment.NEGATIVE:
        return -2
    if sentiment is Sentiment.NEUTRAL:
        return 0
    if sentiment is Sentiment.ANALYSIS_ERROR:
        return None
    raise AssertionError(f"unhandled sentiment: {sentiment!r}")


def classify_average(average: float) -> PageSentiment:
    if average > POSITIVE_THRESHOLD:
        return PageSentiment.POSITIVE
    if average < -POSITIVE_THRESHOLD:
        return PageSentiment.NEGATIVE
    if abs(average) <= NEUTRAL_BAND:
        return PageSentiment.NEUTRAL
    return PageSentiment.MIXED


def _label_of(item: Any) -> Sentiment:
    if isinstance(item, Comment):
        return Sentiment.parse(item.sentiment)
    if isinstance(item, dict):
        return Sentiment.parse(item.get("sentiment"))
    return Sentiment.parse(item)


@dataclass
class SentimentSummary:
    label: PageSentiment
    average: Optional[float]
    analyzed_count: int
    total_count: int
    counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sentiment": self.label.value,
            "average": self.average,
            "analyzed_count": self.analyzed_count,
            "comment_count": self.total_count,
            "counts": dict(self.counts),
        }


def summarize_sentiment(comments: Optional[Iterable[Any]]) -> SentimentSummary:
    """
    Aggregate a comment set and keep the numbers behind the label.

    `comments` may hold Comment objects, raw Firestore dicts or bare labels.
    """
    labels = [_label_of(item) for item in (comments or [])]
    counts = Counter(label.value for label in labels)

    weights = [w for w in (sentiment_weight(label) for label in labels) if w is not None]
    if not weights:
        return SentimentSummary(
            label=PageSentiment.NEUTRAL,
            average=None,
            analyzed_count=0,
            total_count=len(labels),
            counts=dict(counts),
        )

    average = sum(weights) / len(weights)
    return SentimentSummary(
        label=classify_average(average),
        average=average,
        analyzed_count=len(weights),
        total_count=len(labels),
        counts=dict(counts),
    )


def aggregate_page_sentiment(comments: Optional[Iterable[Any]]) -> PageSentiment:
    """Mood label of one page. No signal (empty or all errors) is Neutral."""
    return summarize_sentiment(comments).label
