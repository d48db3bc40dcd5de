# bookverse/scoring/test_sentiment.py
"""
Page sentiment aggregation tests.

Usage: python -m pytest bookverse/scoring/test_sentiment.py -v
"""

import pytest

from bookverse.models.comment import Comment, Sentiment
from bookverse.scoring.sentiment import (
    PageSentiment,
    aggregate_page_sentiment,
    classify_average,
    summarize_sentiment,
)

P, N, NEU, ERR = (
    Sentiment.POSITIVE,
    Sentiment.NEGATIVE,
    Sentiment.NEUTRAL,
    Sentiment.ANALYSIS_ERROR,
)


def _comment(sentiment, idx=0):
    return Comment(comment_id=f"c{idx}", book_id="moby-dick", page=12, text="...", user_id="u1", sentiment=sentiment)


def test_empty_page_is_neutral():
    assert aggregate_page_sentiment([]) is PageSentiment.NEUTRAL
    assert aggregate_page_sentiment(None) is PageSentiment.NEUTRAL


def test_all_analysis_errors_is_neutral():
    assert aggregate_page_sentiment([ERR, ERR, ERR]) is PageSentiment.NEUTRAL


def test_two_positive_is_positive():
    assert aggregate_page_sentiment([P, P]) is PageSentiment.POSITIVE


def test_positive_and_negative_cancel_out():
    assert aggregate_page_sentiment([P, N]) is PageSentiment.NEUTRAL


def test_average_of_exactly_one_is_mixed_not_positive():
    # average = 1.0 and the positive rule is strictly greater than 1.0
    assert aggregate_page_sentiment([P, NEU]) is PageSentiment.MIXED
    assert aggregate_page_sentiment([N, NEU]) is PageSentiment.MIXED


def test_analysis_errors_are_left_out_of_the_denominator():
    # without the exclusion this would be 2/3 -> Mixed
    assert aggregate_page_sentiment([P, P, ERR]) is PageSentiment.POSITIVE


@pytest.mark.parametrize("average, expected", [
    (2.0, PageSentiment.POSITIVE),
    (1.0001, PageSentiment.POSITIVE),
    (1.0, PageSentiment.MIXED),
    (0.75, PageSentiment.MIXED),
    (0.5001, PageSentiment.MIXED),
    (0.5, PageSentiment.NEUTRAL),
    (0.0, PageSentiment.NEUTRAL),
    (-0.5, PageSentiment.NEUTRAL),
    (-0.75, PageSentiment.MIXED),
    (-1.0, PageSentiment.MIXED),
    (-1.0001, PageSentiment.NEGATIVE),
    (-2.0, PageSentiment.NEGATIVE),
])
def test_classification_boundaries(average, expected):
    assert classify_average(average) is expected


def test_accepts_comment_objects_and_raw_documents():
    comments = [_comment(P, 1), {"sentiment": "Positive"}, {"sentiment": "Positive"}]
    assert aggregate_page_sentiment(comments) is PageSentiment.POSITIVE


def test_comment_objects_with_plain_or_missing_labels():
    comments = [_comment("Positive", 1), _comment("positive", 2), _comment(None, 3), _comment("gleeful", 4)]
    summary = summarize_sentiment(comments)

    assert summary.label is PageSentiment.POSITIVE
    assert summary.analyzed_count == 2
    assert summary.counts == {"Positive": 2, "AnalysisError": 2}
    assert aggregate_page_sentiment([_comment(None, 1)]) is PageSentiment.NEUTRAL


def test_malformed_labels_count_as_analysis_errors():
    docs = [{"sentiment": "Negative"}, {"sentiment": "ecstatic"}, {}, {"sentiment": None}]
    summary = summarize_sentiment(docs)

    assert summary.label is PageSentiment.NEGATIVE
    assert summary.analyzed_count == 1
    assert summary.total_count == 4
    assert summary.counts["AnalysisError"] == 3


def test_summary_of_empty_page_has_no_average():
    summary = summarize_sentiment([])
    assert summary.average is None
    assert summary.to_dict()["sentiment"] == "Neutral"
    assert summary.to_dict()["comment_count"] == 0


def test_sentiment_parse_is_lenient_about_spacing_and_case():
    assert Sentiment.parse("positive") is P
    assert Sentiment.parse("Analysis Error") is ERR
    assert Sentiment.parse(42) is ERR
