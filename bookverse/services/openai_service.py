# bookverse/services/openai_service.py
import json
import logging
from typing import Optional, Dict, Any, List
from flask import Flask
from openai import OpenAI

from bookverse.models.comment import Sentiment

# Comments shorter than this are tagged Neutral without a model call.
MIN_ANALYZABLE_LENGTH = 5
RECOMMENDATION_COUNT = 5

SENTIMENT_PROMPT = (
    "Analyze the sentiment of the following book comment. Respond ONLY with a single JSON object "
    'in the format: {"sentiment": "Positive" | "Negative" | "Neutral"}.'
)

RECOMMENDER_PROMPT = """
You are a specialized book recommender for a social reading app.
1. Analyze the user's recent chat conversation to detect their current mood.
2. Recommend exactly 5 books that best match or uplift that mood.
3. For each book give its average rating and say whether it is freely available (e.g. public domain) or where to buy it.
4. Only choose books that are highly rated (4.0+), widely recommended and easy to find.
Respond only with JSON of the form:
{"mood": str, "recommendations": [{"title": str, "author": str, "rating": float, "availability": str}]}
"""


class RecommendationError(RuntimeError):
    """The model returned nothing usable for a recommendation request."""


class OpenAIService:
    """
    OpenAI integration.
    - Tags each new book comment with a sentiment label.
    - Turns the last hour of a conversation into a mood and five book picks.
    """

    def __init__(self):
        # The real client is set in init_app.
        self.client = None
        self.model = 'gpt-4o-mini'

    def init_app(self, app: Flask):
        api_key = app.config.get('OPENAI_API_KEY')
        if not api_key:
            raise ValueError("OPENAI_API_KEY must be set in the .env file.")

        self.client = OpenAI(api_key=api_key)
        self.model = app.config.get('OPENAI_MODEL') or self.model
        logging.info(f"OpenAIService initialized (model: {self.model}).")

    def _complete_json(self, system_prompt: str, user_prompt: str) -> Dict[str, Any]:
        if not self.client:
            raise RuntimeError("OpenAIService is not initialized. Call init_app first.")

        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            response_format={"type": "json_object"},
            temperature=0,
        )
        content = response.choices[0].message.content
        if not content:
            raise ValueError("Model returned an empty response.")
        # some models still wrap JSON in a fenced block
        content = content.strip().removeprefix("```json").removesuffix("```").strip()
        return json.loads(content)

    def classify_sentiment(self, text: Optional[str]) -> Sentiment:
        """
        Label one comment. Never raises: any failure is AnalysisError so the
        comment can still be stored.
        """
        if not text or len(text.strip()) < MIN_ANALYZABLE_LENGTH:
            return Sentiment.NEUTRAL

        try:
            result = self._complete_json(SENTIMENT_PROMPT, f'Comment: "{text}"')
            sentiment = Sentiment.parse(result.get("sentiment"))
            if sentiment is Sentiment.ANALYSIS_ERROR:
                logging.warning(f"Unexpected sentiment label from model: {result!r}")
            return sentiment
        except Exception as e:
            logging.error(f"Sentiment analysis failed: {e}", exc_info=True)
            return Sentiment.ANALYSIS_ERROR

    def recommend_books(self, conversation_history: str) -> Dict[str, Any]:
        """
        :param conversation_history: "Speaker: text" lines, oldest first
        :return: {"mood": str, "recommendations": [{title, author, rating, availability}, ...]}
        """
        if not conversation_history or not conversation_history.strip():
            raise ValueError("No recent messages to analyze.")

        user_prompt = (
            "Analyze the following private chat conversation from the last hour, determine the mood and "
            f"recommend {RECOMMENDATION_COUNT} book titles. CONVERSATION:\n{conversation_history}"
        )
        try:
            result = self._complete_json(RECOMMENDER_PROMPT, user_prompt)
        except Exception as e:
            logging.error(f"Book recommendation request failed: {e}", exc_info=True)
            raise RecommendationError("Failed to get recommendations.") from e

        recommendations = [
            self._normalize_recommendation(item)
            for item in (result.get("recommendations") or [])
            if isinstance(item, dict) and item.get("title")
        ]
        if not recommendations:
            raise RecommendationError("The model returned no recommendations.")

        return {
            "mood": str(result.get("mood") or "neutral"),
            "recommendations": recommendations[:RECOMMENDATION_COUNT],
        }

    @staticmethod
    def _normalize_recommendation(item: Dict[str, Any]) -> Dict[str, Any]:
        try:
            rating = float(item.get("rating"))
        except (TypeError, ValueError):
            rating = None
        return {
            "title": str(item["title"]).strip(),
            "author": str(item.get("author") or "Unknown").strip(),
            "rating": rating,
            "availability": item.get("availability") or "",
        }


def format_recommendation_message(recipient_name: str, mood: str, recommendations: List[Dict[str, Any]]) -> str:
    """Chat text sent when a user shares a recommendation list."""
    lines = []
    for book in recommendations:
        details = [f"{book['rating']:.1f}★"] if book.get("rating") is not None else []
        if book.get("availability"):
            details.append(book["availability"])
        suffix = f" ({', '.join(details)})" if details else ""
        lines.append(f'* "{book["title"]}" by {book.get("author") or "Unknown"}{suffix}')

    mood_label = mood[:1].upper() + mood[1:] if mood else "Neutral"
    header = f"Hey {recipient_name or 'friend'}, I think you should read these books according to your mood ({mood_label}):\n\n"
    return header + "\n".join(lines)
