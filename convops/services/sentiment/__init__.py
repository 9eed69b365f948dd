"""Sentiment analysis service."""

from convops.services.sentiment.analyzer import SentimentAnalyzer, SentimentResult, get_sentiment_analyzer

__all__ = ["SentimentAnalyzer", "SentimentResult", "get_sentiment_analyzer"]
