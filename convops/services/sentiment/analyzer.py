"""Per-message sentiment for transcripts: AWS Comprehend, or keyword scoring."""

import asyncio
import re
from dataclasses import dataclass
from typing import Any, Literal

import boto3
import structlog

from convops.core.config import settings
from convops.models import ConversationLog, SentimentPoint, utcnow

logger = structlog.get_logger()

_WORD_RE = re.compile(r"[a-záéíóúñü']+")

POSITIVE_WORDS = frozenset({
    "good", "great", "excellent", "amazing", "wonderful", "fantastic",
    "happy", "pleased", "satisfied", "thanks", "thank", "love", "perfect",
    "awesome", "helpful", "best", "nice", "appreciate", "sure", "like",
    "gracias", "bien", "excelente", "genial", "bueno", "feliz",
})

NEGATIVE_WORDS = frozenset({
    "bad", "terrible", "awful", "horrible", "angry", "frustrated",
    "disappointed", "upset", "hate", "worst", "useless", "stupid",
    "annoying", "ridiculous", "unacceptable", "furious", "disgusting",
    "problem", "error", "wrong", "sad",
    "mal", "enojado", "frustrado", "decepcionado",
})

INTENSIFIERS = frozenset({"very", "really", "extremely", "absolutely", "totally", "muy"})

COMPREHEND_LANGUAGES = {"en", "es", "fr", "de", "it", "pt"}
COMPREHEND_MAX_CHARS = 5000

# Scores beyond this read as happy / frustrated
EMOTION_THRESHOLD = 0.2


@dataclass
class SentimentResult:
    sentiment: Literal["POSITIVE", "NEGATIVE", "NEUTRAL", "MIXED"]
    score: float  # -1 (negative) to 1 (positive)
    confidence: float

    @property
    def label(self) -> str:
        """Lower-case label stored on transcript lines."""
        return "neutral" if self.sentiment == "MIXED" else self.sentiment.lower()

    @property
    def emotion(self) -> str:
        if self.score > EMOTION_THRESHOLD:
            return "happy"
        if self.score < -EMOTION_THRESHOLD:
            return "frustrated"
        return "neutral"


NEUTRAL = SentimentResult(sentiment="NEUTRAL", score=0.0, confidence=1.0)


def keyword_sentiment(text: str) -> SentimentResult:
    """Score text by counting positive and negative words.

    Any intensifier in the text weighs every hit by 1.5. The score is
    ``(pos - neg) / (pos + neg + 1)`` so a single word never reaches the
    extremes.
    """
    words = set(_WORD_RE.findall(text.lower()))
    weight = 1.5 if words & INTENSIFIERS else 1.0
    positive = len(words & POSITIVE_WORDS) * weight
    negative = len(words & NEGATIVE_WORDS) * weight

    if not positive and not negative:
        return SentimentResult(sentiment="NEUTRAL", score=0.0, confidence=0.5)

    score = (positive - negative) / (positive + negative + 1)
    if score > 0:
        sentiment = "POSITIVE"
    elif score < 0:
        sentiment = "NEGATIVE"
    else:
        sentiment = "MIXED"
    return SentimentResult(sentiment=sentiment, score=score, confidence=0.5 + abs(score) / 2)


class SentimentAnalyzer:
    """Uses AWS Comprehend when credentials are set, keyword scoring otherwise."""

    def __init__(self) -> None:
        self._comprehend = None

        if settings.aws_access_key_id and settings.aws_secret_access_key:
            try:
                self._comprehend = boto3.client(
                    "comprehend",
                    region_name=settings.aws_region,
                    aws_access_key_id=settings.aws_access_key_id,
                    aws_secret_access_key=settings.aws_secret_access_key,
                )
                logger.info("AWS Comprehend initialized", region=settings.aws_region)
            except Exception as e:
                logger.warning("Failed to initialize AWS Comprehend", error=str(e))
        else:
            logger.info("Using keyword sentiment analysis (AWS not configured)")

    @property
    def method(self) -> str:
        return "comprehend" if self._comprehend is not None else "keyword"

    async def analyze(self, text: str, language: str = "en") -> SentimentResult:
        if not text or not text.strip():
            return NEUTRAL
        if self._comprehend is not None:
            return await self._detect(text, language)
        return keyword_sentiment(text)

    async def analyze_messages(self, messages: list[dict[str, Any]], language: str = "en") -> list[dict[str, Any]]:
        """Score each transcript message.

        Messages may carry their text under ``content`` or ``message``.
        Results are 1-indexed in input order.
        """
        results = []
        for index, msg in enumerate(messages, start=1):
            content = str(msg.get("content") or msg.get("message") or "")
            result = await self.analyze(content, language)
            results.append({
                "index": index,
                "sentiment": round(result.score, 2),
                "confidence": round(result.confidence, 2),
                "emotion": result.emotion,
                "reasoning": f"{self.method} analysis: {result.sentiment.lower()}",
                "timestamp": msg.get("timestamp") or utcnow().isoformat(),
                "content": content,
                "sender": msg.get("sender") or "unknown",
            })
        return results

    async def annotate_log(self, log: ConversationLog) -> ConversationLog:
        """Label every transcript line and rebuild the sentiment timeline."""
        timeline = []
        for entry in log.message_log:
            result = await self.analyze(entry.message, log.language or "en")
            entry.sentiment = result.label
            timeline.append(SentimentPoint(timestamp=entry.timestamp, sentiment=result.label))
        log.sentiment_timeline = timeline
        logger.info("Annotated conversation sentiment", log_id=log.id, messages=len(timeline))
        return log

    async def _detect(self, text: str, language: str) -> SentimentResult:
        try:
            response = await asyncio.to_thread(
                self._comprehend.detect_sentiment,
                Text=text[:COMPREHEND_MAX_CHARS],
                LanguageCode=language if language in COMPREHEND_LANGUAGES else "en",
            )
        except Exception as e:
            logger.error("Comprehend analysis failed, using keywords", error=str(e))
            return keyword_sentiment(text)

        scores = response["SentimentScore"]
        return SentimentResult(
            sentiment=response["Sentiment"],
            score=scores["Positive"] - scores["Negative"],
            confidence=max(scores.values()),
        )


_sentiment_analyzer: SentimentAnalyzer | None = None


def get_sentiment_analyzer() -> SentimentAnalyzer:
    """Get or create the sentiment analyzer singleton."""
    global _sentiment_analyzer
    if _sentiment_analyzer is None:
        _sentiment_analyzer = SentimentAnalyzer()
    return _sentiment_analyzer
