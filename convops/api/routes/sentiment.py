"""Ad-hoc sentiment scoring of transcript messages."""

from typing import Any

import structlog
from fastapi import APIRouter
from pydantic import BaseModel, Field

from convops.api.dependencies import CurrentUser, SentimentDep
from convops.core.exceptions import ValidationFailed

logger = structlog.get_logger()

router = APIRouter(prefix="/api/sentiment", tags=["Sentiment"])


class TranscriptMessage(BaseModel):
    sender: str | None = None
    content: str | None = None
    message: str | None = None
    timestamp: str | None = None


class AnalyzeRequest(BaseModel):
    messages: list[TranscriptMessage] = Field(default_factory=list)
    language: str = "en"


@router.post("/analyze")
async def analyze(data: AnalyzeRequest, user: CurrentUser, analyzer: SentimentDep) -> dict[str, Any]:
    """Score each message; accepts ``content`` or ``message`` text fields."""
    if not data.messages:
        raise ValidationFailed("Messages array is required and must not be empty", field="messages")

    messages = [m.model_dump(exclude_none=True) for m in data.messages]
    results = await analyzer.analyze_messages(messages, data.language)
    logger.info("Analyzed message sentiment", user_id=user.id, messages=len(results), method=analyzer.method)
    return {
        "success": True,
        "data": results,
        "total_messages": len(results),
        "method": analyzer.method,
    }


@router.get("/health")
async def sentiment_health(analyzer: SentimentDep) -> dict[str, str]:
    return {"status": "healthy", "method": analyzer.method}
