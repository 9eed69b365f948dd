"""Conversation summaries generated by the LLM provider."""

import structlog

from convops.core.exceptions import LLMError
from convops.models import ConversationLog
from convops.services.llm.provider import LLMProvider, get_llm_provider
from convops.storage.base import StorageBackend

logger = structlog.get_logger()


class ConversationSummarizer:
    """Writes a short prose summary onto conversation logs."""

    def __init__(self, storage: StorageBackend, llm: LLMProvider | None = None) -> None:
        self.storage = storage
        self.llm = llm or get_llm_provider()

    async def summarize(self, log: ConversationLog) -> str | None:
        """Summarize one log's transcript.

        Returns ``None`` for an empty transcript or when generation fails.
        """
        transcript = log.transcript()
        if not transcript:
            logger.info("Nothing to summarize", log_id=log.id)
            return None

        try:
            summary = await self.llm.summarize(transcript)
        except LLMError as e:
            logger.error("Summary generation failed", log_id=log.id, error=e.message)
            return None

        return summary or None

    async def summarize_and_store(self, log_id: str) -> str | None:
        """Summarize a stored log and save the result.

        Run as a background task after ingestion; failures are logged only.
        """
        log = await self.storage.get_conversation_log(log_id)
        if not log:
            logger.warning("Conversation log vanished before summarizing", log_id=log_id)
            return None

        summary = await self.summarize(log)
        if summary:
            log.summary = summary
            await self.storage.save_conversation_log(log)
            logger.info("Conversation summary stored", log_id=log.id)
        return summary
