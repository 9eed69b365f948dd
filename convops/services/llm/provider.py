"""Summary generation over LiteLLM, with retries and a fallback model."""

from dataclasses import dataclass

import litellm
import structlog
from tenacity import retry, stop_after_attempt, wait_exponential

from convops.core.config import settings
from convops.core.exceptions import LLMError

logger = structlog.get_logger()

litellm.set_verbose = settings.app_debug

if settings.openai_api_key:
    litellm.openai_key = settings.openai_api_key


SUMMARY_SYSTEM_PROMPT = (
    "You summarize conversations between a customer and a virtual agent for "
    "the operations team. Write plain prose, no bullet points, no preamble."
)

SUMMARY_PROMPT = """Summarize the following conversation in {max_words} words or less.
Say why the customer got in touch, what the agent answered, and how it ended.

Conversation:
{transcript}

Summary:"""


@dataclass
class LLMResponse:
    content: str
    model: str
    tokens_used: int = 0


class LLMProvider:
    """Calls the primary model, then each fallback model in turn."""

    def __init__(
        self,
        primary_model: str | None = None,
        fallback_models: list[str] | None = None,
        temperature: float = 0.3,
    ) -> None:
        self.primary_model = primary_model or settings.litellm_primary_model
        fallbacks = fallback_models if fallback_models is not None else [settings.litellm_fallback_model]
        self.models = [self.primary_model] + [m for m in fallbacks if m and m != self.primary_model]
        self.temperature = temperature

        logger.info("LLM provider initialized", models=self.models)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _call(self, model: str, messages: list[dict[str, str]], max_tokens: int) -> LLMResponse:
        response = await litellm.acompletion(
            model=model,
            messages=messages,
            temperature=self.temperature,
            max_tokens=max_tokens,
        )
        usage = response.usage or {}
        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=model,
            tokens_used=getattr(usage, "total_tokens", 0),
        )

    async def complete(self, system_prompt: str, prompt: str, max_tokens: int = 300) -> LLMResponse:
        """Run one prompt through the model chain.

        Raises:
            LLMError: When every model in the chain fails
        """
        messages = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": prompt},
        ]

        last_error: Exception | None = None
        for model in self.models:
            try:
                response = await self._call(model, messages, max_tokens)
            except Exception as e:
                logger.warning("LLM completion failed", model=model, error=str(e))
                last_error = e
                continue

            logger.info("LLM completion successful", model=model, tokens=response.tokens_used)
            return response

        raise LLMError(f"All LLM providers failed: {last_error}", provider=self.primary_model)

    async def summarize(self, transcript: str, max_words: int = 120) -> str:
        """Summarize a ``sender: message`` transcript."""
        response = await self.complete(
            SUMMARY_SYSTEM_PROMPT,
            SUMMARY_PROMPT.format(max_words=max_words, transcript=transcript),
            max_tokens=max_words * 2,
        )
        return response.content.strip()


_llm_provider: LLMProvider | None = None


def get_llm_provider() -> LLMProvider:
    """Get or create the LLM provider singleton."""
    global _llm_provider
    if _llm_provider is None:
        _llm_provider = LLMProvider()
    return _llm_provider
